# =============================================================================
# genai_gateway/core/providers.py — Static catalog of provider wire contracts
# =============================================================================
# "lovable" is a gateway alias: for text it is an OpenAI-style chat endpoint,
# for images it has no protocol of its own and is resolved by the fallback
# policy to a real image provider.
# =============================================================================

from typing import Literal

from pydantic import BaseModel, ConfigDict

from genai_gateway.core.config import get_settings
from genai_gateway.core.errors import UnknownProvider

AuthStyle = Literal["bearer", "query_key", "header_key"]
PayloadShape = Literal["chat_completions", "generate_content", "messages"]
ImageShape = Literal["openai_images", "imagen"]

ANTHROPIC_VERSION = "2023-06-01"


class ProviderConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    base_url: str
    auth_style: AuthStyle
    payload_shape: PayloadShape
    image_shape: ImageShape | None = None
    supports_json_mode: bool
    default_model: str
    default_image_model: str | None = None
    settings_key: str | None
    env_var: str

    @property
    def supports_images(self) -> bool:
        return self.image_shape is not None


PROVIDERS: dict[str, ProviderConfig] = {
    "lovable": ProviderConfig(
        id="lovable",
        label="Lovable AI",
        base_url="https://ai.gateway.lovable.dev/v1",
        auth_style="bearer",
        payload_shape="chat_completions",
        supports_json_mode=True,
        default_model="google/gemini-3-flash-preview",
        settings_key=None,
        env_var="LOVABLE_API_KEY",
    ),
    "openai": ProviderConfig(
        id="openai",
        label="OpenAI",
        base_url="https://api.openai.com/v1",
        auth_style="bearer",
        payload_shape="chat_completions",
        image_shape="openai_images",
        supports_json_mode=True,
        default_model="gpt-4o",
        default_image_model="dall-e-3",
        settings_key="openai_api_key",
        env_var="OPENAI_API_KEY",
    ),
    "gemini": ProviderConfig(
        id="gemini",
        label="Gemini",
        base_url="https://generativelanguage.googleapis.com/v1beta",
        auth_style="query_key",
        payload_shape="generate_content",
        image_shape="imagen",
        supports_json_mode=True,
        default_model="gemini-2.0-flash",
        default_image_model="imagen-3.0-generate-002",
        settings_key="gemini_api_key",
        env_var="GEMINI_API_KEY",
    ),
    "geminiV22": ProviderConfig(
        id="geminiV22",
        label="Gemini V22",
        base_url="https://generativelanguage.googleapis.com/v1beta",
        auth_style="query_key",
        payload_shape="generate_content",
        image_shape="imagen",
        supports_json_mode=True,
        default_model="gemini-2.5-flash",
        default_image_model="imagen-3.0-generate-002",
        settings_key="gemini_v22_api_key",
        env_var="GEMINI_V22_API_KEY",
    ),
    "anthropic": ProviderConfig(
        id="anthropic",
        label="Anthropic",
        base_url="https://api.anthropic.com/v1",
        auth_style="header_key",
        payload_shape="messages",
        supports_json_mode=False,
        default_model="claude-3-5-sonnet-20241022",
        settings_key="anthropic_api_key",
        env_var="ANTHROPIC_API_KEY",
    ),
    "zai": ProviderConfig(
        id="zai",
        label="Z.AI",
        base_url="https://api.z.ai/api/paas/v4",
        auth_style="bearer",
        payload_shape="chat_completions",
        image_shape="openai_images",
        supports_json_mode=True,
        default_model="GLM-4.7",
        default_image_model="cogview-4-250304",
        settings_key="zai_api_key",
        env_var="ZAI_API_KEY",
    ),
    "mistral": ProviderConfig(
        id="mistral",
        label="Mistral",
        base_url="https://api.mistral.ai/v1",
        auth_style="bearer",
        payload_shape="chat_completions",
        supports_json_mode=False,
        default_model="mistral-large-latest",
        settings_key="mistral_api_key",
        env_var="MISTRAL_API_KEY",
    ),
}

DEFAULT_PROVIDER = "lovable"

# Image preference order after the requested provider
IMAGE_FALLBACK_ORDER = ("gemini", "openai", "zai")


def is_registered(provider_id: str | None) -> bool:
    return bool(provider_id) and provider_id in PROVIDERS


def get_provider(provider_id: str) -> ProviderConfig:
    config = PROVIDERS.get(provider_id)
    if config is None:
        raise UnknownProvider(provider_id)
    return config


def image_capable(provider_id: str) -> bool:
    config = PROVIDERS.get(provider_id)
    return config is not None and config.supports_images


def base_url(config: ProviderConfig) -> str:
    return get_settings().base_url_overrides.get(config.id, config.base_url).rstrip("/")
