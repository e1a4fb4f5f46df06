# =============================================================================
# genai_gateway/core/security.py — Credential lookup per invocation
# =============================================================================
# Keys come from the persisted settings row first and the process environment
# second. Nothing here is cached: every gateway call builds a fresh snapshot so
# keys rotated in the admin panel apply to the next request.
# =============================================================================

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict

from genai_gateway.core.errors import MissingCredential
from genai_gateway.core.providers import PROVIDERS, get_provider


class SettingsRow(BaseModel):
    """The admin-managed `settings` row, limited to the columns the gateway reads."""

    model_config = ConfigDict(extra="ignore")

    llm_provider: str | None = None
    llm_text_provider: str | None = None
    llm_text_model: str | None = None
    llm_image_provider: str | None = None
    llm_image_model: str | None = None
    openai_api_key: str | None = None
    gemini_api_key: str | None = None
    gemini_v22_api_key: str | None = None
    anthropic_api_key: str | None = None
    zai_api_key: str | None = None
    mistral_api_key: str | None = None

    @property
    def text_provider_default(self) -> str | None:
        return self.llm_text_provider or self.llm_provider

    @property
    def image_provider_default(self) -> str | None:
        return self.llm_image_provider or self.llm_provider


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class CredentialSet:
    def __init__(self, keys: Mapping[str, str | None]) -> None:
        self._keys = {provider: _clean(keys.get(provider)) for provider in PROVIDERS}

    @classmethod
    def resolve(cls, row: SettingsRow, environ: Mapping[str, str] | None = None) -> "CredentialSet":
        env = os.environ if environ is None else environ
        keys: dict[str, str | None] = {}
        for provider_id, config in PROVIDERS.items():
            from_row = _clean(getattr(row, config.settings_key)) if config.settings_key else None
            keys[provider_id] = from_row or _clean(env.get(config.env_var))
        return cls(keys)

    def get(self, provider_id: str) -> str | None:
        return self._keys.get(provider_id)

    def has(self, provider_id: str) -> bool:
        return self.get(provider_id) is not None

    def availability(self) -> dict[str, bool]:
        return {provider_id: key is not None for provider_id, key in self._keys.items()}

    def status(self) -> dict[str, str]:
        return {p: "configured" if ok else "missing_key" for p, ok in self.availability().items()}


class SettingsSnapshot:
    """Read-only view of settings + credentials for a single gateway invocation."""

    def __init__(self, row: SettingsRow, credentials: CredentialSet) -> None:
        self.row = row
        self.credentials = credentials

    @classmethod
    def capture(cls, row: SettingsRow | None = None, environ: Mapping[str, str] | None = None) -> "SettingsSnapshot":
        row = row or SettingsRow()
        return cls(row, CredentialSet.resolve(row, environ))


def require_key(credentials: CredentialSet, provider_id: str) -> str:
    key = credentials.get(provider_id)
    if not key:
        raise MissingCredential(provider_id, get_provider(provider_id).env_var)
    return key
