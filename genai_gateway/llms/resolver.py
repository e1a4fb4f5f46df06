# =============================================================================
# genai_gateway/llms/resolver.py — Provider inference from model names
# =============================================================================
# Order: explicit override > model-name prefix > settings default > "lovable".
# Bare "gemini-*" names are ambiguous: the Lovable gateway, the Gemini key and
# the Gemini V22 key all accept them, so the call site picks via gemini_target.
# =============================================================================

from typing import Literal

from genai_gateway.core.providers import DEFAULT_PROVIDER, get_provider, is_registered

GeminiTarget = Literal["lovable", "gemini", "geminiV22"]

# (prefixes, provider); first match wins, prefixes are case-sensitive
MODEL_PREFIXES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("GLM-", "glm-", "cogview"), "zai"),
    (("gpt-", "o1-", "dall-e"), "openai"),
    (("claude",), "anthropic"),
    (("mistral-", "codestral"), "mistral"),
    (("google/", "openai/"), "lovable"),
)


def infer_provider(model_name: str | None, *, gemini_target: GeminiTarget = "lovable") -> str | None:
    model = (model_name or "").strip()
    if not model:
        return None
    for prefixes, provider in MODEL_PREFIXES:
        if model.startswith(prefixes):
            return provider
    if model.startswith(("gemini", "imagen")):
        return gemini_target
    return None


def resolve_provider(
    explicit: str | None,
    model_name: str | None,
    settings_default: str | None,
    *,
    gemini_target: GeminiTarget = "lovable",
) -> str:
    if is_registered(explicit):
        return explicit
    inferred = infer_provider(model_name, gemini_target=gemini_target)
    if inferred:
        return inferred
    if is_registered(settings_default):
        return settings_default
    return DEFAULT_PROVIDER


def model_matches(provider_id: str, model_name: str | None) -> bool:
    """True when `model_name` can be sent to `provider_id` as-is."""
    if not model_name or not model_name.strip():
        return False
    if provider_id == "lovable":
        return True
    target: GeminiTarget = provider_id if provider_id in ("gemini", "geminiV22") else "gemini"
    inferred = infer_provider(model_name, gemini_target=target)
    return inferred is None or inferred == provider_id


def choose_model(provider_id: str, *candidates: str | None, kind: Literal["text", "image"] = "text") -> str:
    for candidate in candidates:
        if model_matches(provider_id, candidate):
            return candidate.strip()
    config = get_provider(provider_id)
    if kind == "image" and config.default_image_model:
        return config.default_image_model
    return config.default_model
