import pytest

from genai_gateway.core.errors import UnknownProvider
from genai_gateway.core.providers import PROVIDERS, get_provider, image_capable
from genai_gateway.llms.resolver import choose_model, infer_provider, model_matches, resolve_provider


@pytest.mark.parametrize(
    ("model", "expected"),
    [
        ("GLM-4.7", "zai"),
        ("glm-4-flash", "zai"),
        ("gpt-4o", "openai"),
        ("o1-mini", "openai"),
        ("claude-3-5-sonnet-20241022", "anthropic"),
        ("mistral-large-latest", "mistral"),
        ("codestral-latest", "mistral"),
        ("google/gemini-3-flash-preview", "lovable"),
        ("openai/gpt-5", "lovable"),
        ("gemini-2.0-flash", "lovable"),
    ],
)
def test_documented_prefixes_map_to_provider(model: str, expected: str) -> None:
    assert resolve_provider(None, model, None) == expected


def test_bare_gemini_follows_call_site_target() -> None:
    assert resolve_provider(None, "gemini-2.5-flash", None, gemini_target="gemini") == "gemini"
    assert resolve_provider(None, "gemini-2.5-flash", None, gemini_target="geminiV22") == "geminiV22"
    assert resolve_provider(None, "gemini-2.5-flash", None) == "lovable"


def test_explicit_override_wins_over_model_prefix() -> None:
    assert resolve_provider("anthropic", "gpt-4o", "zai") == "anthropic"


def test_settings_default_then_hardcoded_default() -> None:
    assert resolve_provider(None, None, "mistral") == "mistral"
    assert resolve_provider(None, "some-local-model", "zai") == "zai"
    assert resolve_provider(None, None, None) == "lovable"


def test_unregistered_override_and_default_are_ignored() -> None:
    assert resolve_provider("groq", "claude-3", None) == "anthropic"
    assert resolve_provider("", "", "not-a-provider") == "lovable"


@pytest.mark.parametrize(
    "args",
    [
        (None, None, None),
        ("openai", "GLM-4.7", None),
        (None, "codestral", "gemini"),
        ("bogus", "", "bogus"),
        (None, "   ", None),
    ],
)
def test_resolve_provider_is_pure_and_total(args) -> None:
    first = resolve_provider(*args)
    assert first in PROVIDERS
    assert all(resolve_provider(*args) == first for _ in range(3))


def test_infer_provider_returns_none_for_unknown_names() -> None:
    assert infer_provider("llama3.2") is None
    assert infer_provider("") is None
    assert infer_provider(None) is None


def test_choose_model_skips_models_of_other_providers() -> None:
    assert choose_model("zai", "gpt-4o", None) == "GLM-4.7"
    assert choose_model("zai", "GLM-4.7-Flash") == "GLM-4.7-Flash"
    assert choose_model("gemini", "google/gemini-3-flash-preview", "gemini-2.5-pro") == "gemini-2.5-pro"
    assert choose_model("lovable", "openai/gpt-5") == "openai/gpt-5"


def test_choose_model_uses_image_defaults() -> None:
    assert choose_model("gemini", "dall-e-3", kind="image") == "imagen-3.0-generate-002"
    assert choose_model("openai", None, kind="image") == "dall-e-3"
    assert choose_model("zai", "cogview-4-250304", kind="image") == "cogview-4-250304"


def test_model_matches_gemini_pools() -> None:
    assert model_matches("geminiV22", "gemini-2.5-flash")
    assert model_matches("gemini", "imagen-3.0-generate-002")
    assert not model_matches("gemini", "claude-3-opus")
    assert not model_matches("openai", "")


def test_registry_contracts() -> None:
    assert get_provider("anthropic").auth_style == "header_key"
    assert get_provider("gemini").auth_style == "query_key"
    assert not get_provider("mistral").supports_json_mode
    assert image_capable("openai") and image_capable("zai") and image_capable("gemini")
    assert not image_capable("lovable") and not image_capable("anthropic")
    with pytest.raises(UnknownProvider):
        get_provider("groq")
