# =============================================================================
# genai_gateway/llms/fallback.py — Image provider selection by credential
# =============================================================================
# Chain: requested provider (if it can draw) -> gemini -> openai -> zai,
# keeping only providers with a configured key. "lovable" never draws itself;
# it falls straight through to the fixed order.
# =============================================================================

from collections.abc import Mapping

from genai_gateway.core.errors import NoProviderAvailable
from genai_gateway.core.providers import IMAGE_FALLBACK_ORDER, image_capable


def image_fallback_chain(requested: str | None, availability: Mapping[str, bool]) -> list[str]:
    order: list[str] = []
    if requested and image_capable(requested):
        order.append(requested)
    for provider in IMAGE_FALLBACK_ORDER:
        if provider not in order:
            order.append(provider)
    return [p for p in order if availability.get(p, False)]


def select_image_provider(requested: str | None, availability: Mapping[str, bool]) -> str:
    chain = image_fallback_chain(requested, availability)
    if not chain:
        raise NoProviderAvailable(requested)
    return chain[0]
