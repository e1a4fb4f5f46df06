# =============================================================================
# genai_gateway/services/operations.py — Admin actions that call the gateway
# =============================================================================
# Each action builds a GenerationRequest, runs it through generate(), and
# decides on its own whether an empty or malformed answer is fatal.
# =============================================================================

from typing import Any

import httpx

from genai_gateway.core.errors import EmptyPayload
from genai_gateway.core.security import SettingsSnapshot
from genai_gateway.schemas.request import GenerationRequest
from genai_gateway.schemas.response import GenerationResult
from genai_gateway.services.llm_service import generate
from genai_gateway.utils.logger import logger
from genai_gateway.utils.structured_output import ParseFailure, parse_or_default, parse_structured

STRUCTURE_TEXT_MODEL = "GLM-4.7-Flash"
RETELL_LIMITS = {"key_points": 5, "themes": 4, "keywords": 8}
RETELL_SHAPE = {"content": str, "key_points": list, "themes": list, "keywords": list}
DIALOGUE_SHAPE = {"dialogue": list}

# Canned two-line exchange used when the model's dialogue JSON is unusable
FALLBACK_LINES = {
    "uk": ("Цікаві події сьогодні...", "Так, людство знову здивувало."),
    "en": ("Interesting events today...", "Yes, humanity surprised us again."),
}

STRUCTURE_TEXT_SYSTEM = (
    "You are a text cleaning and structuring assistant. Remove code, HTML, ads, "
    "navigation and duplicated fragments, keep only the article text in its "
    "original language, split into clear paragraphs. Return only the cleaned text."
)

RETELL_SYSTEM = (
    "You are a news editor. Retell the article in {language}. Respond with a JSON "
    'object: {{"content": str, "key_points": [str], "themes": [str], "keywords": [str]}}.'
)

DIALOGUE_SYSTEM = (
    "Write a short satirical dialogue between these characters:\n{characters}\n"
    'Respond with JSON: {{"dialogue": [{{"character": id, "name": str, "avatar": str, "message": str}}]}}. '
    "Write {count} messages in language '{language}'."
)

IMAGE_STYLE_SUFFIX = (
    ". Ultra high resolution, 16:9 aspect ratio, sci-fi digital art style, "
    "cinematic lighting, detailed futuristic elements."
)


async def structure_text(
    content: str,
    *,
    news_id: str | None = None,
    model: str | None = None,
    client: httpx.AsyncClient | None = None,
    snapshot: SettingsSnapshot | None = None,
) -> GenerationResult:
    result = await generate(
        "text",
        GenerationRequest(
            system_prompt=STRUCTURE_TEXT_SYSTEM,
            prompt=f"Clean and structure this text:\n\n{content}",
            model=model or STRUCTURE_TEXT_MODEL,
            operation="structure-text",
            associated_entity={"news_id": news_id} if news_id else {},
        ),
        client=client,
        snapshot=snapshot,
    )
    cleaned = (result.text or "").strip()
    if not cleaned:
        raise EmptyPayload(result.provider_used, "structure-text")
    return result.model_copy(update={"text": cleaned})


async def retell_news(
    title: str,
    content: str,
    *,
    description: str | None = None,
    language: str = "English",
    news_id: str | None = None,
    model: str | None = None,
    client: httpx.AsyncClient | None = None,
    snapshot: SettingsSnapshot | None = None,
) -> dict[str, Any]:
    result = await generate(
        "text",
        GenerationRequest(
            system_prompt=RETELL_SYSTEM.format(language=language),
            prompt=f"Title: {title}\n\nDescription: {description or 'No description'}\n\nOriginal content: {content}",
            model=model,
            response_mode="json",
            operation="retell-news",
            associated_entity={"news_id": news_id} if news_id else {},
        ),
        client=client,
        snapshot=snapshot,
    )
    raw = result.text or ""
    parsed = parse_structured(raw, RETELL_SHAPE)
    retold: dict[str, Any] = {"content": raw, "key_points": [], "themes": [], "keywords": []}
    if not isinstance(parsed, ParseFailure):
        if parsed.data.get("content"):
            retold["content"] = parsed.data["content"]
        for key, limit in RETELL_LIMITS.items():
            retold[key] = parsed.list_of(key, limit)
    retold["provider_used"] = result.provider_used
    retold["model_used"] = result.model_used
    return retold


def fallback_dialogue(characters: list[dict[str, Any]], language: str) -> dict[str, Any]:
    lines = FALLBACK_LINES.get(language, FALLBACK_LINES["en"])
    return {
        "dialogue": [
            {
                "character": char.get("character_id"),
                "name": char.get("name"),
                "avatar": char.get("avatar"),
                "message": line,
            }
            for char, line in zip(characters[:2], lines)
        ]
    }


async def generate_dialogue(
    characters: list[dict[str, Any]],
    story_context: str,
    news_context: str,
    *,
    message_count: int = 8,
    language: str = "uk",
    use_openai: bool = False,
    client: httpx.AsyncClient | None = None,
    snapshot: SettingsSnapshot | None = None,
) -> list[dict[str, Any]]:
    if len(characters) < 2:
        raise ValueError("Need at least 2 characters for dialogue")
    roster = "\n".join(f"- {c.get('name')} ({c.get('avatar')}): {c.get('style', '')}" for c in characters)
    result = await generate(
        "text",
        GenerationRequest(
            system_prompt=DIALOGUE_SYSTEM.format(characters=roster, count=message_count, language=language),
            prompt=f"Story context:\n{story_context}\n\nNews:\n{news_context}",
            provider_override="openai" if use_openai else None,
            response_mode="json",
            operation="generate-dialogue",
        ),
        client=client,
        snapshot=snapshot,
    )
    payload = parse_or_default(
        result.text,
        DIALOGUE_SHAPE,
        lambda: fallback_dialogue(characters, language),
    )
    dialogue = [m for m in payload["dialogue"] if isinstance(m, dict) and m.get("message")]
    if not dialogue:
        logger.info("dialogue_fallback_used", extra={"provider": result.provider_used})
        dialogue = fallback_dialogue(characters, language)["dialogue"]
    return dialogue


async def generate_cover_image(
    prompt: str,
    *,
    provider_override: str | None = None,
    model: str | None = None,
    entity: dict[str, Any] | None = None,
    client: httpx.AsyncClient | None = None,
    snapshot: SettingsSnapshot | None = None,
) -> GenerationResult:
    result = await generate(
        "image",
        GenerationRequest(
            kind="image",
            prompt=f"{prompt}{IMAGE_STYLE_SUFFIX}",
            model=model,
            provider_override=provider_override,
            operation="generate-image",
            associated_entity=entity or {},
        ),
        client=client,
        snapshot=snapshot,
    )
    if not result.image_base64:
        raise EmptyPayload(result.provider_used, "generate-image")
    return result
