# =============================================================================
# genai_gateway/llms/normalizer.py — Provider envelope -> logical payload
# =============================================================================
# Text:  chat_completions  choices[0].message.content
#        generate_content  candidates[0].content.parts[0].text
#        messages          content[0].text
# Image: openai/zai        data[0].b64_json   (zai may return data[0].url)
#        gemini (Imagen)   generatedImages[0].image.imageBytes
#                          predictions[0].bytesBase64Encoded
# Missing or malformed fields give "" (or None for tokens), never an exception.
# =============================================================================

import base64
from typing import Any

import httpx

from genai_gateway.core.providers import get_provider
from genai_gateway.utils.logger import logger


def _first(value: Any) -> dict:
    if isinstance(value, list) and value and isinstance(value[0], dict):
        return value[0]
    return {}


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def extract_text(provider_id: str, data: Any) -> str:
    data = _as_dict(data)
    shape = get_provider(provider_id).payload_shape
    if shape == "chat_completions":
        message = _as_dict(_first(data.get("choices")).get("message"))
        return _as_text(message.get("content"))
    if shape == "generate_content":
        content = _as_dict(_first(data.get("candidates")).get("content"))
        return _as_text(_first(content.get("parts")).get("text"))
    return _as_text(_first(data.get("content")).get("text"))


def extract_tokens(provider_id: str, data: Any) -> int | None:
    data = _as_dict(data)
    shape = get_provider(provider_id).payload_shape
    if shape == "chat_completions":
        total = _as_dict(data.get("usage")).get("total_tokens")
    elif shape == "generate_content":
        total = _as_dict(data.get("usageMetadata")).get("totalTokenCount")
    else:
        usage = _as_dict(data.get("usage"))
        parts = [usage.get("input_tokens"), usage.get("output_tokens")]
        counted = [p for p in parts if isinstance(p, int)]
        total = sum(counted) if counted else None
    return total if isinstance(total, int) and not isinstance(total, bool) else None


async def _fetch_as_base64(client: httpx.AsyncClient, url: str, provider_id: str) -> str:
    try:
        r = await client.get(url)
        r.raise_for_status()
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("image_url_fetch_failed", extra={"provider": provider_id, "error": str(e)})
        return ""
    return base64.b64encode(r.content).decode("ascii")


async def extract_image(provider_id: str, data: Any, client: httpx.AsyncClient) -> str:
    data = _as_dict(data)
    shape = get_provider(provider_id).image_shape
    if shape == "imagen":
        generated = _as_dict(_first(data.get("generatedImages")).get("image"))
        image_bytes = generated.get("imageBytes")
        if isinstance(image_bytes, (bytes, bytearray)):
            return base64.b64encode(image_bytes).decode("ascii")
        if image_bytes:
            return _as_text(image_bytes)
        return _as_text(_first(data.get("predictions")).get("bytesBase64Encoded"))
    if shape == "openai_images":
        item = _first(data.get("data"))
        b64 = _as_text(item.get("b64_json"))
        if b64:
            return b64
        url = _as_text(item.get("url"))
        if url:
            return await _fetch_as_base64(client, url, provider_id)
    return ""
