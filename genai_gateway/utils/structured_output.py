# -----------------------------------------------------------------------------
# genai_gateway/utils/structured_output.py — Tolerant JSON from model text
# -----------------------------------------------------------------------------
# Models without a JSON mode (and some with one) wrap their answer in ```json
# fences or add prose. Parsing never raises: callers get a ParsedResult with
# the fields that came through, or a ParseFailure to replace with a default.
# -----------------------------------------------------------------------------

import json
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from genai_gateway.utils.logger import logger

_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)\s*```")
_BARE_FENCE = re.compile(r"```\s*([\s\S]*?)\s*```")

Shape = Mapping[str, type | tuple[type, ...]]


@dataclass(frozen=True)
class ParsedResult:
    data: dict[str, Any]
    missing: tuple[str, ...] = ()

    @property
    def complete(self) -> bool:
        return not self.missing

    def list_of(self, key: str, limit: int | None = None) -> list[Any]:
        value = self.data.get(key)
        if not isinstance(value, list):
            return []
        return value[:limit] if limit is not None else list(value)


@dataclass(frozen=True)
class ParseFailure:
    raw_text: str
    reason: str
    missing: tuple[str, ...] = ()


def strip_code_fences(raw_text: str) -> str:
    match = _JSON_FENCE.search(raw_text) or _BARE_FENCE.search(raw_text)
    return (match.group(1) if match else raw_text).strip()


def _matches(value: Any, expected: type | tuple[type, ...]) -> bool:
    # bool is an int subclass; an int-typed field should not accept True/False
    if isinstance(value, bool) and expected in (int, float):
        return False
    return isinstance(value, expected)


def parse_structured(raw_text: str | None, shape: Shape | None = None) -> ParsedResult | ParseFailure:
    text = strip_code_fences(raw_text or "")
    if not text:
        return ParseFailure(raw_text or "", "empty", tuple(shape or ()))
    try:
        payload = json.loads(text)
    except ValueError as e:
        logger.info("structured_output_unparsed", extra={"reason": str(e), "length": len(text)})
        return ParseFailure(raw_text or "", f"invalid json: {e}", tuple(shape or ()))
    if not isinstance(payload, dict):
        return ParseFailure(raw_text or "", f"expected object, got {type(payload).__name__}", tuple(shape or ()))
    if not shape:
        return ParsedResult(payload)

    data = dict(payload)
    missing = []
    for key, expected in shape.items():
        if key not in payload or not _matches(payload[key], expected):
            data.pop(key, None)
            missing.append(key)
    return ParsedResult(data, tuple(missing))


def parse_or_default(
    raw_text: str | None,
    shape: Shape,
    default: Callable[[], dict[str, Any]],
) -> dict[str, Any]:
    """Parsed payload with each missing field taken from `default()`."""
    parsed = parse_structured(raw_text, shape)
    fallback = default()
    if isinstance(parsed, ParseFailure):
        return fallback
    merged = dict(parsed.data)
    for key in parsed.missing:
        if key in fallback:
            merged[key] = fallback[key]
    return merged
