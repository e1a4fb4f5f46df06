import asyncio

import httpx

from genai_gateway.core.config import get_settings
from genai_gateway.core.security import SettingsSnapshot
from genai_gateway.db.session import get_settings_row
from genai_gateway.llms.dispatcher import Kind
from genai_gateway.llms.resolver import GeminiTarget
from genai_gateway.llms.router import route
from genai_gateway.schemas.request import GenerationRequest
from genai_gateway.schemas.response import GenerationResult
from genai_gateway.services.usage_recorder import UsageSink


async def load_snapshot() -> SettingsSnapshot:
    """Fresh settings row + credentials; never cached between invocations."""
    row = await asyncio.to_thread(get_settings_row)
    return SettingsSnapshot.capture(row)


async def generate(
    kind: Kind,
    request: GenerationRequest,
    *,
    client: httpx.AsyncClient | None = None,
    snapshot: SettingsSnapshot | None = None,
    gemini_target: GeminiTarget = "lovable",
    sink: UsageSink | None = None,
) -> GenerationResult:
    """Run one text or image generation through the gateway.

    Raises a `GatewayError` subclass when the provider call fails. An empty
    answer is returned as-is; callers decide whether that is fatal.
    """
    snapshot = snapshot or await load_snapshot()
    if client is not None:
        return await route(client, kind, request, snapshot, gemini_target=gemini_target, sink=sink)
    async with httpx.AsyncClient(timeout=get_settings().request_timeout) as owned:
        return await route(owned, kind, request, snapshot, gemini_target=gemini_target, sink=sink)
