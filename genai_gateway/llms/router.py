# =============================================================================
# genai_gateway/llms/router.py — Resolve, dispatch, record
# =============================================================================
# Constructed -> ProviderResolved -> Dispatching -> Succeeded | <classified error>
# Text: one provider, one attempt, no fallback.
# Image: walk the credentialed fallback chain; a rejected key (AuthFailed)
# moves on to the next provider, any other error ends the request.
# Every attempt is bounded by Settings.request_timeout and writes exactly one
# usage-log row, including attempts cut short by caller cancellation.
# =============================================================================

import asyncio
import time

import httpx

from genai_gateway.core.config import get_settings
from genai_gateway.core.errors import AuthFailed, NoProviderAvailable, ProviderTimeout
from genai_gateway.core.security import SettingsSnapshot, require_key
from genai_gateway.llms.dispatcher import DispatchOutcome, Kind, dispatch
from genai_gateway.llms.fallback import image_fallback_chain
from genai_gateway.llms.resolver import GeminiTarget, choose_model, resolve_provider
from genai_gateway.schemas.request import GenerationRequest
from genai_gateway.schemas.response import GenerationResult, UsageLogEntry
from genai_gateway.services.usage_recorder import UsageSink, record_usage
from genai_gateway.utils.logger import logger


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


async def _attempt(
    client: httpx.AsyncClient,
    request: GenerationRequest,
    *,
    provider: str,
    model: str,
    api_key: str,
    requested_provider: str,
    attempt: int,
    sink: UsageSink | None,
) -> tuple[DispatchOutcome, float]:
    timeout = get_settings().request_timeout
    metadata = {
        **request.associated_entity,
        "kind": request.kind,
        "requested_provider": requested_provider,
        "attempt": attempt,
    }

    def entry(duration_ms: float, success: bool, error: str | None = None, tokens: int | None = None) -> UsageLogEntry:
        return UsageLogEntry(
            provider=provider,
            model=model,
            operation=request.operation_name,
            tokens_used=tokens,
            duration_ms=duration_ms,
            success=success,
            error_message=error,
            metadata=metadata,
        )

    logger.debug("dispatch_started", extra={"provider": provider, "model": model, "attempt": attempt})
    start = time.perf_counter()
    try:
        outcome = await asyncio.wait_for(
            dispatch(
                client,
                provider,
                request.kind,
                prompt=request.prompt,
                model=model,
                api_key=api_key,
                system_prompt=request.system_prompt,
                response_mode=request.response_mode,
            ),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        duration_ms = _elapsed_ms(start)
        error = ProviderTimeout(provider, timeout)
        await record_usage(entry(duration_ms, False, error.message), sink)
        logger.warning("provider_failed", extra={"provider": provider, "model": model, "error": error.message})
        raise error from None
    except asyncio.CancelledError:
        duration_ms = _elapsed_ms(start)
        await asyncio.shield(record_usage(entry(duration_ms, False, "cancelled by caller"), sink))
        raise
    except Exception as e:
        duration_ms = _elapsed_ms(start)
        message = str(e) or type(e).__name__
        await record_usage(entry(duration_ms, False, message), sink)
        logger.warning("provider_failed", extra={"provider": provider, "model": model, "error": message})
        raise

    duration_ms = _elapsed_ms(start)
    await record_usage(entry(duration_ms, True, tokens=outcome.tokens_used), sink)
    logger.info(
        "llm_used",
        extra={
            "original_provider": requested_provider,
            "final_provider_used": provider,
            "model": model,
            "operation": request.operation_name,
            "latency_ms": round(duration_ms, 2),
        },
    )
    return outcome, duration_ms


def _result(request: GenerationRequest, outcome: DispatchOutcome, requested: str, duration_ms: float) -> GenerationResult:
    return GenerationResult(
        text=outcome.text if request.kind == "text" else None,
        image_base64=outcome.image_base64 if request.kind == "image" else None,
        provider_used=outcome.provider,
        model_used=outcome.model,
        requested_provider=requested,
        duration_ms=round(duration_ms, 2),
        tokens_used=outcome.tokens_used,
    )


async def generate_text(
    client: httpx.AsyncClient,
    request: GenerationRequest,
    snapshot: SettingsSnapshot,
    *,
    gemini_target: GeminiTarget = "lovable",
    sink: UsageSink | None = None,
) -> GenerationResult:
    provider = resolve_provider(
        request.provider_override,
        request.model,
        snapshot.row.text_provider_default,
        gemini_target=gemini_target,
    )
    model = choose_model(provider, request.model, snapshot.row.llm_text_model)
    logger.debug("provider_resolved", extra={"kind": "text", "provider": provider, "model": model})
    api_key = require_key(snapshot.credentials, provider)
    outcome, duration_ms = await _attempt(
        client,
        request,
        provider=provider,
        model=model,
        api_key=api_key,
        requested_provider=provider,
        attempt=1,
        sink=sink,
    )
    return _result(request, outcome, provider, duration_ms)


async def generate_image(
    client: httpx.AsyncClient,
    request: GenerationRequest,
    snapshot: SettingsSnapshot,
    *,
    sink: UsageSink | None = None,
) -> GenerationResult:
    requested = resolve_provider(
        request.provider_override,
        request.model,
        snapshot.row.image_provider_default,
        gemini_target="gemini",
    )
    chain = image_fallback_chain(requested, snapshot.credentials.availability())
    if not chain:
        raise NoProviderAvailable(requested)
    logger.debug("provider_resolved", extra={"kind": "image", "requested": requested, "chain": chain})

    start = time.perf_counter()
    for attempt, provider in enumerate(chain, start=1):
        if provider != requested:
            logger.info("image_fallback", extra={"requested": requested, "provider": provider, "attempt": attempt})
        model = choose_model(provider, request.model, snapshot.row.llm_image_model, kind="image")
        try:
            outcome, _ = await _attempt(
                client,
                request,
                provider=provider,
                model=model,
                api_key=require_key(snapshot.credentials, provider),
                requested_provider=requested,
                attempt=attempt,
                sink=sink,
            )
        except AuthFailed:
            if attempt == len(chain):
                raise
            continue
        return _result(request, outcome, requested, _elapsed_ms(start))


async def route(
    client: httpx.AsyncClient,
    kind: Kind,
    request: GenerationRequest,
    snapshot: SettingsSnapshot,
    *,
    gemini_target: GeminiTarget = "lovable",
    sink: UsageSink | None = None,
) -> GenerationResult:
    if kind != request.kind:
        request = request.model_copy(update={"kind": kind})
    if kind == "image":
        return await generate_image(client, request, snapshot, sink=sink)
    return await generate_text(client, request, snapshot, gemini_target=gemini_target, sink=sink)
