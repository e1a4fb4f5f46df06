# =============================================================================
# genai_gateway/llms/dispatcher.py — One outbound HTTP call per attempt
# =============================================================================
# Builds the wire request from the registry contract, sends it once, and
# either normalizes the 2xx body or raises a classified error:
#   429 -> RateLimited, 402 -> PaymentRequired, 401/403 -> AuthFailed,
#   other -> ProviderError(status, body[:500]), transport -> ProviderError(None),
#   transport timeout -> ProviderTimeout
# No retries and no database access here.
# =============================================================================

from dataclasses import dataclass
from typing import Literal

import httpx

from genai_gateway.core.config import get_settings
from genai_gateway.core.errors import (
    AuthFailed,
    GatewayError,
    PaymentRequired,
    ProviderError,
    ProviderTimeout,
    RateLimited,
)
from genai_gateway.core.providers import get_provider
from genai_gateway.llms.normalizer import extract_image, extract_text, extract_tokens
from genai_gateway.llms.wire import build_image_request, build_text_request

Kind = Literal["text", "image"]


@dataclass
class DispatchOutcome:
    provider: str
    model: str
    text: str = ""
    image_base64: str = ""
    tokens_used: int | None = None


def classify_status(provider_id: str, response: httpx.Response) -> GatewayError:
    status = response.status_code
    if status == 429:
        return RateLimited(provider_id)
    if status == 402:
        return PaymentRequired(provider_id)
    if status in (401, 403):
        return AuthFailed(provider_id)
    return ProviderError(provider_id, status, response.text or "")


async def dispatch(
    client: httpx.AsyncClient,
    provider_id: str,
    kind: Kind,
    *,
    prompt: str,
    model: str,
    api_key: str,
    system_prompt: str | None = None,
    response_mode: Literal["json", "text"] = "text",
) -> DispatchOutcome:
    config = get_provider(provider_id)
    # bounded by request_timeout whatever the client's own default is
    timeout = get_settings().request_timeout
    if kind == "image":
        wire = build_image_request(config, api_key=api_key, model=model, prompt=prompt)
    else:
        wire = build_text_request(
            config,
            api_key=api_key,
            model=model,
            prompt=prompt,
            system_prompt=system_prompt,
            response_mode=response_mode,
        )

    try:
        r = await client.post(
            wire.url, json=wire.json, headers=wire.headers, params=wire.params, timeout=timeout
        )
    except httpx.TimeoutException as e:
        raise ProviderTimeout(provider_id, timeout) from e
    except httpx.RequestError as e:
        raise ProviderError(provider_id, None, str(e) or type(e).__name__) from e

    if not r.is_success:
        raise classify_status(provider_id, r)

    try:
        data = r.json()
    except ValueError:
        data = {}

    outcome = DispatchOutcome(provider=provider_id, model=model, tokens_used=extract_tokens(provider_id, data))
    if kind == "image":
        outcome.image_base64 = await extract_image(provider_id, data, client)
    else:
        outcome.text = extract_text(provider_id, data)
    return outcome
