# =============================================================================
# genai_gateway/llms/wire.py — Uniform request -> provider HTTP request
# =============================================================================
# Three text payload shapes (chat_completions, generate_content, messages) and
# two image shapes (openai_images, imagen). Auth is applied from the registry
# contract: bearer header, `?key=` query param, or `x-api-key` header.
# =============================================================================

from dataclasses import dataclass, field
from typing import Any, Literal

from genai_gateway.core.providers import ANTHROPIC_VERSION, ProviderConfig, base_url

ANTHROPIC_MAX_TOKENS = 4096
OPENAI_IMAGE_SIZE = "1792x1024"


@dataclass(frozen=True)
class WireRequest:
    url: str
    json: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)


def _auth(config: ProviderConfig, api_key: str) -> tuple[dict[str, str], dict[str, str]]:
    headers = {"Content-Type": "application/json"}
    params: dict[str, str] = {}
    if config.auth_style == "bearer":
        headers["Authorization"] = f"Bearer {api_key}"
    elif config.auth_style == "query_key":
        params["key"] = api_key
    else:
        headers["x-api-key"] = api_key
        headers["anthropic-version"] = ANTHROPIC_VERSION
    return headers, params


def _chat_messages(system_prompt: str | None, prompt: str) -> list[dict[str, str]]:
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})
    return messages


def build_text_request(
    config: ProviderConfig,
    *,
    api_key: str,
    model: str,
    prompt: str,
    system_prompt: str | None = None,
    response_mode: Literal["json", "text"] = "text",
) -> WireRequest:
    headers, params = _auth(config, api_key)
    root = base_url(config)
    json_mode = response_mode == "json" and config.supports_json_mode

    if config.payload_shape == "chat_completions":
        body: dict[str, Any] = {"model": model, "messages": _chat_messages(system_prompt, prompt)}
        if json_mode:
            body["response_format"] = {"type": "json_object"}
        return WireRequest(f"{root}/chat/completions", body, headers, params)

    if config.payload_shape == "generate_content":
        # generateContent has no system role in the v1beta REST shape used here
        text = f"{system_prompt}\n\n{prompt}" if system_prompt else prompt
        body = {"contents": [{"parts": [{"text": text}]}]}
        if json_mode:
            body["generationConfig"] = {"responseMimeType": "application/json"}
        return WireRequest(f"{root}/models/{model}:generateContent", body, headers, params)

    body = {
        "model": model,
        "max_tokens": ANTHROPIC_MAX_TOKENS,
        "messages": [{"role": "user", "content": prompt}],
    }
    if system_prompt:
        body["system"] = system_prompt
    return WireRequest(f"{root}/messages", body, headers, params)


def build_image_request(config: ProviderConfig, *, api_key: str, model: str, prompt: str) -> WireRequest:
    if config.image_shape is None:
        raise ValueError(f"{config.id} has no image endpoint")
    headers, params = _auth(config, api_key)
    root = base_url(config)

    if config.image_shape == "imagen":
        body: dict[str, Any] = {"instances": [{"prompt": prompt}], "parameters": {"sampleCount": 1}}
        return WireRequest(f"{root}/models/{model}:predict", body, headers, params)

    body = {"model": model, "prompt": prompt}
    if config.id == "openai":
        body.update({"n": 1, "size": OPENAI_IMAGE_SIZE, "response_format": "b64_json"})
    return WireRequest(f"{root}/images/generations", body, headers, params)
