# -----------------------------------------------------------------------------
# genai_gateway/core/errors.py — Classified gateway failures
# -----------------------------------------------------------------------------
# Each error carries the HTTP status the API layer answers with and a message
# that is safe to show to an admin user.
# -----------------------------------------------------------------------------

ERROR_BODY_LIMIT = 500


class GatewayError(Exception):
    status_code = 500
    kind = "gateway_error"

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.provider = provider


class RateLimited(GatewayError):
    status_code = 429
    kind = "rate_limited"

    def __init__(self, provider: str | None = None) -> None:
        super().__init__("Rate limit exceeded. Please try again later.", provider)


class PaymentRequired(GatewayError):
    status_code = 402
    kind = "payment_required"

    def __init__(self, provider: str | None = None) -> None:
        super().__init__("Payment required. Please add credits to your workspace.", provider)


class AuthFailed(GatewayError):
    status_code = 401
    kind = "auth_failed"

    def __init__(self, provider: str | None = None, message: str | None = None) -> None:
        super().__init__(message or f"{provider or 'Provider'} API key invalid or not allowed", provider)


class MissingCredential(AuthFailed):
    status_code = 400
    kind = "missing_credential"

    def __init__(self, provider: str, env_var: str | None = None) -> None:
        hint = f" (settings row or {env_var})" if env_var else ""
        super().__init__(provider, f"{provider} API key not configured{hint}")


class ProviderError(GatewayError):
    status_code = 502
    kind = "provider_error"

    def __init__(self, provider: str | None, status: int | None, body: str = "") -> None:
        self.status = status
        self.body = (body or "")[:ERROR_BODY_LIMIT]
        if status is None:
            message = f"{provider} API unreachable: {self.body}" if self.body else f"{provider} API unreachable"
        else:
            message = f"{provider} API error {status}: {self.body}" if self.body else f"{provider} API error {status}"
        super().__init__(message, provider)


class ProviderTimeout(ProviderError):
    status_code = 504
    kind = "provider_timeout"

    def __init__(self, provider: str | None, timeout: float) -> None:
        super().__init__(provider, None, f"no response within {timeout:g}s")
        self.message = f"{provider} API timed out after {timeout:g}s"
        self.args = (self.message,)


class NoProviderAvailable(GatewayError):
    status_code = 503
    kind = "no_provider_available"

    def __init__(self, requested: str | None, tried: list[str] | None = None) -> None:
        self.requested = requested
        self.tried = list(tried or [])
        super().__init__(
            f"No image provider has a configured API key (requested: {requested or 'default'})",
            requested,
        )


class UnknownProvider(GatewayError):
    status_code = 400
    kind = "unknown_provider"

    def __init__(self, provider: str) -> None:
        super().__init__(f"Unknown provider: {provider}", provider)


class EmptyPayload(GatewayError):
    """Raised by callers that treat an empty model answer as fatal."""

    status_code = 422
    kind = "empty_payload"

    def __init__(self, provider: str | None = None, operation: str | None = None) -> None:
        self.operation = operation
        super().__init__(f"No content returned from {provider or 'provider'}", provider)
