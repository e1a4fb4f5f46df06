from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from genai_gateway.core.config import BASE_URL_ENV_VARS, get_settings
from genai_gateway.core.providers import PROVIDERS
from genai_gateway.core.security import SettingsRow, SettingsSnapshot

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Fresh sqlite file, no provider keys from the developer's shell."""
    for config in PROVIDERS.values():
        monkeypatch.delenv(config.env_var, raising=False)
    for env_var in set(BASE_URL_ENV_VARS.values()):
        monkeypatch.delenv(env_var, raising=False)
    monkeypatch.setenv("GATEWAY_DB_PATH", str(tmp_path / "gateway.db"))
    monkeypatch.setenv("REQUEST_TIMEOUT", "5")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class Transport:
    """Records outgoing requests and answers them with `handler`."""

    def __init__(self, handler: Handler) -> None:
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def transport_factory() -> Callable[[Handler], Transport]:
    return Transport


def snapshot_with(**keys: str) -> SettingsSnapshot:
    """Snapshot whose only credentials are `keys` (settings-row columns)."""
    return SettingsSnapshot.capture(SettingsRow(**keys), environ={})
