import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

DEFAULT_DATABASE_PATH = Path(__file__).resolve().parent.parent.parent / "genai_gateway.db"

# Provider id -> env var that overrides its base URL (proxies, test doubles)
BASE_URL_ENV_VARS = {
    "lovable": "LOVABLE_BASE_URL",
    "openai": "OPENAI_BASE_URL",
    "gemini": "GEMINI_BASE_URL",
    "geminiV22": "GEMINI_BASE_URL",
    "anthropic": "ANTHROPIC_BASE_URL",
    "zai": "ZAI_BASE_URL",
    "mistral": "MISTRAL_BASE_URL",
}


class Settings(BaseModel):
    """Process-level configuration. Provider credentials are not cached here."""

    request_timeout: float = 45.0
    database_path: str = str(DEFAULT_DATABASE_PATH)
    log_level: str = "INFO"
    log_format: str = "json"
    base_url_overrides: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "Settings":
        overrides = {
            provider: os.environ[env_var].rstrip("/")
            for provider, env_var in BASE_URL_ENV_VARS.items()
            if os.getenv(env_var, "").strip()
        }
        return cls(
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", "45")),
            database_path=os.getenv("GATEWAY_DB_PATH", str(DEFAULT_DATABASE_PATH)),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("LOG_FORMAT", "json").lower(),
            base_url_overrides=overrides,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
