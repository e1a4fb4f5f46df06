import sqlite3
from pathlib import Path

from genai_gateway.core.config import get_settings

# Columns added after the first release of each table; created on demand.
SETTINGS_COLUMNS = {
    "llm_provider": "TEXT",
    "llm_text_provider": "TEXT",
    "llm_text_model": "TEXT",
    "llm_image_provider": "TEXT",
    "llm_image_model": "TEXT",
    "openai_api_key": "TEXT",
    "gemini_api_key": "TEXT",
    "gemini_v22_api_key": "TEXT",
    "anthropic_api_key": "TEXT",
    "zai_api_key": "TEXT",
    "mistral_api_key": "TEXT",
}

USAGE_LOG_COLUMNS = {
    "tokens_used": "INTEGER",
    "error_message": "TEXT",
    "metadata": "TEXT",
}


def db_path() -> Path:
    return Path(get_settings().database_path)


def _add_missing_columns(conn: sqlite3.Connection, table: str, wanted: dict[str, str]) -> None:
    cursor = conn.execute(f"PRAGMA table_info({table})")
    columns = {row[1] for row in cursor.fetchall()}
    for name, sql_type in wanted.items():
        if name not in columns:
            conn.execute(f"ALTER TABLE {table} ADD COLUMN {name} {sql_type}")


def init_db(path: Path | None = None) -> None:
    path = path or db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS settings (
                id INTEGER PRIMARY KEY,
                updated_at TEXT
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS llm_usage_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                provider TEXT NOT NULL,
                model TEXT NOT NULL,
                operation TEXT NOT NULL,
                duration_ms INTEGER NOT NULL,
                success INTEGER NOT NULL,
                created_at TEXT NOT NULL
            )
            """
        )
        _add_missing_columns(conn, "settings", SETTINGS_COLUMNS)
        _add_missing_columns(conn, "llm_usage_logs", USAGE_LOG_COLUMNS)
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_llm_usage_logs_created_at ON llm_usage_logs (created_at)"
        )
        conn.commit()
