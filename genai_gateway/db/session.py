import datetime
import json
import sqlite3
from contextlib import contextmanager
from typing import Any

from genai_gateway.core.security import SettingsRow
from genai_gateway.db.models import SETTINGS_COLUMNS, db_path, init_db
from genai_gateway.schemas.response import UsageLogEntry

STATS_TIME_RANGES = {"1h": 1, "24h": 24, "3d": 72, "7d": 168}
STATS_MAX_ERRORS = 5

_initialized: set[str] = set()


@contextmanager
def get_db_connection():
    path = db_path()
    if str(path) not in _initialized:
        init_db(path)
        _initialized.add(str(path))
    conn = sqlite3.connect(path)
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def insert_usage_log(entry: UsageLogEntry) -> None:
    with get_db_connection() as conn:
        conn.execute(
            """INSERT INTO llm_usage_logs (
                provider, model, operation, tokens_used, duration_ms,
                success, error_message, metadata, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                entry.provider,
                entry.model,
                entry.operation,
                entry.tokens_used,
                round(entry.duration_ms),
                1 if entry.success else 0,
                entry.error_message,
                json.dumps(entry.metadata, default=str, ensure_ascii=False),
                entry.created_at.isoformat(),
            ),
        )


def _row_to_log(row: sqlite3.Row) -> dict[str, Any]:
    log = dict(row)
    log["success"] = bool(log.get("success"))
    try:
        log["metadata"] = json.loads(log["metadata"]) if log.get("metadata") else {}
    except ValueError:
        log["metadata"] = {}
    return log


def get_last_logs(limit: int = 20) -> list[dict[str, Any]]:
    with get_db_connection() as conn:
        conn.row_factory = sqlite3.Row
        cursor = conn.execute(
            "SELECT * FROM llm_usage_logs ORDER BY id DESC LIMIT ?",
            (limit,),
        )
        return [_row_to_log(row) for row in cursor.fetchall()]


def get_usage_stats(time_range: str = "24h") -> dict[str, Any]:
    """Per-provider aggregates of the usage log over the last 1h/24h/3d/7d."""
    hours = STATS_TIME_RANGES.get(time_range, 24)
    threshold = datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(hours=hours)
    with get_db_connection() as conn:
        conn.row_factory = sqlite3.Row
        cursor = conn.execute(
            "SELECT * FROM llm_usage_logs WHERE created_at >= ? ORDER BY id",
            (threshold.isoformat(),),
        )
        logs = [_row_to_log(row) for row in cursor.fetchall()]

    stats: dict[str, dict[str, Any]] = {}
    for log in logs:
        s = stats.setdefault(
            log["provider"],
            {
                "provider": log["provider"],
                "total_calls": 0,
                "successful_calls": 0,
                "failed_calls": 0,
                "total_duration": 0,
                "total_tokens": 0,
                "operations": {},
                "models": {},
                "errors": [],
            },
        )
        s["total_calls"] += 1
        if log["success"]:
            s["successful_calls"] += 1
        else:
            s["failed_calls"] += 1
            if log.get("error_message") and len(s["errors"]) < STATS_MAX_ERRORS:
                s["errors"].append(log["error_message"])
        s["total_duration"] += log.get("duration_ms") or 0
        s["total_tokens"] += log.get("tokens_used") or 0
        s["operations"][log["operation"]] = s["operations"].get(log["operation"], 0) + 1
        s["models"][log["model"]] = s["models"].get(log["model"], 0) + 1

    for s in stats.values():
        calls = s["total_calls"]
        s["avg_duration"] = round(s["total_duration"] / calls)
        s["success_rate"] = round(s["successful_calls"] / calls * 100)
        s["avg_tokens"] = round(s["total_tokens"] / calls)

    return {
        "time_range": time_range if time_range in STATS_TIME_RANGES else "24h",
        "stats": list(stats.values()),
        "total_calls": len(logs),
    }


def get_settings_row() -> SettingsRow:
    with get_db_connection() as conn:
        conn.row_factory = sqlite3.Row
        row = conn.execute("SELECT * FROM settings ORDER BY id LIMIT 1").fetchone()
    return SettingsRow.model_validate(dict(row)) if row else SettingsRow()


def save_settings_row(row: SettingsRow) -> None:
    values = row.model_dump(include=set(SETTINGS_COLUMNS))
    columns = list(values)
    assignments = ", ".join(f"{c} = excluded.{c}" for c in columns)
    ts = datetime.datetime.now(datetime.timezone.utc).isoformat()
    with get_db_connection() as conn:
        conn.execute(
            f"""INSERT INTO settings (id, updated_at, {", ".join(columns)})
                VALUES (1, ?, {", ".join("?" for _ in columns)})
                ON CONFLICT(id) DO UPDATE SET updated_at = excluded.updated_at, {assignments}""",
            (ts, *(values[c] for c in columns)),
        )
