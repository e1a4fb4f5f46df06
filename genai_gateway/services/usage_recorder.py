# -----------------------------------------------------------------------------
# genai_gateway/services/usage_recorder.py — One usage-log row per attempt
# -----------------------------------------------------------------------------
# Write failures are logged and dropped; they never reach the caller.
# -----------------------------------------------------------------------------

import asyncio
from collections.abc import Callable

from genai_gateway.db.session import insert_usage_log
from genai_gateway.schemas.response import UsageLogEntry
from genai_gateway.utils.logger import logger

UsageSink = Callable[[UsageLogEntry], None]


async def record_usage(entry: UsageLogEntry, sink: UsageSink | None = None) -> None:
    write = sink or insert_usage_log
    try:
        await asyncio.to_thread(write, entry)
    except Exception as e:
        logger.error(
            "usage_log_failed",
            extra={
                "provider": entry.provider,
                "model": entry.model,
                "operation": entry.operation,
                "error": str(e),
            },
        )
