from __future__ import annotations

import logging
import time
from typing import Optional, Union

CALL_EVENT = "redmine_call"
NO_RESPONSE = "exception"

logger = logging.getLogger(__name__)


def elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def log_redmine_call(
    *,
    method: str,
    endpoint: str,
    status: Union[int, str],
    started: float,
    attempt: int,
    operation: Optional[str] = None,
    log: Optional[logging.Logger] = None,
) -> None:
    """
    Record one HTTP attempt against Redmine.
    - status is the HTTP status code, or "exception" when no response arrived
    - endpoint is the path relative to the base URL; query strings and
      headers (and with them the API key) are never logged
    """
    (log or logger).info(
        CALL_EVENT,
        extra={
            "method": method,
            "endpoint": endpoint,
            "status": status,
            "duration_ms": elapsed_ms(started),
            "attempt": attempt,
            "operation": operation,
        },
    )


__all__ = ["CALL_EVENT", "NO_RESPONSE", "elapsed_ms", "log_redmine_call"]
