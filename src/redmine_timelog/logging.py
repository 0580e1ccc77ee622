import logging
from typing import Any

PACKAGE_LOGGER = "redmine_timelog"

LOG_EXTRA_FIELDS = (
    "method",
    "endpoint",
    "status",
    "duration_ms",
    "attempt",
    "operation",
    "entry_id",
    "issue_id",
    "project_id",
    "error_kind",
    "fetched",
    "total_count",
    "reason",
)


class LogfmtFormatter(logging.Formatter):
    """
    logfmt lines for Redmine calls: level, logger, event, then whichever
    request extras the record carries.
    """

    def format(self, record: logging.LogRecord) -> str:
        kv: list[str] = [
            f"level={record.levelname.lower()}",
            f"logger={record.name}",
        ]

        msg = record.getMessage()
        if msg:
            kv.append(f"event={self._fmt_val(msg)}")

        for key in LOG_EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is None:
                continue
            kv.append(f"{key}={self._fmt_val(val)}")

        if record.exc_info and record.exc_info[0] is not None:
            kv.append(f"exc_type={record.exc_info[0].__name__}")

        return " ".join(kv)

    @staticmethod
    def _fmt_val(val: Any) -> str:
        if isinstance(val, (int, float, bool)):
            return str(val)
        s = str(val)
        if " " in s or "=" in s or '"' in s:
            s = '"' + s.replace('"', '\\"') + '"'
        return s


def setup_logging(
    level: str = "INFO", *, logger_name: str = PACKAGE_LOGGER
) -> logging.Logger:
    """
    Attach one logfmt handler to the package logger. Other loggers of the host
    application are left alone; calling again replaces the handler.
    """
    log = logging.getLogger(logger_name)
    for h in list(log.handlers):
        if isinstance(h.formatter, LogfmtFormatter):
            log.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(LogfmtFormatter())
    log.addHandler(handler)
    log.setLevel(getattr(logging, level.upper(), logging.INFO))
    return log


__all__ = ["setup_logging", "LogfmtFormatter", "LOG_EXTRA_FIELDS", "PACKAGE_LOGGER"]
