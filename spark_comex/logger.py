"""
Structured JSON Logging Module.

Every log line is a single JSON object so credit decisions and shipment
status changes can be filtered by ``application_id`` / ``import_id`` in
any log viewer.  Context passed through ``extra`` (or bound once with
``StructuredLogger.bind``) is kept typed: numbers stay numbers, while
``Decimal`` amounts and timestamps are written as strings so money never
loses precision.
"""

import json
import logging
import sys
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, MutableMapping, Optional, TextIO, Union

JsonScalar = Union[str, int, float, bool, None]


def _json_scalar(value: object) -> JsonScalar:
    """Reduce an ``extra`` value to something ``json.dumps`` writes losslessly."""
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


class JSONFormatter(logging.Formatter):
    """Formats log records as structured JSON objects.

    Each log entry contains:
        - timestamp  (ISO-8601, UTC)
        - level      (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        - logger_name
        - message
        - extra      (caller context, when any)
        - exception  (formatted traceback, when any)
    """

    _RESERVED: frozenset[str] = frozenset(
        logging.LogRecord("", 0, "", 0, "", (), None).__dict__
    ) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger_name": record.name,
            "message": record.getMessage(),
        }

        context = {
            key: _json_scalar(value)
            for key, value in vars(record).items()
            if key not in self._RESERVED
        }
        if context:
            entry["extra"] = context

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exception"] = record.exc_text

        return json.dumps(entry, ensure_ascii=False)


class _ContextAdapter(logging.LoggerAdapter):
    """Merges bound context under any per-call ``extra``."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any],
    ) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def _resolve_level(level: Union[int, str, None], default: str) -> int:
    if isinstance(level, int):
        return level
    name = (level or default).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


class StructuredLogger:
    """Injectable JSON logger.

    Instantiate once per component and pass it wherever a logger is
    needed.  The underlying ``logging.Logger`` is exposed via ``.logger``.

    Usage::

        log = StructuredLogger(name="spark_comex.credit")
        log.info("Credit %s finalized", 42, extra={"final_credit_limit": Decimal("75000")})

        scoped = log.bind(user_id=7)
        scoped.warning("Import %s set to unrecognized status", 3)
    """

    def __init__(
        self,
        name: str = "spark_comex",
        level: Union[int, str, None] = None,
        stream: Optional[TextIO] = None,
        log_file: Optional[str] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
        context: Optional[dict[str, object]] = None,
    ) -> None:
        # Lazy import: config logs its own startup warnings through ``logging``.
        from spark_comex.config import get_config
        cfg = get_config()

        self._logger: logging.Logger = logging.getLogger(name)
        self._logger.setLevel(_resolve_level(level, cfg.LOG_LEVEL))
        self._context: dict[str, object] = dict(context or {})
        self._adapter = _ContextAdapter(self._logger, self._context)

        # Handlers are attached once per logger name.
        if self._logger.handlers:
            return

        formatter = JSONFormatter()
        console = logging.StreamHandler(stream or sys.stdout)
        console.setFormatter(formatter)
        self._logger.addHandler(console)

        path = Path(log_file or cfg.LOG_FILE)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            rotating = RotatingFileHandler(
                filename=str(path),
                maxBytes=max_bytes if max_bytes is not None else cfg.LOG_MAX_BYTES,
                backupCount=backup_count if backup_count is not None else cfg.LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
        except OSError as exc:
            self._logger.warning(
                "Could not open log file '%s' (%s); logging to console only.", path, exc,
            )
        else:
            rotating.setFormatter(formatter)
            self._logger.addHandler(rotating)

    @property
    def logger(self) -> logging.Logger:
        """Access the underlying ``logging.Logger`` directly."""
        return self._logger

    @property
    def context(self) -> dict[str, object]:
        return dict(self._context)

    def bind(self, **context: object) -> "StructuredLogger":
        """Return a logger on the same channel that adds *context* to every line."""
        bound = StructuredLogger.__new__(StructuredLogger)
        bound._logger = self._logger
        bound._context = {**self._context, **context}
        bound._adapter = _ContextAdapter(self._logger, bound._context)
        return bound

    # -- Delegates ------------------------------------------------------------

    def debug(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._adapter.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._adapter.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._adapter.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._adapter.error(msg, *args, **kwargs)

    def critical(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._adapter.critical(msg, *args, **kwargs)


def get_logger(name: str = "spark_comex") -> StructuredLogger:
    """Logger with configured level and file; see ``StructuredLogger``."""
    return StructuredLogger(name=name)
