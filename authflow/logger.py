"""
Structured JSON Logging.

Every auth flow event (submit, redirect, classified failure, usage
event) is written as one JSON object per line: to stdout always, and to
a size-rotated file when ``LOG_FILE`` is set.  Services never call
``logging.getLogger`` themselves; they receive a ``StructuredLogger``
through their constructor.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, TextIO

# Attributes every LogRecord carries; anything else came in via ``extra=``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    logging.LogRecord("", logging.NOTSET, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """Render a record as a single-line JSON object.

    Keys: ``timestamp`` (UTC, ISO-8601), ``level``, ``logger_name``,
    ``message``; ``extra`` when the caller passed structured context,
    ``exception`` when the record carries a traceback.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger_name": record.name,
            "message": record.getMessage(),
        }

        context = {
            key: str(value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
        }
        if context:
            entry["extra"] = context

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exception"] = record.exc_text

        return json.dumps(entry, ensure_ascii=False)


class StructuredLogger:
    """Constructor-injected wrapper around a JSON-configured ``logging.Logger``.

    Parameters
    ----------
    name:
        Logger name, e.g. ``"authflow.dispatcher"``.
    level:
        Threshold; defaults to ``LOG_LEVEL`` from the configuration.
    stream:
        Console stream; defaults to ``sys.stdout``.
    log_file:
        Rotating log file path.  ``""`` disables file output; ``None``
        uses ``LOG_FILE`` from the configuration.
    max_bytes, backup_count:
        Rotation policy; default to ``LOG_MAX_BYTES`` / ``LOG_BACKUP_COUNT``.

    Handlers are attached once per logger name, so building several
    ``StructuredLogger`` objects for the same name does not duplicate
    output.
    """

    def __init__(
        self,
        name: str = "authflow",
        level: Optional[int] = None,
        stream: Optional[TextIO] = None,
        log_file: Optional[str] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
    ) -> None:
        # Imported here: authflow.config logs through the stdlib on import.
        from authflow.config import get_config
        cfg = get_config()

        self._level: int = level if level is not None else cfg.log_level
        self._logger: logging.Logger = logging.getLogger(name)
        self._logger.setLevel(self._level)

        if self._logger.handlers:
            return

        formatter = JSONFormatter()
        self._attach(logging.StreamHandler(stream or sys.stdout), formatter)

        path = log_file if log_file is not None else cfg.LOG_FILE
        if path:
            self._attach_file(
                Path(path),
                formatter,
                max_bytes if max_bytes is not None else cfg.LOG_MAX_BYTES,
                backup_count if backup_count is not None else cfg.LOG_BACKUP_COUNT,
            )

    # ------------------------------------------------------------------
    # Handler setup
    # ------------------------------------------------------------------

    def _attach(self, handler: logging.Handler, formatter: logging.Formatter) -> None:
        handler.setLevel(self._level)
        handler.setFormatter(formatter)
        self._logger.addHandler(handler)

    def _attach_file(
        self,
        path: Path,
        formatter: logging.Formatter,
        max_bytes: int,
        backup_count: int,
    ) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                filename=str(path),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        except OSError as exc:
            self._logger.warning(
                "Log file '%s' unavailable (%s); logging to console only.", path, exc,
            )
            return
        self._attach(handler, formatter)

    # ------------------------------------------------------------------
    # Logging API
    # ------------------------------------------------------------------

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def debug(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.error(msg, *args, **kwargs)

    def critical(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.critical(msg, *args, **kwargs)


def get_logger(name: str = "authflow") -> StructuredLogger:
    """``StructuredLogger`` for *name* with every setting taken from config."""
    return StructuredLogger(name=name)
