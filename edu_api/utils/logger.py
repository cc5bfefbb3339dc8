from __future__ import annotations

import copy
import logging
import os
import sys
import time
import uuid
from contextvars import ContextVar, Token
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from edu_api.config import settings
from edu_api.errors import CoreError

LOGGER_NAME = "edu_api"

# Correlates every line logged while one core operation runs.
OPERATION_ID: ContextVar[str] = ContextVar("operation_id", default="-")


class OperationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.operation_id = OPERATION_ID.get()
        return True


class LevelColorFormatter(logging.Formatter):
    """Console formatter that paints the level name. Everything else is left plain."""

    LEVEL_COLORS: dict[str, int] = {
        "DEBUG": 36,
        "INFO": 32,
        "WARNING": 33,
        "ERROR": 31,
        "CRITICAL": 35,
    }

    def __init__(self, fmt: str | None = None, datefmt: str | None = None, *, color: bool = True):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.color = color

    def formatMessage(self, record: logging.LogRecord) -> str:
        code = self.LEVEL_COLORS.get(record.levelname)
        if not self.color or code is None:
            return super().formatMessage(record)
        painted = copy.copy(record)
        painted.levelname = f"\x1b[{code}m{record.levelname}\x1b[0m"
        return super().formatMessage(painted)


def _use_color(stream) -> bool:
    if os.getenv("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty()) if callable(isatty) else False


def _parse_level(level: str) -> int:
    lvl = (level or "INFO").upper()
    return logging.getLevelNamesMapping().get(lvl, logging.INFO)


def configure_logging(
    *,
    log_dir: str | Path | None = None,
    log_file: str = "edu_api.log",
    level: str | None = None,
    console: bool | None = None,
) -> logging.Logger:
    """
    Configure a rotating file logger under LOG_DIR and, optionally, a console logger.
    Idempotent: safe to call multiple times.
    """

    logger = logging.getLogger(LOGGER_NAME)
    if getattr(logger, "_configured", False):
        return logger

    numeric_level = _parse_level(level or settings.log_level)
    log_dir = Path(log_dir or settings.log_dir)
    console = settings.log_to_console if console is None else console

    logger.setLevel(numeric_level)
    logger.propagate = False

    log_dir.mkdir(parents=True, exist_ok=True)
    file_path = log_dir / log_file

    fmt = (
        "%(asctime)s %(levelname)-8s %(name)s "
        "pid=%(process)d op=%(operation_id)s src=%(filename)s:%(lineno)d "
        "%(message)s"
    )
    datefmt = "%Y-%m-%d %H:%M:%S"
    op_filter = OperationIdFilter()

    fh = RotatingFileHandler(
        filename=str(file_path),
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=10,
        encoding="utf-8",
    )
    fh.setLevel(numeric_level)
    fh.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))
    fh.addFilter(op_filter)
    logger.addHandler(fh)

    if console:
        ch = logging.StreamHandler(sys.stdout)
        ch.setLevel(numeric_level)
        ch.setFormatter(
            LevelColorFormatter(fmt=fmt, datefmt=datefmt, color=_use_color(sys.stdout))
        )
        ch.addFilter(op_filter)
        logger.addHandler(ch)

    logger._configured = True  # type: ignore[attr-defined]
    return logger


def bind_operation_id(operation_id: Optional[str] = None) -> Token:
    """Bind an operation id for the current context. Pass the token to OPERATION_ID.reset()."""
    return OPERATION_ID.set(operation_id or uuid.uuid4().hex[:12])


def current_operation_id() -> str:
    return OPERATION_ID.get()


class log_request:
    """
    Small helper to time core operations:
      with log_request(logger, "complete_module"):
          ...
    Binds a fresh operation id unless the caller already bound one.
    Domain errors are logged as warnings, anything else with a traceback.
    """

    def __init__(self, logger: logging.Logger, name: str):
        self.logger = logger
        self.name = name
        self.start = 0.0
        self._token: Optional[Token] = None

    def __enter__(self):
        if OPERATION_ID.get() == "-":
            self._token = bind_operation_id()
        self.start = time.monotonic()
        self.logger.debug("start %s", self.name)
        return self

    def __exit__(self, exc_type, exc, tb):
        dur_ms = int((time.monotonic() - self.start) * 1000)
        try:
            if exc is None:
                self.logger.info("%s ok duration_ms=%s", self.name, dur_ms)
            elif isinstance(exc, CoreError) and exc.status_code < 500:
                self.logger.warning("%s rejected code=%s duration_ms=%s", self.name, exc.kind.value, dur_ms)
            else:
                self.logger.error("%s failed duration_ms=%s", self.name, dur_ms, exc_info=(exc_type, exc, tb))
        finally:
            if self._token is not None:
                OPERATION_ID.reset(self._token)
                self._token = None
        return False
