"""Logging utilities for commitreplay runs."""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List

_LOGGER_NAME = "commitreplay"
_CONSOLE_FORMAT = "[commitreplay] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class StreamType(Enum):
    """Destination of one logging channel."""

    SYSTEM = "system"
    FILE = "file"
    NONE = "none"

    @classmethod
    def parse(cls, value: str) -> "StreamType":
        normalised = value.strip().lower()
        for member in cls:
            if member.value == normalised:
                return member
        allowed = ", ".join(member.value for member in cls)
        raise ValueError(f"Unknown stream type '{value}'. Allowed values: {allowed}")


class _ChannelFilter(logging.Filter):
    """Passes standard (INFO and above) and/or debug (below INFO) records."""

    def __init__(self, channels: List[str]) -> None:
        super().__init__()
        self.standard = "standard" in channels
        self.debug = "debug" in channels

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= logging.INFO:
            return self.standard
        return self.debug


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the commitreplay hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def default_log_file(output_directory: Path) -> Path:
    """Return a timestamped log file path inside ``output_directory``."""
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    return output_directory / f"commitreplay_{stamp}.log"


def configure_logging(
    *,
    verbose: bool = False,
    standard_stream: StreamType = StreamType.SYSTEM,
    debug_stream: StreamType | None = None,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure the commitreplay logger with independent standard and debug channels.

    The standard channel carries INFO and above, the debug channel carries DEBUG
    records only. ``verbose`` routes debug output to the console unless an explicit
    ``debug_stream`` is given. Channels routed to ``FILE`` share ``log_file``.
    """
    if debug_stream is None:
        debug_stream = StreamType.SYSTEM if verbose else StreamType.NONE

    routes: Dict[StreamType, List[str]] = {}
    routes.setdefault(standard_stream, []).append("standard")
    routes.setdefault(debug_stream, []).append("debug")
    routes.pop(StreamType.NONE, None)
    handlers = [_build_handler(stream, channels, log_file) for stream, channels in routes.items()]

    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug_stream is not StreamType.NONE else logging.INFO)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when the CLI is invoked multiple times.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    for handler in handlers:
        logger.addHandler(handler)

    if not logger.handlers:
        # Without any handler the stdlib last-resort handler would still print warnings.
        logger.addHandler(logging.NullHandler())
    return logger


def _build_handler(stream: StreamType, channels: List[str], log_file: Path | None) -> logging.Handler:
    if stream is StreamType.SYSTEM:
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    elif log_file is None:
        raise ValueError("A log file is required when a logging channel is routed to a file")
    else:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(_FILE_FORMAT))
    handler.setLevel(logging.DEBUG)
    handler.addFilter(_ChannelFilter(channels))
    return handler


__all__ = ["StreamType", "configure_logging", "default_log_file", "get_logger"]
