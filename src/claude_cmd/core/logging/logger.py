"""
Structured logging for claude-cmd.

Loggers handed out by :func:`get_logger` wrap the standard library logger of
the same name and accept an optional ``data`` mapping with each call. The
mapping is rendered after the message as ``key=value`` pairs so that cache and
install events stay greppable:

    logger.debug("Cache hit", data={"key": "manifest-en", "age_ms": 120})
    # -> Cache hit (key=manifest-en age_ms=120)

Nothing is emitted until :func:`configure_logging` attaches a handler (the
CLI does this at startup); library users may configure the ``claude_cmd``
logger themselves instead.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from rich.logging import RichHandler

from claude_cmd.ui.console import error_console

ROOT_LOGGER_NAME = "claude_cmd"

_loggers: dict[str, "Logger"] = {}


class _ClaudeCmdHandler(RichHandler):
    """Marker subclass so repeated configuration replaces our own handler only."""


class Logger:
    """Thin wrapper over :class:`logging.Logger` adding the ``data`` keyword."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._logger = logging.getLogger(name)

    def debug(self, message: str, data: Mapping[str, Any] | None = None) -> None:
        self._log(logging.DEBUG, message, data)

    def info(self, message: str, data: Mapping[str, Any] | None = None) -> None:
        self._log(logging.INFO, message, data)

    def warning(self, message: str, data: Mapping[str, Any] | None = None) -> None:
        self._log(logging.WARNING, message, data)

    def error(self, message: str, data: Mapping[str, Any] | None = None) -> None:
        self._log(logging.ERROR, message, data)

    def exception(self, message: str, data: Mapping[str, Any] | None = None) -> None:
        self._log(logging.ERROR, message, data, exc_info=True)

    def _log(
        self,
        level: int,
        message: str,
        data: Mapping[str, Any] | None,
        *,
        exc_info: bool = False,
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return
        # stacklevel 3 attributes the record to the caller, not this wrapper
        self._logger.log(level, format_message(message, data), exc_info=exc_info, stacklevel=3)


def format_message(message: str, data: Mapping[str, Any] | None = None) -> str:
    if not data:
        return message
    rendered = " ".join(f"{key}={value}" for key, value in data.items())
    return f"{message} ({rendered})"


def get_logger(name: str) -> Logger:
    logger = _loggers.get(name)
    if logger is None:
        logger = Logger(name)
        _loggers[name] = logger
    return logger


def configure_logging(level: str | int = "warning") -> None:
    """Attach a Rich handler to the ``claude_cmd`` logger at the given level."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            resolved = logging.WARNING
    else:
        resolved = level

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(resolved)
    for handler in list(root.handlers):
        if isinstance(handler, _ClaudeCmdHandler):
            root.removeHandler(handler)

    handler = _ClaudeCmdHandler(
        console=error_console,
        show_path=False,
        show_time=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setLevel(resolved)
    root.addHandler(handler)
