"""Logging pipeline: structlog front-end routed into loguru sinks.

Modules call ``get_logger(__name__)`` and log with keyword context. The first
logger handed out configures a stderr sink plus a rotating file under the
cache directory; hosts reconfigure from :class:`Settings` through
:func:`configure_from_settings`.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING, Literal, Optional, cast

import structlog
from loguru import logger as loguru_logger
from structlog.exceptions import DropEvent
from structlog.stdlib import BoundLogger
from structlog.typing import EventDict, WrappedLogger

from principal_console.config.settings import log_dir

from .sanitize import sanitize_log_message

if TYPE_CHECKING:
    from principal_console.config.settings import Settings


LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {message} | {extra}"
DEFAULT_LOG_FILENAME = "principal-console.log"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


@dataclass(slots=True)
class LoggingOptions:
    level: LogLevel = "INFO"
    debug: bool = False
    console: bool = True
    rotation: str = "10 MB"
    retention: str = "14 days"
    log_path: Optional[Path] = None

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: object) -> LoggingOptions:
        options = cls(level=cast(LogLevel, settings.log_level))
        return replace(options, **overrides) if overrides else options

    @property
    def console_level(self) -> str:
        return "DEBUG" if self.debug else self.level


_configured_log_path: Optional[Path] = None
_is_configured = False


def configure_logging(options: LoggingOptions | None = None) -> Path:
    """Install the loguru sinks and the structlog processor chain.

    Safe to call repeatedly; each call replaces the previous sinks. Returns
    the path of the file sink.
    """

    global _configured_log_path, _is_configured

    opts = options or LoggingOptions()
    log_path = opts.log_path or (log_dir() / DEFAULT_LOG_FILENAME)

    loguru_logger.remove()
    if opts.console:
        loguru_logger.add(
            sys.stderr,
            level=opts.console_level,
            colorize=True,
            enqueue=True,
            backtrace=opts.debug,
            diagnose=opts.debug,
            format=LOG_FORMAT,
        )
    # The file keeps debug records regardless of the console threshold.
    loguru_logger.add(
        log_path,
        level="DEBUG",
        rotation=opts.rotation,
        retention=opts.retention,
        enqueue=True,
        encoding="utf-8",
        format=LOG_FORMAT,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            _sanitize_event,
            _log_to_loguru,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        cache_logger_on_first_use=False,
    )

    _configured_log_path = log_path
    _is_configured = True
    return log_path


def configure_from_settings(settings: Settings, **overrides: object) -> Path:
    return configure_logging(LoggingOptions.from_settings(settings, **overrides))


def _sanitize_event(
    _: WrappedLogger,
    __: str,
    event_dict: EventDict,
) -> EventDict:
    event = event_dict.get("event")
    if isinstance(event, str):
        event_dict["event"] = sanitize_log_message(event)
    return event_dict


def _log_to_loguru(
    _: WrappedLogger,
    __: str,
    event_dict: EventDict,
) -> EventDict:
    level = str(event_dict.pop("level", "INFO")).upper()
    event = event_dict.pop("event", "")
    event_dict.pop("timestamp", None)
    exception = event_dict.pop("exception", None)
    bound = loguru_logger.bind(**event_dict)
    if exception:
        event = f"{event}\n{exception}"
    bound.opt(depth=6).log(level, event)
    raise DropEvent


def get_logger(name: str | None = None, **initial_kw: object) -> BoundLogger:
    """Return a structlog logger carrying ``name`` as its ``logger_name`` field."""

    if not _is_configured:
        configure_logging()
    if name:
        initial_kw.setdefault("logger_name", name)
    return cast(BoundLogger, structlog.get_logger(**initial_kw))


def log_file_path() -> Path:
    if _configured_log_path is None:
        return configure_logging()
    return _configured_log_path


__all__ = [
    "LoggingOptions",
    "configure_from_settings",
    "configure_logging",
    "get_logger",
    "log_file_path",
]
