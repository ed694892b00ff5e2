"""Process logging for turn pipelines.

Every record carries `extra[turn]`, the `intent|action` of the turn running in
the current task, so interleaved concurrent turns stay readable.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Callable
from logging import Handler
from typing import Any, Literal, TextIO

import loguru
from loguru import logger
from rich import get_console
from rich.logging import RichHandler

from multivocal.env import current_turn

LogProfile = Literal["default", "console"]

DEFAULT_LEVEL = "INFO"
TURN_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<7} | {extra[turn]} | {name}:{line} | {message}"


def _stderr_sink() -> TextIO:
    return sys.stderr


def _rich_sink() -> Handler:
    return RichHandler(
        console=get_console(),
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )


_SINKS: dict[LogProfile, tuple[Callable[[], Any], str]] = {
    "default": (_stderr_sink, TURN_FORMAT),
    "console": (_rich_sink, "[{extra[turn]}] {message}"),
}

_active: tuple[LogProfile, str] | None = None


def resolve_level(level: str | None = None) -> str:
    return (level or os.getenv("MULTIVOCAL_LOG_LEVEL") or DEFAULT_LEVEL).upper()


def _tag_turn(record: loguru.Record) -> None:
    record["extra"]["turn"] = current_turn()


def configure_logging(*, profile: LogProfile = "default", level: str | None = None) -> None:
    """Install the sink for `profile`; calling again with new settings replaces it."""

    global _active
    wanted = (profile, resolve_level(level))
    if wanted == _active:
        return

    build_sink, fmt = _SINKS[profile]
    logger.remove()
    logger.configure(patcher=_tag_turn)
    logger.add(build_sink(), level=wanted[1], format=fmt, backtrace=False, diagnose=False)
    _active = wanted
    logger.debug("logging.configured profile={} level={}", *wanted)


def active_logging() -> tuple[LogProfile, str] | None:
    return _active
