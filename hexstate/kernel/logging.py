"""Loguru setup shared by every hexstate module.

Modules call :func:`get_logger` with ``__name__``; the first call installs a
default sink read from ``HEXSTATE_LOG_LEVEL`` / ``HEXSTATE_LOG_FORMAT`` unless
:func:`configure_logging` already ran.

Examples
--------
>>> from hexstate.kernel.logging import get_logger
>>> logger = get_logger(__name__)
>>> logger.debug("Transition {from_state} -> {to_state}", from_state="idle", to_state="running")

Switching to JSON records for log shipping::

    from hexstate.kernel.logging import configure_logging
    configure_logging(level="DEBUG", format="json")
"""

import os
import sys
from contextlib import suppress
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from loguru import Logger

from loguru import logger
from rich.logging import RichHandler

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["console", "json", "structured", "rich", "dual"]

_active_settings: dict[str, Any] | None = None
_sink_ids: list[int] = []


def configure_logging(
    level: LogLevel = "INFO",
    format: LogFormat = "structured",
    output_file: str | Path | None = None,
    use_color: bool = True,
    include_timestamp: bool = True,
    force_reconfigure: bool = False,
    backtrace: bool = True,
    diagnose: bool = True,
) -> None:
    """Install hexstate's Loguru sinks, replacing any it installed before.

    Sinks added by callers (test capture, application handlers) are left
    alone. Repeating a call with identical settings is a no-op.

    Parameters
    ----------
    level : LogLevel, default="INFO"
        Minimum level emitted
    format : LogFormat, default="structured"
        ``console`` plain text, ``json`` serialized records on stderr,
        ``structured`` colored Loguru lines, ``rich`` a Rich handler, or
        ``dual`` for Rich on stderr plus JSON on stdout
    output_file : str | Path | None, default=None
        Extra rotating JSON file sink
    use_color : bool, default=True
        Colorize ``structured`` output when stderr is a TTY
    include_timestamp : bool, default=True
        Prefix lines with the time
    force_reconfigure : bool, default=False
        Rebuild sinks even if the settings did not change
    backtrace, diagnose : bool, default=True
        Passed through to Loguru; disable ``diagnose`` in production
    """
    global _active_settings

    settings = {
        "level": level,
        "format": format,
        "output_file": str(output_file) if output_file else None,
        "use_color": use_color,
        "include_timestamp": include_timestamp,
        "backtrace": backtrace,
        "diagnose": diagnose,
    }
    if settings == _active_settings and not force_reconfigure:
        return

    for sink_id in _sink_ids:
        with suppress(ValueError):
            logger.remove(sink_id)
    _sink_ids.clear()

    common = {"level": level, "backtrace": backtrace, "diagnose": diagnose}
    time_prefix = "{time:YYYY-MM-DD HH:mm:ss} " if include_timestamp else ""

    if format in ("rich", "dual"):
        handler = RichHandler(rich_tracebacks=True, markup=False, show_time=include_timestamp)
        _sink_ids.append(logger.add(handler, format="{message}", **common))
        if format == "dual":
            _sink_ids.append(logger.add(sys.stdout, serialize=True, **common))
    elif format == "json":
        _sink_ids.append(logger.add(sys.stderr, serialize=True, **common))
    elif format == "structured":
        colorize = use_color and sys.stderr.isatty()
        line = (
            f"<green>{time_prefix}</green>[<level>{{level: <8}}</level>]"
            "<cyan>{extra[module]}:{function}:{line}</cyan> | <level>{message}</level>"
        )
        _sink_ids.append(
            logger.add(
                sys.stderr, format=line, colorize=colorize, filter=_ensure_module_extra, **common
            )
        )
    else:
        line = f"{time_prefix}{{level: <8}} | {{name}} | {{message}}"
        _sink_ids.append(logger.add(sys.stderr, format=line, colorize=False, **common))

    if output_file:
        path = Path(output_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        _sink_ids.append(
            logger.add(
                path,
                serialize=True,
                rotation="10 MB",
                retention="1 week",
                compression="zip",
                **common,
            )
        )

    _active_settings = settings


def _ensure_module_extra(record: dict) -> bool:
    # Unbound loggers have no "module" extra
    record["extra"].setdefault("module", record["name"])
    return True


@lru_cache(maxsize=256)
def get_logger(name: str) -> "Logger":
    """Return the shared Loguru logger bound with ``module=name``."""
    if _active_settings is None:
        configure_logging(
            level=os.getenv("HEXSTATE_LOG_LEVEL", "INFO").upper(),  # type: ignore[arg-type]
            format=os.getenv("HEXSTATE_LOG_FORMAT", "structured").lower(),  # type: ignore[arg-type]
        )
    return logger.bind(module=name)


__all__ = ["LogFormat", "LogLevel", "configure_logging", "get_logger"]
