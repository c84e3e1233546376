"""Structured logging for analysis runs.

Every event carries a timestamp, its level, the logger name and the id of the
run that produced it, so log lines from parallel object workers can be tied
back to one ``asmgraph analyze`` invocation. Each configured output has its own
level and renderer. Console outputs go quiet while a progress bar is drawn.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from asmgraph.config.models import LoggingConfig, LogOutputConfig

_run_id: ContextVar[str | None] = ContextVar("run_id", default=None)

# First file output of the active configuration; failure hints point here
_log_file: Path | None = None


def get_run_id() -> str | None:
    return _run_id.get()


def set_run_id(run_id: str | None = None) -> str:
    """Bind ``run_id``, or a fresh 12-hex id, to the current context."""
    rid = run_id or uuid4().hex[:12]
    _run_id.set(rid)
    return rid


def clear_run_id() -> None:
    _run_id.set(None)


def get_log_file_path() -> Path | None:
    """File the current configuration writes to, if any."""
    return _log_file


def _add_run_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    rid = _run_id.get()
    if rid is not None:
        event_dict.setdefault("run_id", rid)
    return event_dict


_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
    _add_run_id,  # type: ignore[list-item]
]


def _level(name: str | None, default: int) -> int:
    if not name:
        return default
    return logging.getLevelNamesMapping().get(name.upper(), default)


class ConsoleSuppressingFilter(logging.Filter):
    """Drop console records while a progress bar owns the terminal."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: ARG002
        # progress imports this module
        from asmgraph.core.progress import is_console_suppressed

        return not is_console_suppressed()


def _handler(output: LogOutputConfig) -> logging.Handler:
    if output.destination in ("stderr", "stdout"):
        stream_handler = logging.StreamHandler(getattr(sys, output.destination))
        stream_handler.addFilter(ConsoleSuppressingFilter())
        return stream_handler

    path = Path(output.destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a", encoding="utf-8")


def _formatter(output: LogOutputConfig, handler: logging.Handler) -> logging.Formatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        stream = getattr(handler, "stream", None)
        colors = not isinstance(handler, logging.FileHandler) and bool(
            stream is not None and stream.isatty()
        )
        renderer = structlog.dev.ConsoleRenderer(colors=colors, pad_event_to=0, pad_level=False)
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=_SHARED_PROCESSORS,
    )


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Route structlog through stdlib handlers, one per configured output.

    Without ``config`` a single stderr output is used, rendered as JSON when
    ``json_format`` is set. Existing root handlers are closed and replaced, so
    this may be called once per command invocation.
    """
    global _log_file
    from asmgraph.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,  # type: ignore[arg-type]
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )
    root_level = _level(config.level, logging.INFO)

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Level changes must apply to loggers created before reconfiguration
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
        existing.close()
    root.setLevel(root_level)

    _log_file = None
    for output in config.outputs:
        handler = _handler(output)
        handler.setLevel(_level(output.level, root_level))
        handler.setFormatter(_formatter(output, handler))
        root.addHandler(handler)
        if _log_file is None and isinstance(handler, logging.FileHandler):
            _log_file = Path(output.destination)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Logger for ``name``; the name is recorded on every event as ``logger``."""
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
