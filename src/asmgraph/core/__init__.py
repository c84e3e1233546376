"""Core module exports."""

from asmgraph.core.errors import (
    AsmGraphError,
    AsmParseError,
    BuildError,
    ConfigError,
    ErrorCode,
    InternalError,
    QueryError,
)
from asmgraph.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)
from asmgraph.core.progress import pluralize, progress, status, task

__all__ = [
    # Errors
    "AsmGraphError",
    "AsmParseError",
    "BuildError",
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "QueryError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
    # Progress
    "pluralize",
    "progress",
    "status",
    "task",
]
