"""Config module exports."""

from asmgraph.config.loader import load_config, resolve_project_path
from asmgraph.config.models import (
    AsmGraphConfig,
    BuildConfig,
    LoggingConfig,
    ParseConfig,
    QueryConfig,
    StorageConfig,
)

__all__ = [
    "load_config",
    "resolve_project_path",
    "AsmGraphConfig",
    "BuildConfig",
    "LoggingConfig",
    "ParseConfig",
    "QueryConfig",
    "StorageConfig",
]
