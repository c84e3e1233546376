"""CLI utilities."""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import click

from asmgraph.config import AsmGraphConfig, load_config, resolve_project_path
from asmgraph.core.errors import AsmGraphError
from asmgraph.graph import FunctionId, KnowledgeBase, LocalSymbol, describe, read_snapshot


@contextmanager
def cli_errors() -> Iterator[None]:
    """Turn domain errors into click errors with the typed code in the message."""
    try:
        yield
    except AsmGraphError as e:
        raise click.ClickException(str(e)) from e


def get_state(ctx: click.Context) -> tuple[Path, AsmGraphConfig]:
    """Project root and config set up by the group callback.

    Falls back to the current directory when a command is invoked on its own.
    """
    obj = ctx.find_object(dict) or {}
    root: Path = obj.get("root") or Path.cwd().resolve()
    config: AsmGraphConfig | None = obj.get("config")
    if config is None:
        with cli_errors():
            config = load_config(root)
    return root, config


def snapshot_path(root: Path, config: AsmGraphConfig, override: Path | None) -> Path:
    """Explicit --snapshot path, else the configured one under the project root."""
    if override is not None:
        return override
    return resolve_project_path(root, config.storage.snapshot_path)


def load_knowledge(path: Path) -> KnowledgeBase:
    """Read a snapshot, reporting a missing or broken file as a CLI error."""
    with cli_errors():
        return read_snapshot(path)


def function_row(knowledge: KnowledgeBase, fid: FunctionId) -> dict[str, Any]:
    """JSON-friendly description of one function."""
    key = knowledge.function_key(fid)
    return {
        "id": fid,
        "name": key.name,
        "kind": "local" if isinstance(key, LocalSymbol) else "global",
        "object": knowledge.object_path(key.object_id) if isinstance(key, LocalSymbol) else None,
        "label": describe(knowledge, fid),
        "instructions": knowledge.instruction_count(fid),
    }
