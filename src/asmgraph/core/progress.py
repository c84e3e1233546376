"""Terminal feedback for analysis runs: status lines, timed tasks, progress bars.

Everything here writes to stderr so that tables and ``--json`` output on
stdout stay clean. Bars are drawn only on a TTY; in pipes and CI the same
calls degrade to debug log events.

Usage::

    with task("Analyzing 40 objects"):
        for path, future in progress(futures, desc="Analyzing", force=True):
            merge(path, future.result())
    status("Wrote snapshot .asmgraph/graph.json", style="success")
"""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, TypeVar

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

# Below this many items a bar is only drawn when forced
_PROGRESS_THRESHOLD = 10

_console = Console(stderr=True)

_STYLES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}

# An Event, not a thread-local: compiler workers log while the main thread draws
_suppress_console_logs = threading.Event()


def is_console_suppressed() -> bool:
    return _suppress_console_logs.is_set()


@contextmanager
def suppress_console_logs() -> Iterator[None]:
    """Mute console log handlers for the duration; file handlers keep logging."""
    _suppress_console_logs.set()
    try:
        yield
    finally:
        _suppress_console_logs.clear()


def _get_logger() -> BoundLogger:
    from asmgraph.core.logging import get_logger

    return get_logger("progress")


def _is_tty() -> bool:
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print one status line to stderr.

    ``message`` is rich markup; escape user-controlled text such as symbol
    names before passing it in.
    """
    _console.print(f"{' ' * indent}{_STYLES.get(style, '')}{message}", highlight=False)
    _get_logger().debug("status", message=message, style=style)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return "1 object" / "3 objects" style counts."""
    word = singular if count == 1 else (plural or singular + "s")
    return f"{count} {word}"


@contextmanager
def _live_bar(desc: str, total: int, unit: str) -> Iterator[Callable[[], None]]:
    bar = Progress(
        TextColumn("    {task.description}:"),
        BarColumn(bar_width=25, style="cyan", complete_style="cyan"),
        TaskProgressColumn(),
        TextColumn("{task.completed}/{task.total} {task.fields[unit]}"),
        console=_console,
        transient=True,
    )
    with suppress_console_logs(), bar:
        task_id = bar.add_task(desc, total=total, unit=unit)
        yield lambda: bar.advance(task_id)


T = TypeVar("T")


def progress(
    iterable: Iterable[T],
    *,
    desc: str | None = None,
    total: int | None = None,
    unit: str = "objects",
    force: bool = False,
) -> Iterator[T]:
    """Yield from ``iterable``, drawing a bar on a TTY.

    The bar needs a known total (``total`` or ``len(iterable)``) and more than
    a handful of items unless ``force`` is set.
    """
    if total is None and hasattr(iterable, "__len__"):
        total = len(iterable)  # type: ignore[arg-type]

    if _is_tty() and total is not None and (force or total > _PROGRESS_THRESHOLD):
        with _live_bar(desc or "Processing", total, unit) as advance:
            for item in iterable:
                yield item
                advance()
        return

    log = _get_logger()
    log.debug("progress_start", desc=desc, total=total)
    yield from iterable
    log.debug("progress_done", desc=desc, total=total)


@contextmanager
def task(name: str) -> Iterator[None]:
    """Announce a step, then report it done with its duration or failed.

    Exceptions are reported and re-raised.
    """
    log = _get_logger()
    status(f"{name}...", style="none")
    start = time.perf_counter()
    try:
        yield
    except Exception as e:
        elapsed = time.perf_counter() - start
        status(f"{name} failed: {escape(str(e))}", style="error")
        log.error("task_failed", task=name, elapsed_s=round(elapsed, 3), error=str(e))
        raise
    elapsed = time.perf_counter() - start
    status(f"{name} ({elapsed:.1f}s)", style="success")
    log.debug("task_done", task=name, elapsed_s=round(elapsed, 3))
