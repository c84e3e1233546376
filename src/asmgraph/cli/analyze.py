"""asmgraph analyze command - generate listings, parse and merge them."""

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from asmgraph.analysis import AnalysisResult, analyze_build
from asmgraph.build import load_compile_commands, select_commands
from asmgraph.cli.query import render_ranking
from asmgraph.cli.utils import cli_errors, get_state, snapshot_path
from asmgraph.config import resolve_project_path
from asmgraph.core.logging import get_log_file_path
from asmgraph.core.progress import pluralize, status, task
from asmgraph.graph import rank_by_instructions, write_snapshot


def finish_run(result: AnalysisResult, path: Path, *, limit: int) -> None:
    """Write the snapshot, print per-object totals and fail if any object failed."""
    write_snapshot(result.knowledge, path)
    status(escape(f"Wrote snapshot {path}"), style="success")

    if result.summaries:
        table = Table(title="Objects", title_justify="left")
        table.add_column("Object")
        table.add_column("Functions", justify="right")
        table.add_column("Instructions", justify="right", style="cyan")
        table.add_column("Calls", justify="right")
        table.add_column("Indirect", justify="right", style="dim")
        table.add_column("Skipped", justify="right", style="dim")
        for summary in result.summaries:
            table.add_row(
                escape(summary.path),
                str(len(summary.functions)),
                str(summary.instructions),
                str(summary.calls),
                str(summary.indirect_calls),
                str(summary.dropped_calls + summary.malformed_directives),
            )
        Console().print(table)

    ranked = rank_by_instructions(result.knowledge)[:limit]
    if ranked:
        render_ranking(result.knowledge, ranked, title="Functions by instruction count")

    for failure in result.failures:
        status(escape(f"{failure.object_path}: {failure.error}"), style="error")
    if not result.ok:
        log_file = get_log_file_path()
        if log_file is not None:
            status(escape(f"Details in {log_file}"), style="info")
        raise click.ClickException(
            f"{pluralize(len(result.failures), 'object')} failed; "
            "the snapshot holds the objects that succeeded"
        )


@click.command()
@click.argument(
    "compile_commands",
    required=False,
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "-o",
    "--object",
    "outputs",
    multiple=True,
    help="Object output to analyze, as named in the database (repeatable)",
)
@click.option("--all", "all_objects", is_flag=True, help="Analyze every entry in the database")
@click.option("-j", "--jobs", type=click.IntRange(min=1), default=None, help="Parallel compilers")
@click.option("--keep-assembly", is_flag=True, help="Keep generated listings")
@click.option(
    "--snapshot",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Snapshot file (default: storage.snapshot_path)",
)
@click.option("-n", "--limit", type=click.IntRange(min=1), default=None, help="Ranking rows")
@click.pass_context
def analyze_command(
    ctx: click.Context,
    compile_commands: Path | None,
    outputs: tuple[str, ...],
    all_objects: bool,
    jobs: int | None,
    keep_assembly: bool,
    snapshot: Path | None,
    limit: int | None,
) -> None:
    """Compile objects to assembly and build the cross-object call graph.

    COMPILE_COMMANDS defaults to build.compile_commands, then to
    compile_commands.json in the project root.
    """
    if bool(outputs) == all_objects:
        raise click.UsageError("Name objects with -o/--object or pass --all (not both)")

    root, config = get_state(ctx)
    build_overrides: dict[str, object] = {}
    if jobs is not None:
        build_overrides["jobs"] = jobs
    if keep_assembly:
        build_overrides["keep_assembly"] = True
    if build_overrides:
        config = config.model_copy(
            update={"build": config.build.model_copy(update=build_overrides)}
        )

    if compile_commands is None:
        compile_commands = resolve_project_path(
            root, config.build.compile_commands or "compile_commands.json"
        )

    with cli_errors():
        commands = select_commands(
            load_compile_commands(compile_commands), None if all_objects else list(outputs)
        )
    if not commands:
        raise click.ClickException(f"No entry in {compile_commands} names an object output")

    with task(f"Analyzing {pluralize(len(commands), 'object')}"):
        result = analyze_build(commands, config=config)

    finish_run(
        result,
        snapshot_path(root, config, snapshot),
        limit=limit or config.query.hot_limit,
    )
