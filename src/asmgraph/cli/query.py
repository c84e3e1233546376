"""asmgraph hot / common / report commands - read-only queries over a snapshot."""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from asmgraph.cli.utils import cli_errors, function_row, get_state, load_knowledge, snapshot_path
from asmgraph.graph import (
    FunctionId,
    KnowledgeBase,
    describe,
    find_functions,
    function_report,
    functions_in_all_objects,
    rank_by_instructions,
)

_SNAPSHOT_OPTION = click.option(
    "--snapshot",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Snapshot file (default: storage.snapshot_path)",
)


def _label(knowledge: KnowledgeBase, fid: FunctionId) -> str:
    return escape(describe(knowledge, fid))


def render_ranking(
    knowledge: KnowledgeBase, ranked: list[tuple[FunctionId, int]], *, title: str
) -> None:
    """Print a ranked function table to stdout."""
    table = Table(title=title, title_justify="left")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Function")
    table.add_column("Instructions", justify="right", style="cyan")
    for rank, (fid, count) in enumerate(ranked, start=1):
        table.add_row(str(rank), _label(knowledge, fid), str(count))
    Console().print(table)


@click.command()
@_SNAPSHOT_OPTION
@click.option("-n", "--limit", type=click.IntRange(min=1), default=None, help="Rows to show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def hot_command(ctx: click.Context, snapshot: Path | None, limit: int | None, as_json: bool) -> None:
    """Rank functions by instruction count, largest first."""
    root, config = get_state(ctx)
    knowledge = load_knowledge(snapshot_path(root, config, snapshot))
    ranked = rank_by_instructions(knowledge)[: limit or config.query.hot_limit]

    if as_json:
        click.echo(json.dumps([function_row(knowledge, fid) for fid, _ in ranked], indent=2))
        return
    if not ranked:
        click.echo("No functions with instructions.")
        return
    render_ranking(knowledge, ranked, title="Functions by instruction count")


@click.command()
@_SNAPSHOT_OPTION
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def common_command(ctx: click.Context, snapshot: Path | None, as_json: bool) -> None:
    """List functions defined in every parsed object."""
    root, config = get_state(ctx)
    knowledge = load_knowledge(snapshot_path(root, config, snapshot))
    common = functions_in_all_objects(knowledge)

    if as_json:
        click.echo(json.dumps([function_row(knowledge, fid) for fid in common], indent=2))
        return
    if not common:
        click.echo("No function is defined in every object.")
        return

    table = Table(
        title=f"Defined in all {len(knowledge.parsed_objects())} objects", title_justify="left"
    )
    table.add_column("Function")
    table.add_column("Instructions", justify="right", style="cyan")
    for fid in common:
        table.add_row(_label(knowledge, fid), str(knowledge.instruction_count(fid)))
    Console().print(table)


@click.command()
@click.argument("name")
@click.option("--object", "object_path", default=None, help="Only the function defined in OBJECT")
@_SNAPSHOT_OPTION
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def report_command(
    ctx: click.Context,
    name: str,
    object_path: str | None,
    snapshot: Path | None,
    as_json: bool,
) -> None:
    """Show defining objects, callers and callees of NAME.

    Every identity with that name is reported: the global symbol and any
    object-local symbols.
    """
    root, config = get_state(ctx)
    knowledge = load_knowledge(snapshot_path(root, config, snapshot))
    with cli_errors():
        reports = [
            function_report(knowledge, fid)
            for fid in find_functions(knowledge, name, object_path=object_path)
        ]

    if as_json:
        payload = []
        for report in reports:
            row = function_row(knowledge, report.function)
            row["defined_in"] = [knowledge.object_path(oid) for oid in report.defined_in]
            row["callers"] = [describe(knowledge, fid) for fid in report.callers]
            row["callees"] = [describe(knowledge, fid) for fid in report.callees]
            payload.append(row)
        click.echo(json.dumps(payload, indent=2))
        return

    console = Console()
    for report in reports:
        table = Table(
            title=f"{_label(knowledge, report.function)}: "
            f"{report.instructions} instructions",
            title_justify="left",
            show_header=False,
        )
        table.add_column("Relation", style="bold")
        table.add_column("Entries")
        table.add_row(
            "defined in",
            "\n".join(escape(knowledge.object_path(oid)) for oid in report.defined_in) or "-",
        )
        table.add_row(
            "callers", "\n".join(_label(knowledge, fid) for fid in report.callers) or "-"
        )
        table.add_row(
            "callees", "\n".join(_label(knowledge, fid) for fid in report.callees) or "-"
        )
        console.print(table)
