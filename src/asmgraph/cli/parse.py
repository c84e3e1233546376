"""asmgraph parse command - parse listings that already exist."""

from pathlib import Path

import click
from rich.markup import escape

from asmgraph.analysis import parse_listings
from asmgraph.cli.analyze import finish_run
from asmgraph.cli.utils import get_state, load_knowledge, snapshot_path
from asmgraph.core.progress import pluralize, status, task
from asmgraph.graph import KnowledgeBase


@click.command()
@click.argument(
    "listings",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--snapshot",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Snapshot file (default: storage.snapshot_path)",
)
@click.option("--append", is_flag=True, help="Merge into the existing snapshot")
@click.option("-n", "--limit", type=click.IntRange(min=1), default=None, help="Ranking rows")
@click.pass_context
def parse_command(
    ctx: click.Context,
    listings: tuple[Path, ...],
    snapshot: Path | None,
    append: bool,
    limit: int | None,
) -> None:
    """Parse assembly LISTINGS into the call graph.

    Each listing path is the identity of its object.
    """
    root, config = get_state(ctx)
    path = snapshot_path(root, config, snapshot)

    knowledge: KnowledgeBase | None = None
    if append and path.is_file():
        knowledge = load_knowledge(path)
        status(
            escape(f"Appending to {path} ({pluralize(len(knowledge.objects()), 'object')})"),
            style="info",
        )

    with task(f"Parsing {pluralize(len(listings), 'listing')}"):
        result = parse_listings(list(listings), config=config, knowledge=knowledge)

    finish_run(result, path, limit=limit or config.query.hot_limit)
