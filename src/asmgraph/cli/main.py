"""asmgraph CLI - asmgraph command."""

from pathlib import Path

import click

from asmgraph.cli.analyze import analyze_command
from asmgraph.cli.parse import parse_command
from asmgraph.cli.query import common_command, hot_command, report_command
from asmgraph.cli.utils import cli_errors
from asmgraph.config import load_config
from asmgraph.core.logging import configure_logging, set_run_id


@click.group()
@click.version_option(version="0.1.0", prog_name="asmgraph")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Project root for config and relative paths (default: current directory)",
)
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file to use instead of .asmgraph/config.yaml",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, root: Path, config_file: Path | None) -> None:
    """asmgraph - Call graph and instruction counts from compiler assembly."""
    ctx.ensure_object(dict)
    root = root.resolve()
    with cli_errors():
        config = load_config(root, config_file=config_file)
    if verbose:
        config.logging.level = "DEBUG"

    ctx.obj["verbose"] = verbose
    ctx.obj["root"] = root
    ctx.obj["config"] = config
    configure_logging(config=config.logging)
    set_run_id()


cli.add_command(analyze_command, name="analyze")
cli.add_command(parse_command, name="parse")
cli.add_command(hot_command, name="hot")
cli.add_command(common_command, name="common")
cli.add_command(report_command, name="report")


if __name__ == "__main__":
    cli()
