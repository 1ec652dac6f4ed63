"""CLI entry point for lintlens.

Commands:
  run  — lint the files changed between two revisions and report the results
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from lintlens_cli.commands.run import run_cmd

console = Console()

# Python has no trace level; trace output is emitted at debug.
_LOG_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "error": logging.ERROR,
}


def configure_logging(log_level: str) -> None:
    """Route all lintlens logging through rich. Must run before the first log call."""
    logging.basicConfig(
        level=_LOG_LEVELS.get(log_level.lower(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("lintlens"),
    prog_name="lintlens",
)
@click.option(
    "--config",
    "config_path",
    default=".lintlens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="LINTLENS_CONFIG",
)
@click.pass_context
def main(ctx: click.Context, config_path: str):
    """Run clang-format and clang-tidy on changed files and report to GitHub."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(run_cmd)
