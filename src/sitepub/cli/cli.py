"""CLI entrypoint: Typer app definition and command registration"""

import logging
from typing import Annotated

import typer

from sitepub.cli.commands import build_cmd, watch_cmd


app = typer.Typer(name="sitepub", no_args_is_help=True, help="Static site generation pipeline")


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log every processed file")] = False,
    ):
    """Generate a static site from a directory of sources."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


app.command(name="build")(build_cmd)
app.command(name="watch")(watch_cmd)
