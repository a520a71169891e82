"""CLI command implementations"""

from pathlib import Path
from typing import Annotated, Optional

import typer

from sitepub.config import Settings, load_config
from sitepub.core.errors import SiteGeneratorError, WatchError
from sitepub.core.models import SiteFile
from sitepub.core.pipeline import build_generator, run_generate, run_watch, validate_dirs


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _echo_file(file: SiteFile) -> None:
    typer.echo(f"  {file.input} -> {file.output}")


def _echo_pass(count: int, elapsed: float, error: Optional[Exception]) -> None:
    """Report the outcome of one regeneration in watch mode."""
    if error:
        typer.echo(f"Error: generation failed\n  {error}", err=True)
    else:
        typer.echo(f"Generated {count} file(s) in {elapsed:.3f}s")


def _generate(settings: Settings, watch: bool) -> None:
    """Validate directories, run one pass, then keep regenerating when watch is set."""
    input_dir, output_dir = Path(settings.input_dir), Path(settings.output_dir)
    try:
        validate_dirs(input_dir, output_dir)
    except ValueError as e:
        _fail(str(e))

    generator = build_generator(settings)
    try:
        count, elapsed = run_generate(generator, settings.delete_output, _echo_file)
    except ValueError as e:
        _fail(str(e))
    except SiteGeneratorError as e:
        if not watch:
            _fail("Generation failed", e)
        _echo_pass(0, 0.0, e)
    else:
        typer.echo(f"Generated {count} file(s) to {output_dir}/ in {elapsed:.3f}s")

    if not watch:
        return
    typer.echo(f"Watching {input_dir}/ for changes. Press Ctrl+C to stop.")
    try:
        run_watch(generator, settings.delete_output, settings.settle_delay, on_pass=_echo_pass)
    except WatchError as e:
        _fail("Watching for changes failed", e)
    except KeyboardInterrupt:
        typer.echo("Stopped watching.")


def build_cmd(
    path: Annotated[Optional[str], typer.Argument(help="Input directory with the site sources")] = None,
    out: Annotated[Optional[str], typer.Option("--out-dir", "-o", help="Output directory")] = None,
    delete: Annotated[Optional[bool], typer.Option("--delete-output/--keep-output", "-d", help="Delete the output directory before generating")] = None,
    watch: Annotated[bool, typer.Option("--watch", "-w", help="Regenerate whenever the input directory changes")] = False,
    markdown: Annotated[Optional[bool], typer.Option("--markdown/--no-markdown", help="Render *.md files to HTML")] = None,
    ):
    """Generate the site once, optionally watching for changes afterwards."""
    settings = _settings(overrides={
        "input_dir": path, "output_dir": out, "delete_output": delete, "render_markdown": markdown,
    })
    _generate(settings, watch)


def watch_cmd(
    path: Annotated[Optional[str], typer.Argument(help="Input directory with the site sources")] = None,
    out: Annotated[Optional[str], typer.Option("--out-dir", "-o", help="Output directory")] = None,
    delete: Annotated[Optional[bool], typer.Option("--delete-output/--keep-output", "-d", help="Delete the output directory before every pass")] = None,
    ):
    """Generate the site, then regenerate it on every change (same as build --watch)."""
    settings = _settings(overrides={"input_dir": path, "output_dir": out, "delete_output": delete})
    _generate(settings, watch=True)
