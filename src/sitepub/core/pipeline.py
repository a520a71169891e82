"""Driver steps: validate directories, assemble the generator, run one pass or the watch loop"""

import logging
import shutil
import time
from pathlib import Path
from typing import Callable, Optional

from sitepub.config import Settings
from sitepub.core.errors import SiteGeneratorError
from sitepub.core.functions import BuiltinFunctionProvider
from sitepub.core.generator import GeneratedCallback, SiteGenerator
from sitepub.core.processors import MarkdownProcessor, MetadataProcessor, TemplateProcessor
from sitepub.core.templating import JinjaTemplateEngine
from sitepub.core.watcher import watch


logger = logging.getLogger(__name__)

PassCallback = Callable[[int, float, Optional[Exception]], None]


def validate_dirs(input_dir: Path, output_dir: Path) -> None:
    """Check the input directory exists and make sure the output directory does."""
    if not input_dir.is_dir():
        raise ValueError(f"Input directory {input_dir} does not exist")
    if output_dir.resolve().is_relative_to(input_dir.resolve()):
        raise ValueError(f"Output directory {output_dir} must not be inside input directory {input_dir}")
    if output_dir.exists():
        if not output_dir.is_dir():
            raise ValueError(f"Output directory {output_dir} is an existing file")
        logger.warning("Output directory %s exists", output_dir)
        return
    try:
        output_dir.mkdir(parents=True)
    except OSError as e:
        raise ValueError(f"Couldn't create output directory {output_dir}: {e}") from e


def delete_output(output_dir: Path, input_dir: Path) -> None:
    """Remove output_dir and recreate it empty. Refuses when it would take input_dir with it."""
    out, src = output_dir.resolve(), input_dir.resolve()
    if src.is_relative_to(out):
        raise ValueError(f"Refusing to delete output directory {output_dir}: it contains the input directory")
    logger.info("Deleting output directory %s", output_dir)
    try:
        if out.exists():
            shutil.rmtree(out)
        out.mkdir(parents=True)
    except OSError as e:
        raise SiteGeneratorError(f"Couldn't recreate output directory {output_dir}: {e}") from e


def build_generator(settings: Settings) -> SiteGenerator:
    """Assemble the default processor chain: metadata, templates, then Markdown."""
    input_dir = Path(settings.input_dir)
    generator = SiteGenerator(input_dir, Path(settings.output_dir))
    generator.add_processor(MetadataProcessor())
    generator.add_processor(TemplateProcessor(
        JinjaTemplateEngine(input_dir),
        [BuiltinFunctionProvider(generator)],
        infix=settings.template_infix,
    ))
    if settings.render_markdown:
        generator.add_processor(MarkdownProcessor(settings.parser_config))
    return generator


def run_generate(
    generator: SiteGenerator,
    delete: bool = False,
    callback: Optional[GeneratedCallback] = None,
    ) -> tuple[int, float]:
    """Run one generation pass. Returns (files written, seconds taken)."""
    start = time.perf_counter()
    if delete:
        delete_output(generator.output_dir, generator.input_dir)
    count = generator.generate(callback)
    return count, time.perf_counter() - start


def run_watch(
    generator: SiteGenerator,
    delete: bool = False,
    settle_delay: float = 0.1,
    on_pass: Optional[PassCallback] = None,
    callback: Optional[GeneratedCallback] = None,
    ) -> None:
    """Regenerate the whole site after every batch of changes under the input directory.

    A failed pass is reported through on_pass and the loop keeps watching; a
    WatchError ends it.
    """
    def regenerate() -> None:
        start = time.perf_counter()
        try:
            count, elapsed = run_generate(generator, delete, callback)
        except (SiteGeneratorError, ValueError) as e:
            logger.error("Generation failed: %s", e)
            if on_pass:
                on_pass(0, time.perf_counter() - start, e)
            return
        logger.info("Generated %d file(s) in %.3fs", count, elapsed)
        if on_pass:
            on_pass(count, elapsed, None)

    logger.info("Watching input directory %s", generator.input_dir)
    watch(generator.input_dir, regenerate, settle_delay)
