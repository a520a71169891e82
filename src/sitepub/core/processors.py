"""File processors: the transformation steps chained by the site generator"""

import logging
from typing import Any, Iterable, Protocol

from markdown_it import MarkdownIt

from sitepub.core.metadata import read_metadata_block, strip_metadata_block, SENTINEL
from sitepub.core.models import SiteFile
from sitepub.core.templating import TemplateEngine


logger = logging.getLogger(__name__)

TEMPLATE_INFIX = ".tmpl."


class FileProcessor(Protocol):
    """A step in the processor chain.

    `process` mutates the file in place and must return quietly for files it does not
    handle. `process_output_file_name` maps a file name (not a path) to the name the
    output should get, returning it unchanged when not applicable.
    """

    def process(self, file: SiteFile) -> None: ...

    def process_output_file_name(self, name: str) -> str: ...


class FunctionProvider(Protocol):
    """Adds variables and helper functions to a template's rendering context."""

    def provide(self, file: SiteFile, context: dict[str, Any]) -> None: ...


class MetadataProcessor:
    """Moves a leading metadata block from the content into `file.metadata`."""

    def process(self, file: SiteFile) -> None:
        if not file.content.startswith(SENTINEL.encode()):
            return
        try:
            text = file.content.decode("utf-8")
        except UnicodeDecodeError:
            return
        metadata = read_metadata_block(text)
        if metadata is None:
            return
        file.metadata.update(metadata)
        file.content = strip_metadata_block(text).encode("utf-8")

    def process_output_file_name(self, name: str) -> str:
        return name


class TemplateProcessor:
    """Renders files whose name contains the template infix and strips the infix from the output name.

    The SiteFile is bound to the template as `file`; function providers add the rest.
    """

    def __init__(
        self,
        engine: TemplateEngine,
        function_providers: Iterable[FunctionProvider] = (),
        infix: str = TEMPLATE_INFIX,
        ):
        self.engine = engine
        self.function_providers = tuple(function_providers)
        self.infix = infix

    def process(self, file: SiteFile) -> None:
        if self.infix not in file.input.name:
            return
        template = self.engine.parse(file.input, file.content.decode("utf-8"))
        context: dict[str, Any] = {"file": file}
        for provider in self.function_providers:
            provider.provide(file, context)
        file.content = self.engine.render(template, context)
        logger.debug("Rendered template %s", file.input)

    def process_output_file_name(self, name: str) -> str:
        return name.replace(self.infix, ".")


class MarkdownProcessor:
    """Renders Markdown files to HTML and gives their output a '.html' suffix."""

    def __init__(self, preset: str = "gfm-like", suffix: str = ".md"):
        self.parser = MarkdownIt(preset, options_update={"linkify": False})
        self.suffix = suffix

    def process(self, file: SiteFile) -> None:
        if not file.input.name.endswith(self.suffix):
            return
        file.content = self.parser.render(file.content.decode("utf-8")).encode("utf-8")

    def process_output_file_name(self, name: str) -> str:
        if name.endswith(self.suffix):
            return name[:-len(self.suffix)] + ".html"
        return name
