"""Template engine boundary and its Jinja2 implementation"""

from pathlib import Path
from typing import Any, Mapping, Optional, Protocol

import jinja2

from sitepub.core.errors import TemplateError


class TemplateEngine(Protocol):
    """Parses in-memory template sources and renders them to bytes."""

    def parse(self, source_path: Path, source_text: str) -> Any: ...

    def render(self, template: Any, context: Mapping[str, Any]) -> bytes: ...


class JinjaTemplateEngine:
    """TemplateEngine backed by a Jinja2 Environment rooted at the site input directory.

    Includes and imports are resolved from disk relative to `root`; the template being
    rendered is compiled from the source text handed to `parse`, since earlier
    processors may already have rewritten it.
    """

    def __init__(self, root: Path, environment: Optional[jinja2.Environment] = None):
        self.root = Path(root).resolve()
        self.env = environment or jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(self.root)),
            keep_trailing_newline=True,
            autoescape=False,
        )

    def _name(self, source_path: Path) -> str:
        try:
            return Path(source_path).resolve().relative_to(self.root).as_posix()
        except ValueError:
            return Path(source_path).name

    def parse(self, source_path: Path, source_text: str) -> jinja2.Template:
        try:
            code = self.env.compile(source_text, name=self._name(source_path), filename=str(source_path))
        except jinja2.TemplateSyntaxError as e:
            raise TemplateError(e.message or str(e), source_path, e.lineno) from e
        return self.env.template_class.from_code(self.env, code, self.env.make_globals(None))

    def render(self, template: jinja2.Template, context: Mapping[str, Any]) -> bytes:
        try:
            return template.render(**context).encode("utf-8")
        except jinja2.TemplateSyntaxError as e:
            # raised by includes compiled lazily at render time
            raise TemplateError(e.message or str(e), Path(e.filename or template.filename), e.lineno) from e
        except jinja2.TemplateError as e:
            raise TemplateError(str(e), Path(template.filename)) from e
