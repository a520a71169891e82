"""Shared fixtures for core unit tests"""

from pathlib import Path

import pytest

from sitepub.core.errors import TemplateError
from sitepub.core.models import SiteFile


class RecordingEngine:
    """TemplateEngine stand-in: 'renders' by str.format-ing the source with the context."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.parsed: list[tuple[Path, str]] = []

    def parse(self, source_path, source_text):
        self.parsed.append((source_path, source_text))
        return source_text

    def render(self, template, context):
        if self.fail:
            raise TemplateError("boom", Path("page.tmpl.html"), 1)
        return template.format(**context).encode("utf-8")


class SuffixProcessor:
    """Rename-only processor: appends a suffix to every output name."""

    def __init__(self, suffix: str):
        self.suffix = suffix

    def process(self, file):
        pass

    def process_output_file_name(self, name):
        return name + self.suffix


class LowercaseProcessor:
    """Lowercases output names and upper-cases content."""

    def process(self, file):
        file.content = file.content.upper()

    def process_output_file_name(self, name):
        return name.lower()


@pytest.fixture(name="engine")
def engine_fixture():
    return RecordingEngine()


@pytest.fixture(name="failing_engine")
def failing_engine_fixture():
    return RecordingEngine(fail=True)


@pytest.fixture(name="suffix_processor")
def suffix_processor_fixture():
    """Factory for SuffixProcessor instances."""
    return SuffixProcessor


@pytest.fixture(name="lowercase_processor")
def lowercase_processor_fixture():
    return LowercaseProcessor()


@pytest.fixture(name="make_file")
def make_file_fixture(tmp_path):
    """Factory for SiteFiles rooted in tmp_path."""
    def _make(name: str, content: bytes = b"", metadata: dict = None) -> SiteFile:
        return SiteFile(input=tmp_path / "in" / name, output=tmp_path / "out" / name,
                        content=content, metadata=dict(metadata or {}))
    return _make
