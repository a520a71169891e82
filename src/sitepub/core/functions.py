"""Builtin helper functions exposed to template files"""

import datetime
from functools import cmp_to_key
from pathlib import Path
from typing import Any, Iterable, Optional

from sitepub.core.generator import EXCLUDE_PREFIX, SiteGenerator
from sitepub.core.metadata import read_metadata_block
from sitepub.core.models import SiteFile


def format_date(fmt: str, value: datetime.date) -> str:
    """strftime wrapper with the format first, e.g. format_date('%d %B %Y', file.metadata.date)."""
    return value.strftime(fmt)


def _read_metadata(path: Path) -> Optional[dict]:
    try:
        return read_metadata_block(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError:
        return None


def _as_datetime(value: Any) -> Any:
    if isinstance(value, datetime.date) and not isinstance(value, datetime.datetime):
        return datetime.datetime.combine(value, datetime.time())
    return value


def _compare(a: Any, b: Any) -> int:
    """Order missing values first. A date compares as midnight of that day; other mixed types compare equal."""
    a, b = _as_datetime(a), _as_datetime(b)
    if a is None and b is None:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1
    if type(a) is not type(b):
        return 0
    return (a > b) - (a < b)


def sort_files(files: list[SiteFile], field: str, ascending: bool = True) -> list[SiteFile]:
    """Sort files in place by a metadata field and return them."""
    key = cmp_to_key(lambda a, b: _compare(a.metadata.get(field), b.metadata.get(field)))
    files.sort(key=key, reverse=not ascending)
    return files


def sort(values: Iterable, ascending: bool = True) -> list:
    """Return the values sorted, descending when ascending is False."""
    return sorted(values, reverse=not ascending)


class BuiltinFunctionProvider:
    """Binds format_date, list_files, sort_files and sort for every template.

    list_files resolves directories relative to the generator's input root and reports
    each file's eventual output path via `SiteGenerator.output_path_for`.
    """

    def __init__(self, generator: SiteGenerator):
        self.generator = generator

    def list_files(
        self,
        directory: str = ".",
        with_metadata_only: bool = False,
        recursive: bool = False,
        ) -> list[SiteFile]:
        root = self.generator.input_dir / directory
        files: list[SiteFile] = []
        if not root.is_dir():
            return files
        for child in sorted(root.iterdir()):
            if child.name.startswith(EXCLUDE_PREFIX):
                continue
            if child.is_dir():
                if recursive:
                    files.extend(self.list_files(str(child.relative_to(self.generator.input_dir)), with_metadata_only, recursive))
                continue
            metadata = _read_metadata(child)
            if with_metadata_only and metadata is None:
                continue
            files.append(SiteFile(
                input=child,
                output=self.generator.output_path_for(child),
                metadata=metadata or {},
            ))
        return files

    def provide(self, file: SiteFile, context: dict[str, Any]) -> None:
        context["format_date"] = format_date
        context["list_files"] = self.list_files
        context["sort_files"] = sort_files
        context["sort"] = sort
