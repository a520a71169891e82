"""Exceptions raised by the generation pipeline"""

from pathlib import Path
from typing import Optional


class SiteGeneratorError(Exception):
    """A generation pass or the watch loop failed; files written so far are kept."""


class TemplateError(SiteGeneratorError):
    """A template file could not be parsed or rendered."""

    def __init__(self, message: str, path: Path, lineno: Optional[int] = None):
        self.message = message
        self.path = path
        self.lineno = lineno
        location = f"{path}:{lineno}" if lineno else str(path)
        super().__init__(f"{location}: {message}")


class WatchError(SiteGeneratorError):
    """Watching the input directory could not be set up or stopped delivering events."""
