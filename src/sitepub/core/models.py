"""Data model for a file flowing through the generation pipeline"""

import datetime
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union


MetadataValue = Union[bool, int, float, datetime.datetime, datetime.date, str]


@dataclass
class SiteFile:
    """One input file on its way through the processor chain.

    `content` and `metadata` are rewritten in place by processors; `output` may be
    moved by a processor before the generator writes the final content to it.
    """
    input:    Path
    output:   Path
    content:  bytes = b""
    metadata: dict[str, MetadataValue] = field(default_factory=dict)

    @property
    def name(self) -> str:
        """Input file name, e.g. 'index.tmpl.html'."""
        return self.input.name

    @property
    def text(self) -> str:
        """Content decoded as UTF-8."""
        return self.content.decode("utf-8")
