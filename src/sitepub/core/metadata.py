"""Metadata block parsing: typed key/value front matter delimited by '+++' lines"""

import re
from datetime import datetime
from typing import Optional

from sitepub.core.models import MetadataValue


SENTINEL = "+++"
DATETIME_FORMATS = ("%Y/%m/%d %H:%M:%S", "%Y/%m/%d %H:%M")
DATE_FORMAT = "%Y/%m/%d"

LINE_RE = re.compile(r"[^\r\n]*(?:\r\n|\r|\n)|[^\r\n]+$")
INT_RE = re.compile(r"[+-]?\d+")
FLOAT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _bare(line: str) -> str:
    """Return line without its trailing line terminator."""
    return line.rstrip("\r\n")


def _block_end(lines: list[str]) -> Optional[int]:
    """Index of the closing sentinel line, or None if lines hold no complete block."""
    if not lines or _bare(lines[0]) != SENTINEL:
        return None
    for i in range(1, len(lines)):
        if _bare(lines[i]) == SENTINEL:
            return i
    return None


def _parse_datetime(value: str) -> Optional[datetime]:
    for fmt in DATETIME_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def coerce_value(value: str) -> MetadataValue:
    """Convert a trimmed metadata value to bool, int, float, datetime, date, or str.

    The first matching rule wins, so '2024' is an int and '2024/01/05' a date.
    """
    if value in ("true", "false"):
        return value == "true"
    if INT_RE.fullmatch(value):
        return int(value)
    if FLOAT_RE.fullmatch(value):
        return float(value)
    if (dt := _parse_datetime(value)) is not None:
        return dt
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        return value


def read_metadata_block(text: str) -> Optional[dict[str, MetadataValue]]:
    """Return the metadata block at the start of text as a dict, or None if there is none.

    Blank lines and lines without a colon are skipped. A block that is never closed
    counts as no block at all.
    """
    lines = LINE_RE.findall(text)
    end = _block_end(lines)
    if end is None:
        return None

    metadata: dict[str, MetadataValue] = {}
    for line in lines[1:end]:
        line = line.strip()
        if not line or ":" not in line:
            continue
        key, value = line.split(":", 1)
        metadata[key.strip()] = coerce_value(value.strip())
    return metadata


def strip_metadata_block(text: str) -> str:
    """Replace the metadata block with empty lines so later line numbers stay put.

    Each block line keeps its own line terminator; content after the block is
    copied verbatim. Text without a complete block is returned unchanged.
    """
    lines = LINE_RE.findall(text)
    end = _block_end(lines)
    if end is None:
        return text

    blanks = [line[len(_bare(line)):] or "\n" for line in lines[:end + 1]]
    return "".join(blanks) + "".join(lines[end + 1:])
