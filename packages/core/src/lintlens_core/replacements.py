"""Parsing of ``clang-format --output-replacements-xml`` output."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_ROOT_TAG = "replacements"
_ITEM_TAG = "replacement"


class ReplacementsParseError(ValueError):
    """clang-format produced a replacements document we cannot read."""


@dataclass(frozen=True)
class Replacement:
    offset: int  # 0-based byte offset into the original file
    length: int
    text: str = ""  # empty text means the range is deleted


def parse_replacements_xml(data: str) -> list[Replacement]:
    """Return the replacements in document order.

    An empty ``<replacements>`` element is valid and means the file is
    already formatted. Anything that is not a well-formed replacements
    document raises ReplacementsParseError.
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise ReplacementsParseError(f"Parse replacements xml failed: {e}") from e

    if root.tag != _ROOT_TAG:
        raise ReplacementsParseError(f"Parse replacements xml failed: root element is <{root.tag}>, not <{_ROOT_TAG}>")

    replacements = []
    for element in root.findall(_ITEM_TAG):
        try:
            offset = int(element.get("offset", ""))
            length = int(element.get("length", ""))
        except ValueError as e:
            raise ReplacementsParseError(f"Parse replacements xml failed: bad offset/length attribute: {e}") from e
        replacement = Replacement(offset=offset, length=length, text=element.text or "")
        logger.debug("offset: %d, length: %d, data: %r", replacement.offset, replacement.length, replacement.text)
        replacements.append(replacement)
    return replacements


def line_lengths(content: bytes) -> list[int]:
    """Byte length of every line in ``content``, counting its trailing newline.

    A final newline ends the last line; it does not start an empty one.
    """
    lines = content.split(b"\n")
    if lines and lines[-1] == b"":
        lines.pop()
    return [len(line) + 1 for line in lines]


def offset_to_row_col(lengths: list[int], offset: int) -> tuple[int, int] | None:
    """Translate a 0-based byte offset into a 1-based (row, column).

    Returns None when the offset lies past the end of the file.
    """
    start = 0
    for row, length in enumerate(lengths, 1):
        if start <= offset < start + length:
            return row, offset - start + 1
        start += length
    return None
