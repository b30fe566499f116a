"""Read the SD data items that follow a structural block.

    >  <NAME>
    value line 1
    value line 2

    $$$$
"""
from __future__ import annotations

import logging
import re

from .cursor import LineCursor
from .segmenter import is_separator

logger = logging.getLogger(__name__)

DATA_HEADER = "> "
_FIELD_NAME_RE = re.compile(r"<([^>]*)>")

PropertyMap = dict[str, str]


def extract_field_name(header: str) -> str | None:
    """Return the bracketed name of a data header line, or None."""
    m = _FIELD_NAME_RE.search(header)
    return m.group(1) if m else None


def is_data_header(line: str) -> bool:
    return line.startswith(DATA_HEADER)


class PropertyBlockExtractor:
    """Consume one record's data items, through its ``$$$$`` line."""

    def __init__(self, cursor: LineCursor) -> None:
        self._cursor = cursor
        self._end_line = 0

    @property
    def end_line(self) -> int:
        """Line number of the last line consumed by the most recent extract()."""
        return self._end_line

    def extract(self) -> PropertyMap:
        """Return data items in order of first appearance.

        A repeated name overwrites the earlier value. StreamReadError
        propagates.
        """
        props: PropertyMap = {}
        line = self._cursor.next_line()
        while line is not None and not is_separator(line):
            if not is_data_header(line):
                logger.debug("Unexpected line %d in data section: %r", self._cursor.line_number, line)
                self._drain()
                break

            # Consecutive headers: the last one names the value
            name = extract_field_name(line)
            line = self._cursor.next_line()
            while line is not None and is_data_header(line):
                name = extract_field_name(line)
                line = self._cursor.next_line()

            data: list[str] = []
            while line is not None and not is_separator(line) and not is_data_header(line):
                data.append(line)
                line = self._cursor.next_line()
            value = "\n".join(data)
            if len(value) > 1 and value.endswith("\n"):
                value = value[:-1]

            if name is None:
                logger.debug("Data header without <name> before line %d skipped", self._cursor.line_number)
                continue
            logger.debug("Data item %r: %r", name, value)
            props[name] = value

        self._end_line = self._cursor.line_number
        return props

    def skip(self) -> None:
        """Consume the remainder of the record without keeping anything."""
        discarded = self.extract()
        if discarded:
            logger.debug("Discarded %d data items of an undecodable record", len(discarded))

    def _drain(self) -> None:
        line = self._cursor.next_line()
        while line is not None and not is_separator(line):
            line = self._cursor.next_line()
