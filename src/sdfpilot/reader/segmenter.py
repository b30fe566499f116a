"""Split an SD stream into structural blocks and detect their molfile dialect."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from ..decoders.base import FormatVariant
from .cursor import LineCursor

logger = logging.getLogger(__name__)

BLOCK_TERMINATOR = "M  END"
RECORD_SEPARATOR = "$$$$"

# The counts line is the 4th line of a molfile; the version tag sits at its end
COUNTS_LINE = 4
_VERSION_RE = re.compile(r"[vV](2000|3000)")


def detect_variant(counts_line: str) -> FormatVariant | None:
    """Return the variant named in a counts line, or None when it carries no tag."""
    m = _VERSION_RE.search(counts_line)
    if not m:
        return None
    return FormatVariant.V2000 if m.group(1) == "2000" else FormatVariant.V3000


def is_separator(line: str) -> bool:
    return line.startswith(RECORD_SEPARATOR)


@dataclass(frozen=True)
class PendingBlock:
    """A completed structural block, ready for decoding."""

    text: str
    variant: FormatVariant
    start_line: int
    end_line: int


class RecordSegmenter:
    """Accumulate lines until a structural block terminator is seen."""

    def __init__(self, cursor: LineCursor) -> None:
        self._cursor = cursor
        self._buffer: list[str] = []
        self._variant = FormatVariant.LEGACY
        self._variant_fixed = False
        self._start_line = 0

    @property
    def variant(self) -> FormatVariant:
        """Variant of the record being accumulated (or of the last block returned)."""
        return self._variant

    @property
    def start_line(self) -> int:
        """Line number of the first line of the current or most recent record."""
        return self._start_line

    def _reset(self) -> None:
        self._buffer.clear()
        self._variant = FormatVariant.LEGACY
        self._variant_fixed = False

    def scan(self) -> PendingBlock | None:
        """Read until the next structural block is complete.

        Returns None at end of stream. StreamReadError from the cursor
        propagates unchanged.
        """
        self._reset()
        while True:
            line = self._cursor.next_line()
            if line is None:
                if self._buffer:
                    logger.warning(
                        "Dropping %d trailing lines from line %d: no %r terminator before end of stream",
                        len(self._buffer), self._start_line, BLOCK_TERMINATOR,
                    )
                    self._reset()
                return None

            if not self._buffer:
                self._start_line = self._cursor.line_number
            self._buffer.append(line)

            if len(self._buffer) == COUNTS_LINE and not self._variant_fixed:
                detected = detect_variant(line)
                if detected is not None:
                    self._variant = detected
                    self._variant_fixed = True

            if line.startswith(BLOCK_TERMINATOR):
                block = PendingBlock(
                    text="\n".join(self._buffer) + "\n",
                    variant=self._variant,
                    start_line=self._start_line,
                    end_line=self._cursor.line_number,
                )
                self._buffer.clear()
                logger.debug("%s block read: lines %d-%d", block.variant, block.start_line, block.end_line)
                return block

            if is_separator(line):
                # Separator without a preceding block: nothing to decode
                logger.debug("Separator at line %d without structure block", self._cursor.line_number)
                self._reset()
