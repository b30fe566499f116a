"""Line cursor over a text stream with a 1-based line counter."""
from __future__ import annotations

import zlib
from typing import TextIO

from ..errors import StreamReadError


class LineCursor:
    """Return one line at a time without its terminator.

    ``line_number`` is the number of the last line returned (0 before the
    first read) and only advances when a line was actually read.
    """

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self._line_number = 0

    @property
    def line_number(self) -> int:
        return self._line_number

    def next_line(self) -> str | None:
        """Return the next line, or None at end of stream.

        Raises StreamReadError if the underlying stream fails.
        """
        try:
            raw = self._stream.readline()
        except (OSError, EOFError, UnicodeDecodeError, zlib.error) as exc:
            raise StreamReadError(f"read failed after line {self._line_number}: {exc}") from exc
        if not raw:
            return None
        self._line_number += 1
        if raw.endswith("\n"):
            raw = raw[:-1]
        if raw.endswith("\r"):
            raw = raw[:-1]
        return raw
