"""Exception hierarchy for sdfpilot.

Only stream failures and iterator misuse ever reach the caller of the reader.
Malformed structure blocks are reported as values (see decoders.base.DecodeResult).
"""
from __future__ import annotations


class SDFPilotError(Exception):
    """Base class for all sdfpilot errors."""


class MolfileError(SDFPilotError, ValueError):
    """A connection table could not be decoded."""

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        if line is not None:
            message = f"{message} (block line {line})"
        super().__init__(message)


class StreamReadError(SDFPilotError, OSError):
    """The underlying stream failed while reading. Fatal for the reader."""


class NoRecordAvailableError(SDFPilotError, LookupError):
    """A record was requested while none is pending."""
