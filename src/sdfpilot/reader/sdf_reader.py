"""Pull-based SD file reader that survives undecodable records.

Usage::

    with SDFReader.open("library.sdf", skip=False) as reader:
        for record in reader:
            if record.structure is None:
                print(f"record {record.index} (line {record.start_line}) failed: {record.error}")
                continue
            print(record.structure.title, record.properties.get("ID"))
        print(reader.records_seen, reader.failed_records)

Records whose structure block fails to decode are returned with
``structure=None`` unless ``skip=True``, in which case they are only counted.
"""
from __future__ import annotations

import gzip
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, TextIO, cast

from ..decoders.base import FormatVariant, Structure
from ..decoders.registry import DecoderRegistry
from ..errors import NoRecordAvailableError, StreamReadError
from .cursor import LineCursor
from .properties import PropertyBlockExtractor
from .segmenter import RecordSegmenter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReaderCounters:
    records_seen: int = 0
    failed_records: int = 0
    current_line: int = 0
    record_start_line: int = 0


@dataclass(frozen=True)
class SDFRecord:
    """One pulled record.

    Attributes:
        structure:   Decoded structure, or None when the block failed to decode.
        variant:     Molfile dialect detected for the record.
        index:       0-based position among all records detected in the stream.
        start_line:  First line of the record.
        end_line:    Last line consumed for the record (its ``$$$$`` line).
        error:       Decode failure message when ``structure`` is None.
        counters:    Reader counters right after this record was read.
    """

    structure: Structure | None
    variant: FormatVariant
    index: int
    start_line: int
    end_line: int
    error: str | None = None
    counters: ReaderCounters = field(default_factory=ReaderCounters)

    @property
    def properties(self) -> dict[str, str]:
        return self.structure.properties if self.structure is not None else {}

    @property
    def ok(self) -> bool:
        return self.structure is not None


class SDFReader:
    """Iterate over the records of an SD stream.

    Args:
        stream:    Text stream to read. The reader owns it and closes it.
        skip:      Pass over records whose structure fails to decode.
        registry:  Decoders per molfile dialect (default: built-in decoders).
        name:      Label used in log messages (e.g. the file name).
    """

    def __init__(
        self,
        stream: TextIO,
        skip: bool = False,
        registry: DecoderRegistry | None = None,
        name: str | None = None,
    ) -> None:
        self._stream = stream
        self._name = name or getattr(stream, "name", "<stream>")
        self.skip = skip
        self._registry = registry if registry is not None else DecoderRegistry.default()
        self._cursor = LineCursor(stream)
        self._segmenter = RecordSegmenter(self._cursor)
        self._extractor = PropertyBlockExtractor(self._cursor)

        self._pending: SDFRecord | None = None
        self._exhausted = False
        self._fatal = False
        self._closed = False
        self._records_seen = 0
        self._failed_records = 0

    @classmethod
    def open(
        cls,
        path: str | Path,
        skip: bool = False,
        encoding: str = "utf-8",
        registry: DecoderRegistry | None = None,
    ) -> "SDFReader":
        """Open a plain or ``.gz`` SD file."""
        path = Path(path)
        if path.suffix == ".gz":
            stream: TextIO = gzip.open(path, "rt", encoding=encoding)  # type: ignore[assignment]
        else:
            stream = path.open("r", encoding=encoding)
        return cls(stream, skip=skip, registry=registry, name=str(path))

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------

    @property
    def records_seen(self) -> int:
        """Records detected so far, including ones that failed to decode."""
        return self._records_seen

    @property
    def failed_records(self) -> int:
        return self._failed_records

    @property
    def current_line(self) -> int:
        return self._cursor.line_number

    @property
    def record_start_line(self) -> int:
        return self._segmenter.start_line

    @property
    def ended_with_fatal_error(self) -> bool:
        return self._fatal

    @property
    def current_variant(self) -> FormatVariant:
        return self._segmenter.variant

    @property
    def counters(self) -> ReaderCounters:
        return ReaderCounters(
            records_seen=self._records_seen,
            failed_records=self._failed_records,
            current_line=self.current_line,
            record_start_line=self.record_start_line,
        )

    # ------------------------------------------------------------------
    # Pull API
    # ------------------------------------------------------------------

    def has_next(self) -> bool:
        """Return True if a record is ready; reads ahead as needed.

        Repeated calls without next_record() do not touch the stream. Raises
        StreamReadError once if the stream fails; afterwards returns False.
        """
        if self._pending is not None:
            return True
        if self._exhausted or self._fatal or self._closed:
            return False
        try:
            self._pending = self._read_next()
        except StreamReadError as exc:
            self._fatal = True
            logger.critical(
                "Fatal error reading %s (record %d, line %d ff): %s",
                self._name, self._records_seen, self.record_start_line, exc,
            )
            self.close()
            raise
        if self._pending is None:
            self._exhausted = True
            logger.debug(
                "End of %s: %d records, %d failed", self._name, self._records_seen, self._failed_records
            )
            return False
        return True

    def next_record(self) -> SDFRecord:
        """Return the pending record.

        Raises NoRecordAvailableError if the stream holds no further record.
        """
        if not self.has_next():
            raise NoRecordAvailableError(f"no record available in {self._name}")
        record = cast(SDFRecord, self._pending)
        self._pending = None
        return record

    def _read_next(self) -> SDFRecord | None:
        while True:
            block = self._segmenter.scan()
            if block is None:
                return None

            index = self._records_seen
            result = self._registry.decode(block.text, block.variant)
            self._records_seen += 1

            if result.structure is not None:
                for name, value in self._extractor.extract().items():
                    result.structure.set_property(name, value)
                return SDFRecord(
                    structure=result.structure,
                    variant=block.variant,
                    index=index,
                    start_line=block.start_line,
                    end_line=self._extractor.end_line,
                    counters=self.counters,
                )

            self._failed_records += 1
            logger.error(
                "Error while reading record %d of %s (line %d ff): %s",
                index, self._name, block.start_line, result.error,
            )
            # Data items of an undecodable record are consumed but not kept
            self._extractor.skip()
            if not self.skip:
                return SDFRecord(
                    structure=None,
                    variant=block.variant,
                    index=index,
                    start_line=block.start_line,
                    end_line=self._extractor.end_line,
                    error=result.error,
                    counters=self.counters,
                )

    # ------------------------------------------------------------------
    # Iterator / resource protocol
    # ------------------------------------------------------------------

    def __iter__(self) -> Iterator[SDFRecord]:
        return self

    def __next__(self) -> SDFRecord:
        if not self.has_next():
            raise StopIteration
        return self.next_record()

    def close(self) -> None:
        """Release the stream. Safe to call repeatedly and from any state."""
        if self._closed:
            return
        self._closed = True
        self._pending = None
        self._stream.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "SDFReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"SDFReader({self._name!r}, skip={self.skip}, records_seen={self._records_seen}, "
            f"failed={self._failed_records})"
        )
