"""Decoder registry: one decoder instance per molfile dialect.

The registry is built once per reader and reused for every record, so decoder
construction cost is paid once per stream.

Usage::

    registry = DecoderRegistry.default()
    registry.register(MyV3000Decoder())   # replaces the built-in V3000 decoder

    result = registry.decode(block_text, FormatVariant.V2000)
    if result.ok:
        print(result.structure.atom_count)
"""
from __future__ import annotations

import logging
from typing import Iterable

from .base import DecodeResult, FormatVariant, MolfileDecoder
from .v2000 import LegacyDecoder, V2000Decoder
from .v3000 import V3000Decoder

logger = logging.getLogger(__name__)


class DecoderRegistry:
    """Map every FormatVariant to a MolfileDecoder."""

    def __init__(self, decoders: Iterable[MolfileDecoder] = ()) -> None:
        self._decoders: dict[FormatVariant, MolfileDecoder] = {}
        for decoder in decoders:
            self.register(decoder)

    @classmethod
    def default(cls) -> "DecoderRegistry":
        return cls([LegacyDecoder(), V2000Decoder(), V3000Decoder()])

    def register(self, decoder: MolfileDecoder) -> None:
        if not isinstance(decoder, MolfileDecoder):
            raise TypeError(f"{decoder!r} does not implement MolfileDecoder")
        self._decoders[decoder.variant] = decoder
        logger.debug("Registered %s decoder: %s", decoder.variant, type(decoder).__name__)

    def get(self, variant: FormatVariant) -> MolfileDecoder | None:
        return self._decoders.get(variant)

    def variants(self) -> list[FormatVariant]:
        return [v for v in FormatVariant if v in self._decoders]

    def decode(self, text: str, variant: FormatVariant) -> DecodeResult:
        """Decode one block. Failures of any kind come back as DecodeResult.failure."""
        decoder = self._decoders.get(variant)
        if decoder is None:
            return DecodeResult.failure(f"no decoder registered for {variant}")
        try:
            result = decoder.decode(text)
        except Exception as exc:
            # Any decoder exception counts as a failed record
            logger.debug("%s decoder raised", variant, exc_info=True)
            return DecodeResult.failure(f"{type(exc).__name__}: {exc}")
        if not isinstance(result, DecodeResult):
            return DecodeResult.failure(f"{variant} decoder returned {type(result).__name__}")
        return result

    def __contains__(self, variant: object) -> bool:
        return variant in self._decoders

    def __len__(self) -> int:
        return len(self._decoders)
