# esbatch/extractors/rows/extractor.py
from __future__ import annotations

from typing import Iterator

from esbatch.core.extractor_base import LineFileExtractor, Record
from esbatch.core.registry import SOURCES, register


@register("rows", kind=SOURCES)
class RowFileExtractor(LineFileExtractor):
    """Streams rows from a row file (one Ion or JSON object per line)."""

    def iter_records(self) -> Iterator[Record]:
        for position, row in self.iter_lines():
            yield self.decoder.decode(row, position)


__all__ = ["RowFileExtractor"]
