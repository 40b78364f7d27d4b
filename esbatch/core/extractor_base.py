# esbatch/core/extractor_base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, TextIO

from esbatch.storage.locations import resolve_path

from .base_stage import Stage
from .serde import LineDecoder

Record = Dict[str, Any]


class Extractor(Stage, ABC):
    """
    Abstract base for all record sources. Subclasses must implement iter_records().
    Reads records lazily from a source (bulk file, row file, ...), one unit at a time.
    """

    @abstractmethod
    def iter_records(self) -> Iterator[Any]:
        """Yield one record at a time (streaming, bounded memory), in input order."""
        ...


class LineFileExtractor(Extractor, ABC):
    """
    Base for sources backed by a line-oriented file (one JSON or Ion value per line).
    The file is owned by the extractor: opened in open(), released in close().
    """

    def __init__(self, location: str, encoding: str = "utf-8") -> None:
        self.location = location
        self.encoding = encoding
        self.decoder = LineDecoder()
        self._stream: TextIO | None = None

    def open(self) -> None:
        self._stream = resolve_path(self.location).open("r", encoding=self.encoding)

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None

    def iter_lines(self) -> Iterator[tuple[int, str]]:
        """Yield (1-based line number, stripped line), skipping blank lines."""
        assert self._stream, "Extractor not opened. Call .open() first."
        for number, raw in enumerate(self._stream, start=1):
            line = raw.strip()
            if line:
                yield number, line


__all__ = ["Extractor", "LineFileExtractor", "Record"]
