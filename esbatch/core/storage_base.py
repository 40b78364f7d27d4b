# esbatch/core/storage_base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List

from .base_stage import Stage
from .extractor_base import Record


@dataclass
class Manifest:
    """What a sink produced: its parts (locations), record count and byte size."""

    parts: List[str] = field(default_factory=list)
    total_records: int = 0
    total_bytes: int = 0

    @property
    def location(self) -> str | None:
        return self.parts[0] if self.parts else None


class StorageWriter(Stage, ABC):
    """
    Sink for exported records. Records are appended one at a time, in order,
    and finalize() reports where they ended up.
    """

    @abstractmethod
    def append(self, record: Record) -> None:
        """Append a single record to the current part/file."""
        ...

    def append_batch(self, batch: List[Record]) -> int:
        """Default vectorized append using append(). Returns the number of records written."""
        for rec in batch:
            self.append(rec)
        return len(batch)

    @abstractmethod
    def finalize(self) -> Manifest:
        """Flush everything and return the manifest (locations, counts, bytes)."""
        raise NotImplementedError


__all__ = ["StorageWriter", "Manifest"]
