# esbatch/core/transformer_base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Iterator

from .base_stage import Stage
from .operations import WriteOperation


class Transformer(Stage, ABC):
    """
    Abstract base for operation mappers: turns each source record into one WriteOperation.
    Implement map_record(); keep it stateless per record (run-scoped settings go in __init__).
    Output order is input order, nothing is dropped or merged.
    """

    @abstractmethod
    def map_record(self, rec: Any, position: int) -> WriteOperation:
        """
        Map one record. `position` is the 1-based index of the record in the source.
        Raise DecodeError when the record cannot be mapped.
        """
        ...

    def map_stream(self, records: Iterable[Any]) -> Iterator[WriteOperation]:
        """Lazily map a record stream; pulls one record per produced operation."""
        for position, rec in enumerate(records, start=1):
            yield self.map_record(rec, position)


__all__ = ["Transformer"]
