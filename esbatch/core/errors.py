# esbatch/core/errors.py
from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from .loader_base import BulkItemResult


class EsbatchError(Exception):
    """Base class for every fatal run error."""


class DecodeError(EsbatchError):
    """
    A source line or record could not be turned into a write operation
    (malformed action keyword, missing id key, unparsable line, missing document line).
    """

    def __init__(self, message: str, raw: Optional[str] = None, position: Optional[int] = None):
        self.raw = raw
        self.position = position
        if position is not None:
            message = f"{message} (position {position})"
        if raw is not None:
            message = f"{message}: '{raw}'"
        super().__init__(message)


class BulkItemsError(EsbatchError):
    """A bulk request was accepted but one or more of its items failed server side."""

    def __init__(self, items: Sequence["BulkItemResult"]):
        self.items = list(items)
        lines = [f"{item.index}: {item.status} - {item.reason}" for item in self.items]
        super().__init__("Indexer failed bulk:\n" + "\n".join(lines))


class TransportError(EsbatchError):
    """Network or API level failure talking to the cluster. The underlying client error is the __cause__."""


class ExportError(EsbatchError):
    """A scroll export failed while fetching a page."""


__all__ = ["EsbatchError", "DecodeError", "BulkItemsError", "TransportError", "ExportError"]
