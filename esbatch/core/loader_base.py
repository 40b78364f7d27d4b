# esbatch/core/loader_base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .base_stage import Stage
from .operations import WriteOperation


@dataclass(frozen=True)
class BulkItemResult:
    """Server verdict on one operation of a bulk request."""

    op_type: str
    index: Optional[str]
    id: Optional[str]
    status: int
    reason: Optional[str] = None
    failed: bool = False


@dataclass(frozen=True)
class BatchResult:
    """
    Server response to one bulk request.
    - took: server-side duration as reported by the server
    - errors: batch-level flag, set when at least one item failed
    - items: one entry per submitted operation, in submission order
    """

    took: int
    errors: bool = False
    items: List[BulkItemResult] = field(default_factory=list)

    @property
    def failed_items(self) -> List[BulkItemResult]:
        return [item for item in self.items if item.failed]


class LoaderClient(Stage, ABC):
    """
    Abstract base for bulk write destinations.
    A loader receives one batch at a time and sends it as exactly one request.
    Implementations must provide submit_batch(); connect() is optional.
    """

    def connect(self) -> None:
        """Establish clients/connections (optional)."""
        pass

    @abstractmethod
    def submit_batch(self, operations: Sequence[WriteOperation]) -> BatchResult:
        """
        Write one batch (MUST be implemented by subclasses).
        Raise TransportError when the request itself fails; report per-item
        failures through the returned BatchResult instead of raising.
        """
        ...


__all__ = ["LoaderClient", "BatchResult", "BulkItemResult"]
