# esbatch/core/search_base.py
from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .base_stage import Stage
from .config import DEFAULT_KEEP_ALIVE
from .extractor_base import Record


@dataclass(frozen=True)
class SearchRequest:
    """A search body plus where to run it. `indexes=None` targets all indices."""

    body: Dict[str, Any]
    indexes: Optional[List[str]] = None
    routing: Optional[str] = None

    @classmethod
    def build(
        cls, request: Any, indexes: Optional[List[str]] = None, routing: Optional[str] = None
    ) -> "SearchRequest":
        """`request` is either a JSON string or a mapping."""
        if isinstance(request, str):
            body = json.loads(request)
            if not isinstance(body, dict):
                raise ValueError("The `request` property must be a JSON object")
        elif isinstance(request, Mapping):
            body = dict(request)
        else:
            raise ValueError("The `request` property must be a String or an Object")
        return cls(body=body, indexes=list(indexes) if indexes else None, routing=routing)


@dataclass(frozen=True)
class ScrollCursor:
    scroll_id: str
    keep_alive: str = DEFAULT_KEEP_ALIVE


@dataclass(frozen=True)
class ExportPage:
    """One page of hit sources, in server order."""

    hits: List[Record] = field(default_factory=list)
    took: int = 0
    total: Optional[int] = None

    def __len__(self) -> int:
        return len(self.hits)


class SearchClient(Stage, ABC):
    """
    Search side of the remote store: one-shot searches and scroll cursors.
    Implementations raise TransportError on request failures.
    """

    @abstractmethod
    def search(
        self, request: SearchRequest, keep_alive: Optional[str] = None
    ) -> tuple[ExportPage, Optional[ScrollCursor]]:
        """Run the search. With `keep_alive`, a scroll cursor is opened and returned."""
        ...

    @abstractmethod
    def next_page(self, cursor: ScrollCursor) -> tuple[ExportPage, ScrollCursor]:
        """Fetch the page after `cursor`; the returned cursor replaces it."""
        ...

    @abstractmethod
    def release_cursor(self, cursor: ScrollCursor) -> None:
        """Free the server-side cursor."""
        ...


__all__ = ["SearchRequest", "ScrollCursor", "ExportPage", "SearchClient"]
