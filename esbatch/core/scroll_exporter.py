# esbatch/core/scroll_exporter.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .config import DEFAULT_KEEP_ALIVE
from .errors import ExportError
from .metrics import InMemoryMetrics, MetricsAccumulator, MetricsChannel
from .search_base import ExportPage, ScrollCursor, SearchClient, SearchRequest
from .storage_base import StorageWriter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScrollOutput:
    size: int
    uri: Optional[str]


class ScrollExporter:
    """
    Walks every hit of a search with a scroll cursor and appends each hit source to a sink.

    search -> (write page, next page)* until an empty page -> release cursor.
    The last cursor held is released exactly once whatever happens; a failed release
    is only logged. Page fetch failures surface as ExportError, sink failures as they are.
    """

    def __init__(
        self,
        client: SearchClient,
        writer: StorageWriter,
        metrics: MetricsChannel | None = None,
        keep_alive: str = DEFAULT_KEEP_ALIVE,
    ) -> None:
        self.client = client
        self.writer = writer
        self.metrics = metrics if metrics is not None else InMemoryMetrics()
        self.keep_alive = keep_alive

    def export(self, request: SearchRequest) -> ScrollOutput:
        acc = MetricsAccumulator()
        cursor: Optional[ScrollCursor] = None

        try:
            page, cursor = self._first_page(request)
            acc.add_request(page.took)

            while page.hits:
                acc.add_records(self.writer.append_batch(page.hits))
                page, cursor = self._next_page(cursor)
                # the empty page ending the scroll is not accounted
                if page.hits:
                    acc.add_request(page.took)

            manifest = self.writer.finalize()
        finally:
            self._release(cursor)
            run = acc.publish(self.metrics)

        logger.info(
            "Exported %d records in %d requests (%dns) to %s",
            run.record_count,
            run.request_count,
            run.duration,
            manifest.location,
        )
        return ScrollOutput(size=run.record_count, uri=manifest.location)

    def _first_page(self, request: SearchRequest) -> tuple[ExportPage, Optional[ScrollCursor]]:
        try:
            return self.client.search(request, keep_alive=self.keep_alive)
        except Exception as e:
            raise ExportError(f"Scroll search failed: {e}") from e

    def _next_page(self, cursor: Optional[ScrollCursor]) -> tuple[ExportPage, ScrollCursor]:
        if cursor is None:
            raise ExportError("Search returned hits but no scroll cursor")
        try:
            return self.client.next_page(cursor)
        except Exception as e:
            raise ExportError(f"Scroll request failed: {e}") from e

    def _release(self, cursor: Optional[ScrollCursor]) -> None:
        if cursor is None:
            return
        try:
            self.client.release_cursor(cursor)
        except Exception:
            logger.warning("Failed to clear scroll", exc_info=True)


__all__ = ["ScrollExporter", "ScrollOutput"]
