# esbatch/extractors/elasticsearch/extractor.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from elasticsearch import ApiError, Elasticsearch
from elasticsearch import TransportError as ElasticsearchTransportError

from esbatch.core.config import ConnectionConfig
from esbatch.core.connection import create_client
from esbatch.core.errors import TransportError
from esbatch.core.search_base import ExportPage, ScrollCursor, SearchClient, SearchRequest

logger = logging.getLogger(__name__)


def _page(body: Dict[str, Any]) -> ExportPage:
    hits = body.get("hits") or {}
    total = hits.get("total")
    if isinstance(total, dict):
        total = total.get("value")
    return ExportPage(
        hits=[hit.get("_source") or {} for hit in hits.get("hits") or []],
        took=int(body.get("took", 0)),
        total=total,
    )


class ElasticsearchSearchClient(SearchClient):
    """
    Search/scroll calls against an Elasticsearch cluster.
    Either pass a ready client (the caller keeps ownership) or a ConnectionConfig
    (the client is created in open() and closed in close()).
    """

    def __init__(self, client: Elasticsearch | None = None, connection: ConnectionConfig | None = None):
        if client is None and connection is None:
            raise ValueError("ElasticsearchSearchClient needs a client or a connection config")
        self.client = client
        self.connection = connection
        self._owns_client = client is None

    def open(self) -> None:
        """Initialize Elasticsearch client."""
        if self.client is None:
            self.client = create_client(self.connection)

    def search(
        self, request: SearchRequest, keep_alive: Optional[str] = None
    ) -> tuple[ExportPage, Optional[ScrollCursor]]:
        assert self.client, "Search client not opened. Call .open() first."
        params: Dict[str, Any] = {"body": request.body}
        if request.indexes:
            params["index"] = request.indexes
        if request.routing is not None:
            params["routing"] = request.routing
        if keep_alive is not None:
            params["scroll"] = keep_alive

        logger.debug("Starting query: %s", params)
        body = self._call("search", **params)

        cursor = None
        if keep_alive is not None and body.get("_scroll_id"):
            cursor = ScrollCursor(body["_scroll_id"], keep_alive)
        return _page(body), cursor

    def next_page(self, cursor: ScrollCursor) -> tuple[ExportPage, ScrollCursor]:
        assert self.client, "Search client not opened. Call .open() first."
        body = self._call("scroll", scroll_id=cursor.scroll_id, scroll=cursor.keep_alive)
        # the server may hand back a different scroll id
        next_cursor = ScrollCursor(body.get("_scroll_id") or cursor.scroll_id, cursor.keep_alive)
        return _page(body), next_cursor

    def release_cursor(self, cursor: ScrollCursor) -> None:
        assert self.client, "Search client not opened. Call .open() first."
        self._call("clear_scroll", scroll_id=cursor.scroll_id)

    def _call(self, method: str, **params: Any) -> Dict[str, Any]:
        try:
            response = getattr(self.client, method)(**params)
        except (ApiError, ElasticsearchTransportError) as e:
            raise TransportError(f"Elasticsearch {method} request failed: {e}") from e
        return getattr(response, "body", response)

    def close(self) -> None:
        """Close client."""
        if self._owns_client and self.client is not None:
            self.client.close()
            self.client = None


__all__ = ["ElasticsearchSearchClient"]
