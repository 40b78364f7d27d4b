# esbatch/loaders/elasticsearch/loader.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from elasticsearch import ApiError, Elasticsearch
from elasticsearch import TransportError as ElasticsearchTransportError

from esbatch.core.config import ConnectionConfig
from esbatch.core.connection import create_client
from esbatch.core.errors import TransportError
from esbatch.core.loader_base import BatchResult, BulkItemResult, LoaderClient
from esbatch.core.operations import WriteOperation

logger = logging.getLogger(__name__)


class ElasticsearchLoader(LoaderClient):
    """
    Sends each batch as one `_bulk` request.
    Operations without an index go to `index`. Either pass a ready client
    (the caller keeps ownership) or a ConnectionConfig (the loader opens and closes it).
    """

    def __init__(
        self,
        client: Elasticsearch | None = None,
        connection: ConnectionConfig | None = None,
        index: str | None = None,
        routing: str | None = None,
    ):
        if client is None and connection is None:
            raise ValueError("ElasticsearchLoader needs a client or a connection config")
        self.client = client
        self.connection = connection
        self.index = index
        self.routing = routing
        self._owns_client = client is None

    def connect(self) -> None:
        if self.client is None:
            self.client = create_client(self.connection)

    def submit_batch(self, operations: Sequence[WriteOperation]) -> BatchResult:
        assert self.client, "Loader not connected. Call .connect() first."

        lines: List[Dict[str, Any]] = []
        for op in operations:
            lines.extend(op.to_actions())

        params: Dict[str, Any] = {}
        if self.index is not None:
            params["index"] = self.index
        if self.routing is not None:
            params["routing"] = self.routing

        try:
            response = self.client.bulk(operations=lines, **params)
        except (ApiError, ElasticsearchTransportError) as e:
            raise TransportError(f"Bulk request of {len(operations)} operations failed: {e}") from e

        body = getattr(response, "body", response)
        logger.debug("Bulk request of %d operations took %s", len(operations), body.get("took"))
        return _parse_bulk_response(body)

    def close(self) -> None:
        if self._owns_client and self.client is not None:
            self.client.close()
            self.client = None


def _parse_bulk_response(body: Dict[str, Any]) -> BatchResult:
    items: List[BulkItemResult] = []
    for entry in body.get("items", []):
        # each item is {"<op_type>": {...}}
        op_type, detail = next(iter(entry.items()))
        error = detail.get("error")
        reason = None
        if isinstance(error, dict):
            reason = error.get("reason") or error.get("type")
        elif error is not None:
            reason = str(error)
        items.append(
            BulkItemResult(
                op_type=op_type,
                index=detail.get("_index"),
                id=detail.get("_id"),
                status=int(detail.get("status", 0)),
                reason=reason,
                failed=error is not None,
            )
        )

    return BatchResult(took=int(body.get("took", 0)), errors=bool(body.get("errors")), items=items)


__all__ = ["ElasticsearchLoader"]
