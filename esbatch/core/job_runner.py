# esbatch/core/job_runner.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# component modules register themselves on import
from esbatch.extractors.bulk_file import extractor as _bulk_source  # noqa: F401
from esbatch.extractors.rows import extractor as _row_source  # noqa: F401
from esbatch.storage.file_writer import FileStorageWriter
from esbatch.transformers import bulk_actions as _bulk_mapper  # noqa: F401
from esbatch.transformers import rows as _row_mapper  # noqa: F401

from .batch_executor import BatchExecutor
from .config import FetchType, JobConfig
from .extractor_base import Extractor
from .loader_base import LoaderClient
from .metrics import InMemoryMetrics, MetricsAccumulator, MetricsChannel
from .registry import MAPPERS, SOURCES, get_registry
from .scroll_exporter import ScrollExporter, ScrollOutput
from .search_base import SearchClient, SearchRequest
from .transformer_base import Transformer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadOutput:
    size: int


@dataclass(frozen=True)
class SearchOutput:
    size: int
    total: Optional[int] = None
    rows: List[Dict[str, Any]] = field(default_factory=list)
    row: Optional[Dict[str, Any]] = None
    uri: Optional[str] = None


class JobRunner:
    """
    Orchestrates one run:
      - bulk_load / load: file -> Extractor -> Transformer -> BatchExecutor -> Loader
      - scroll_export: SearchClient -> ScrollExporter -> StorageWriter
      - search: SearchClient -> rows, first row or StorageWriter
    Every stage is opened before work starts and closed, in reverse order, on every exit path.
    """

    def __init__(self, cfg: JobConfig | None = None, metrics: MetricsChannel | None = None) -> None:
        self.cfg = cfg or JobConfig()
        self.metrics = metrics if metrics is not None else InMemoryMetrics()
        self.registry = get_registry()

    # ---------------------- public entry points ----------------------

    def bulk_load(self, location: str, loader: LoaderClient) -> LoadOutput:
        """Pipeline: bulk file (action/document lines) -> Loader."""
        logger.info("Job '%s': bulk load from %s", self.cfg.name, location)
        extractor = self.registry.create(SOURCES, "bulk", location)
        mapper = self.registry.create(MAPPERS, "bulk")
        return self.run_extract_to_loader(extractor, mapper, loader)

    def load(self, location: str, loader: LoaderClient) -> LoadOutput:
        """Pipeline: row file -> Loader, one operation of the configured kind per row."""
        logger.info("Job '%s': row load from %s", self.cfg.name, location)
        extractor = self.registry.create(SOURCES, "rows", location)
        mapper = self.registry.create(MAPPERS, "rows", self.cfg.load)
        return self.run_extract_to_loader(extractor, mapper, loader)

    def run_extract_to_loader(
        self,
        extractor: Extractor,
        transformer: Transformer,
        loader: LoaderClient,
    ) -> LoadOutput:
        """Pipeline: Extract -> Transform -> sequential bulk requests."""
        executor = BatchExecutor(
            loader, metrics=self.metrics, prefetch_batches=self.cfg.threading.prefetch_batches
        )
        try:
            extractor.open()
            transformer.open()
            loader.connect()

            operations = transformer.map_stream(extractor.iter_records())
            run = executor.execute(operations, self.cfg.load.chunk)
            return LoadOutput(size=run.record_count)
        finally:
            # always close in reverse order
            loader.close()
            transformer.close()
            extractor.close()

    def scroll_export(self, client: SearchClient, sink_location: str | None = None) -> ScrollOutput:
        """Pipeline: scroll search -> sink file (a temp file when no location is given)."""
        request = self._request()
        writer = FileStorageWriter(sink_location, fmt=self.cfg.scroll.output_format)
        logger.info("Job '%s': scroll export of %s", self.cfg.name, request.indexes or "all indices")
        exporter = ScrollExporter(
            client, writer, metrics=self.metrics, keep_alive=self.cfg.scroll.keep_alive
        )
        try:
            client.open()
            writer.open()
            return exporter.export(request)
        finally:
            writer.close()
            client.close()

    def search(self, client: SearchClient, sink_location: str | None = None) -> SearchOutput:
        """Single search request, no scroll; hits exposed according to the fetch type."""
        request = self._request()
        fetch_type = self.cfg.scroll.fetch_type
        acc = MetricsAccumulator()

        try:
            client.open()
            page, _ = client.search(request)
            acc.add_request(page.took)
            acc.add_records(len(page))
        finally:
            client.close()
            acc.publish(self.metrics)

        if fetch_type is FetchType.FETCH:
            return SearchOutput(size=len(page), total=page.total, rows=list(page.hits))
        if fetch_type is FetchType.FETCH_ONE:
            first = page.hits[0] if page.hits else None
            return SearchOutput(size=1 if first is not None else 0, total=page.total, row=first)
        if fetch_type is FetchType.STORE:
            writer = FileStorageWriter(sink_location, fmt=self.cfg.scroll.output_format)
            try:
                writer.open()
                writer.append_batch(page.hits)
                manifest = writer.finalize()
            finally:
                writer.close()
            return SearchOutput(size=manifest.total_records, total=page.total, uri=manifest.location)
        return SearchOutput(size=0, total=page.total)

    # ---------------------- internals ----------------------

    def _request(self) -> SearchRequest:
        scroll = self.cfg.scroll
        return SearchRequest.build(scroll.request, scroll.indexes, scroll.routing)


__all__ = ["JobRunner", "LoadOutput", "SearchOutput"]
