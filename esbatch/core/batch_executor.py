# esbatch/core/batch_executor.py
from __future__ import annotations

import logging
import queue
import threading
from typing import Iterable, Iterator, List

from .errors import BulkItemsError
from .loader_base import LoaderClient
from .metrics import InMemoryMetrics, MetricsAccumulator, MetricsChannel, RunMetrics
from .operations import WriteOperation

logger = logging.getLogger(__name__)

Batch = List[WriteOperation]

_POLL_INTERVAL = 0.1
_DONE = object()


class _Failure:
    def __init__(self, error: Exception) -> None:
        self.error = error


class BatchExecutor:
    """
    Sends a stream of write operations as sequential bulk requests of `chunk` operations.

    Fail-fast: the first batch whose response reports a failed item aborts the run with
    BulkItemsError; transport and decode errors propagate as they are. Batches already
    accepted by the server stay written. Metrics are published once, when the run ends.
    """

    def __init__(
        self,
        loader: LoaderClient,
        metrics: MetricsChannel | None = None,
        prefetch_batches: int = 0,
    ) -> None:
        if prefetch_batches < 0:
            raise ValueError("prefetch_batches must be >= 0")
        self.loader = loader
        self.metrics = metrics if metrics is not None else InMemoryMetrics()
        self.prefetch_batches = prefetch_batches

    def execute(self, operations: Iterable[WriteOperation], chunk: int) -> RunMetrics:
        if chunk < 1:
            raise ValueError(f"Chunk size must be >= 1, got {chunk}")

        acc = MetricsAccumulator()
        batches = self._batches(operations, chunk)
        try:
            for batch in batches:
                # counts operations attempted, acknowledged or not
                acc.add_records(len(batch))
                result = self.loader.submit_batch(batch)
                acc.add_request(result.took)

                if result.errors:
                    raise BulkItemsError(result.failed_items)
        finally:
            batches.close()
            run = acc.publish(self.metrics)

        logger.info(
            "Successfully sent %d requests for %d records in %dns",
            run.request_count,
            run.record_count,
            run.duration,
        )
        return run

    def _batches(self, operations: Iterable[WriteOperation], chunk: int) -> Iterator[Batch]:
        batches = _batch_iter(operations, chunk)
        if self.prefetch_batches == 0:
            return batches
        return _prefetch(batches, self.prefetch_batches)


# ------------ helpers ------------


def _batch_iter(operations: Iterable[WriteOperation], size: int) -> Iterator[Batch]:
    """Turn an iterator of operations into an iterator of batches."""
    batch: Batch = []
    for op in operations:
        batch.append(op)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch


def _prefetch(batches: Iterator[Batch], depth: int) -> Iterator[Batch]:
    """
    Produce batches in a background thread, at most `depth` ahead of the consumer.
    The producer blocks while the queue is full, so besides the batch being submitted
    up to `depth` batches wait in the queue and one more is held by the blocked producer.
    Its errors are re-raised here.
    Closing this generator stops the producer and waits for it.
    """
    handoff: queue.Queue = queue.Queue(maxsize=depth)
    stop = threading.Event()

    def put(item: object) -> bool:
        while not stop.is_set():
            try:
                handoff.put(item, timeout=_POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False

    def produce() -> None:
        # the consumer always receives a terminal item, even on BaseException
        outcome: object = _Failure(RuntimeError("Batch producer stopped unexpectedly"))
        try:
            for batch in batches:
                if not put(batch):
                    return
            outcome = _DONE
        except Exception as e:  # handed over to the consumer
            outcome = _Failure(e)
        finally:
            put(outcome)

    producer = threading.Thread(target=produce, name="esbatch-prefetch", daemon=True)
    producer.start()
    try:
        while True:
            item = handoff.get()
            if item is _DONE:
                return
            if isinstance(item, _Failure):
                raise item.error
            yield item
    finally:
        stop.set()
        producer.join()


__all__ = ["BatchExecutor", "Batch"]
