"""
Fixed-size batching between record generation and a sink.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from finseed.models import BATCH_SIZE, EntityKind, Record
from finseed.output.sink import Sink

logger = logging.getLogger(__name__)


class BatchAccumulator:
    """
    Buffers records of one entity kind and flushes them to a sink in batches.

    The buffer never holds more than ``batch_size`` records. Leaving the
    ``with`` block normally flushes whatever is left; leaving it with an
    exception does not, so a failed phase writes nothing further.

    Example:
        with BatchAccumulator(sink, EntityKind.USERS, 1000) as batch:
            for user_id in user_ids:
                batch.add(factory.make_user(user_id))
    """

    def __init__(
        self,
        sink: Sink,
        kind: EntityKind,
        batch_size: int = BATCH_SIZE,
        on_flush: Optional[Callable[[int], None]] = None,
    ):
        """
        Initialize accumulator.

        Args:
            sink: Destination for flushed batches
            kind: Entity kind of every record added
            batch_size: Records per flush
            on_flush: Called with the size of each flushed batch
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")

        self.sink = sink
        self.kind = kind
        self.batch_size = batch_size
        self.on_flush = on_flush

        self._buffer: List[Record] = []
        self.flush_count = 0
        self.record_count = 0

    def __enter__(self) -> BatchAccumulator:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            self.flush()

    def __len__(self) -> int:
        return len(self._buffer)

    def add(self, record: Record) -> None:
        """Buffer one record, flushing when the batch is full."""
        self._buffer.append(record)
        self.record_count += 1
        if len(self._buffer) >= self.batch_size:
            self.flush()

    def flush(self) -> None:
        """Write buffered records to the sink in insertion order and clear the buffer."""
        if not self._buffer:
            return

        batch = self._buffer
        self._buffer = []
        self.sink.write_batch(self.kind, batch)
        self.flush_count += 1

        logger.debug(f"Generated {self.record_count} {self.kind.value}")
        if self.on_flush is not None:
            self.on_flush(len(batch))
