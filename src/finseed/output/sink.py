"""
Sink interface shared by every persistence target.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Sequence

from finseed.errors import ConfigurationError
from finseed.models import EntityKind, GenerationConfig, Record, SinkType

logger = logging.getLogger(__name__)


class Sink(ABC):
    """
    Materializes generated records.

    Lifecycle driven by the generator:
        open() -> write_batch()* / end_phase() per phase -> finish()
    or abort() instead of finish() when any step fails. A sink only decides
    how records are stored, never which records exist.
    """

    name: str = "sink"

    def open(self) -> None:
        """Prepare the target (schema setup, file handles, transactions)."""

    @abstractmethod
    def write_batch(self, kind: EntityKind, records: Sequence[Record]) -> None:
        """Persist one batch of records of a single kind, in order."""

    def end_phase(self, kind: EntityKind) -> None:
        """Called once after the last batch of a phase."""

    def finish(self) -> None:
        """Finalize a successful run."""

    def abort(self) -> None:
        """Release resources after a failed run."""

    def __enter__(self) -> Sink:
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            self.finish()
        else:
            self.abort()


def create_sink(config: GenerationConfig) -> Sink:
    """
    Build the sink selected by ``config.sink``.

    Raises:
        ConfigurationError: If the sink type is unknown
    """
    if config.sink == SinkType.FILE:
        from finseed.output.sql_file import SqlFileSink
        return SqlFileSink(config.output_file)

    if config.sink == SinkType.DB:
        from finseed.output.database import DatabaseSink, create_engine_from_url
        return DatabaseSink(create_engine_from_url(config.database_url))

    raise ConfigurationError(f"Unknown sink type: {config.sink}")
