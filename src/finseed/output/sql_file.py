"""
SQL script sink - writes the schema and one INSERT statement per record.

Output layout:
    DROP TABLE IF EXISTS ... CASCADE;     # children first
    CREATE TABLE ...;                     # parents first
    CREATE INDEX ...;                     # ten supporting indexes

    INSERT INTO users (...) VALUES (...);
    ...                                   # one block per phase, blank line between

    SELECT setval(...);                   # id sequences moved past loaded ids
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Sequence, TextIO

from finseed.models import EntityKind, Record
from finseed.output import schema
from finseed.output.sink import Sink

logger = logging.getLogger(__name__)


def quote_string(value: str) -> str:
    """Single-quote a string literal, doubling embedded quotes."""
    return "'" + value.replace("'", "''") + "'"


def format_value(value: Any) -> str:
    """Render one Python value as a PostgreSQL literal."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, Enum):
        return quote_string(str(value.value))
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return f"{value:.2f}"
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return quote_string(value.isoformat())
    return quote_string(str(value))


def render_insert(record: Record) -> str:
    """INSERT statement for a single record, with its explicit id."""
    columns = ", ".join(record.COLUMNS)
    values = ", ".join(format_value(v) for v in record.to_row())
    return f"INSERT INTO {record.TABLE} ({columns}) VALUES ({values});"


class SqlFileSink(Sink):
    """
    Writes a PostgreSQL-loadable script to a UTF-8 text file.

    Records already written stay in the file if the run aborts; nothing is
    rolled back.
    """

    name = "file"

    def __init__(self, path: Path):
        """
        Initialize file sink.

        Args:
            path: Output file; parent directories are created on open
        """
        self.path = Path(path)
        self._file: Optional[TextIO] = None
        self.statements_written = 0

    def open(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, "w", encoding="utf-8", newline="\n")
        logger.info(f"Writing SQL script to {self.path}")

        self._write_lines(schema.render_drop_statements())
        self._file.write("\n")
        self._file.write("\n\n".join(schema.render_create_statements()))
        self._file.write("\n\n")
        self._write_lines(schema.render_index_statements())
        self._file.write("\n")

    def write_batch(self, kind: EntityKind, records: Sequence[Record]) -> None:
        self._write_lines(render_insert(record) for record in records)
        self.statements_written += len(records)

    def end_phase(self, kind: EntityKind) -> None:
        self._require_open().write("\n")

    def finish(self) -> None:
        self._write_lines(schema.render_sequence_sync_statements())
        self._close()
        logger.info(f"Wrote {self.statements_written:,} INSERT statements to {self.path}")

    def abort(self) -> None:
        self._close()
        logger.warning(f"Aborted; {self.path} holds {self.statements_written:,} INSERT statements")

    def _write_lines(self, lines) -> None:
        handle = self._require_open()
        for line in lines:
            handle.write(line)
            handle.write("\n")

    def _require_open(self) -> TextIO:
        if self._file is None:
            raise RuntimeError(f"SQL file sink for {self.path} is not open")
        return self._file

    def _close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
