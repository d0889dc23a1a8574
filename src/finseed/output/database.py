"""
Database sink - batched parameterized inserts inside one transaction.

The whole run is a single unit of work: tables are dropped and recreated,
every batch is inserted, and indexes are built after the bulk load, all
before one commit. Any failure rolls everything back.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

from sqlalchemy import create_engine, event, insert
from sqlalchemy.engine import Connection, Engine, Transaction
from sqlalchemy.exc import ArgumentError

from finseed.errors import ConfigurationError
from finseed.models import EntityKind, Record
from finseed.output import schema
from finseed.output.sink import Sink

logger = logging.getLogger(__name__)


def create_engine_from_url(url: str, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine for ``url``.

    SQLite engines get foreign key enforcement and explicit transaction
    control, so DDL participates in the run's transaction as it does on
    PostgreSQL.
    """
    try:
        engine = create_engine(url, echo=echo)
    except ArgumentError as e:
        raise ConfigurationError(f"Invalid database URL: {e}") from e

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            # Let SQLAlchemy emit BEGIN itself instead of pysqlite
            dbapi_conn.isolation_level = None
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def do_begin(conn):
            conn.exec_driver_sql("BEGIN")

    return engine


class DatabaseSink(Sink):
    """
    Loads records straight into a relational database.

    Each flushed batch becomes one executemany insert. Ids are left to the
    tables' auto-increment keys; since the tables are recreated at the start
    of the transaction they assign the same dense 1..N sequence the generator
    used for foreign keys.
    """

    name = "db"

    def __init__(self, engine: Engine):
        """
        Initialize database sink.

        Args:
            engine: SQLAlchemy engine for the target database
        """
        self.engine = engine
        self._connection: Optional[Connection] = None
        self._transaction: Optional[Transaction] = None
        self.rows_inserted: Dict[str, int] = {}

    def open(self) -> None:
        self._connection = self.engine.connect()
        self._transaction = self._connection.begin()

        logger.info("Creating tables...")
        schema.drop_tables(self._connection)
        schema.create_tables(self._connection)

    def write_batch(self, kind: EntityKind, records: Sequence[Record]) -> None:
        if not records:
            return

        table = schema.TABLES[kind]
        # Drop the id so the auto-increment key assigns it
        columns = records[0].COLUMNS[1:]
        params = [dict(zip(columns, record.to_row()[1:])) for record in records]

        self._require_connection().execute(insert(table), params)
        self.rows_inserted[table.name] = self.rows_inserted.get(table.name, 0) + len(records)

    def finish(self) -> None:
        connection = self._require_connection()
        try:
            logger.info("Creating indexes...")
            schema.create_indexes(connection)
            self._transaction.commit()
            logger.info(f"Committed {sum(self.rows_inserted.values()):,} rows")
        except Exception:
            self._rollback()
            raise
        finally:
            self._close()

    def abort(self) -> None:
        try:
            self._rollback()
        finally:
            self._close()

    def _rollback(self) -> None:
        if self._transaction is not None and self._transaction.is_active:
            logger.warning("Rolling back generation transaction")
            self._transaction.rollback()

    def _require_connection(self) -> Connection:
        if self._connection is None:
            raise RuntimeError("Database sink is not open")
        return self._connection

    def _close(self) -> None:
        if self._connection is not None:
            self._connection.close()
        self._connection = None
        self._transaction = None
