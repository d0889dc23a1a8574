"""
Table and index definitions for the generated dataset.

The same SQLAlchemy metadata drives the database sink (create/drop against a
live engine) and the SQL script written by the file sink (compiled for
PostgreSQL).
"""

from __future__ import annotations

from typing import Dict, List

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
)
from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateIndex, CreateTable

from finseed.models import EntityKind

# SQLite only autoincrements INTEGER PRIMARY KEY columns
IdType = BigInteger().with_variant(Integer, "sqlite")

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", IdType, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("password", String(255), nullable=False),
    Column("age", Integer, nullable=False),
    Column("monthly_income", Numeric(15, 2), nullable=False),
    Column("credit_score", Integer, nullable=False),
    Column("role", String(20), nullable=False),
)

accounts = Table(
    "accounts",
    metadata,
    Column("id", IdType, primary_key=True, autoincrement=True),
    Column("balance", Numeric(15, 2), nullable=False),
    Column("status", String(20), nullable=False),
    Column("user_id", BigInteger, ForeignKey("users.id"), nullable=False),
)

transactions = Table(
    "transactions",
    metadata,
    Column("id", IdType, primary_key=True, autoincrement=True),
    Column("type", String(20), nullable=False),
    Column("amount", Numeric(15, 2), nullable=False),
    Column("source_account_id", BigInteger, ForeignKey("accounts.id"), nullable=False),
    Column("destination_account_id", BigInteger, ForeignKey("accounts.id"), nullable=False),
    Column("status", String(20), nullable=False),
)

invoices = Table(
    "invoices",
    metadata,
    Column("id", IdType, primary_key=True, autoincrement=True),
    Column("amount_due", Numeric(15, 2), nullable=False),
    Column("due_date", Date, nullable=False),
    Column("user_id", BigInteger, ForeignKey("users.id"), nullable=False),
)

loans = Table(
    "loans",
    metadata,
    Column("id", IdType, primary_key=True, autoincrement=True),
    Column("principal", Numeric(15, 2), nullable=False),
    Column("interest_rate", Numeric(5, 2), nullable=False),
    Column("term_months", Integer, nullable=False),
    Column("user_id", BigInteger, ForeignKey("users.id"), nullable=False),
    Column("approved", Boolean, nullable=False),
)

TABLES: Dict[EntityKind, Table] = {
    EntityKind.USERS: users,
    EntityKind.ACCOUNTS: accounts,
    EntityKind.TRANSACTIONS: transactions,
    EntityKind.INVOICES: invoices,
    EntityKind.LOANS: loans,
}

# Attached to their tables, but only emitted by create_indexes() after bulk load
INDEXES: List[Index] = [
    Index("idx_user_role", users.c.role),
    Index("idx_account_status", accounts.c.status),
    Index("idx_account_user", accounts.c.user_id),
    Index("idx_transaction_status", transactions.c.status),
    Index("idx_transaction_source", transactions.c.source_account_id),
    Index("idx_transaction_dest", transactions.c.destination_account_id),
    Index("idx_invoice_due_date", invoices.c.due_date),
    Index("idx_invoice_user", invoices.c.user_id),
    Index("idx_loan_user", loans.c.user_id),
    Index("idx_loan_approved", loans.c.approved),
]


def render_drop_statements() -> List[str]:
    """DROP statements for every table, children first."""
    return [
        f"DROP TABLE IF EXISTS {table.name} CASCADE;"
        for table in reversed(metadata.sorted_tables)
    ]


def render_create_statements() -> List[str]:
    """CREATE TABLE statements compiled for PostgreSQL, parents first."""
    dialect = postgresql.dialect()
    return [
        str(CreateTable(table).compile(dialect=dialect)).strip() + ";"
        for table in metadata.sorted_tables
    ]


def render_index_statements() -> List[str]:
    """CREATE INDEX statements compiled for PostgreSQL."""
    dialect = postgresql.dialect()
    return [str(CreateIndex(index).compile(dialect=dialect)).strip() + ";" for index in INDEXES]


def render_sequence_sync_statements() -> List[str]:
    """Statements that move each id sequence past the explicitly inserted ids."""
    return [
        f"SELECT setval(pg_get_serial_sequence('{table.name}', 'id'), "
        f"COALESCE(MAX(id), 1), MAX(id) IS NOT NULL) FROM {table.name};"
        for table in metadata.sorted_tables
    ]


def render_ddl(include_indexes: bool = True) -> str:
    """Full schema script: drops, creates and (optionally) indexes."""
    statements = render_drop_statements() + render_create_statements()
    if include_indexes:
        statements += render_index_statements()
    return "\n\n".join(statements) + "\n"


def drop_tables(connection) -> None:
    """
    Drop every table that exists, children first.

    On PostgreSQL the drops cascade, matching the SQL script, so foreign keys
    from tables outside this schema do not block a reload.
    """
    if connection.dialect.name == "postgresql":
        for statement in render_drop_statements():
            connection.exec_driver_sql(statement.rstrip(";"))
        return

    for table in reversed(metadata.sorted_tables):
        table.drop(connection, checkfirst=True)


def create_tables(connection) -> None:
    """Create every table without its indexes."""
    for table in metadata.sorted_tables:
        connection.execute(CreateTable(table))


def create_indexes(connection) -> None:
    """Create the supporting indexes; run after bulk load."""
    for index in INDEXES:
        index.create(connection)
