"""
Output module for materializing generated records.

Supports:
- SQL script files (DDL followed by INSERT statements)
- Direct batched writes to a database in one transaction
"""

from finseed.output.sink import Sink, create_sink
from finseed.output.sql_file import SqlFileSink
from finseed.output.database import DatabaseSink, create_engine_from_url

__all__ = [
    "Sink",
    "create_sink",
    "SqlFileSink",
    "DatabaseSink",
    "create_engine_from_url",
]
