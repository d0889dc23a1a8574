"""
finseed - Synthetic Data Generator for a Financial Relational Schema

Populates users, accounts, transactions, invoices and loans with
referentially consistent synthetic records at load-testing scale.

Features:
- Fixed dependency-ordered generation phases
- Bounded memory via fixed-size batching
- Output as a PostgreSQL script or direct single-transaction database load
- Seedable randomness for reproducible datasets
"""

__version__ = "0.1.0"

from finseed.errors import ConfigurationError, GenerationError
from finseed.models import (
    Account,
    EntityKind,
    GenerationConfig,
    GenerationSummary,
    Invoice,
    Loan,
    Transaction,
    User,
)
from finseed.generator import BatchAccumulator, EntityFactory, Generator
from finseed.output import DatabaseSink, Sink, SqlFileSink, create_sink


def generate(config: GenerationConfig) -> GenerationSummary:
    """Build the configured sink and run a full generation."""
    return Generator(config, create_sink(config)).generate()


__all__ = [
    # Errors
    "ConfigurationError",
    "GenerationError",
    # Core models
    "User",
    "Account",
    "Transaction",
    "Invoice",
    "Loan",
    "EntityKind",
    "GenerationConfig",
    "GenerationSummary",
    # Generation
    "BatchAccumulator",
    "EntityFactory",
    "Generator",
    "generate",
    # Output
    "Sink",
    "SqlFileSink",
    "DatabaseSink",
    "create_sink",
]
