"""
Generator component - runs the generation phases against a sink.

Handles:
- Phase ordering (users -> accounts -> transactions -> invoices -> loans)
- Threading parent identifiers from each phase into the next
- Batching every phase through a BatchAccumulator
- Fail-fast error handling with sink abort
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional

from tqdm import tqdm

from finseed.errors import GenerationError
from finseed.generator.batch import BatchAccumulator
from finseed.generator.entities import EntityFactory
from finseed.models import EntityKind, GenerationConfig, GenerationSummary
from finseed.output.sink import Sink

logger = logging.getLogger(__name__)


class Generator:
    """
    Generates the full financial dataset into a sink.

    The generator:
    1. Opens the sink (schema setup)
    2. Generates users, returning their dense id range
    3. Generates accounts per user, returning user -> account ids
    4. Generates transactions between distinct accounts
    5. Generates invoices and loans per user
    6. Finishes the sink (indexes, commit), or aborts it on any failure

    No phase starts before the previous one has fully flushed, so every
    foreign key points at a record the sink has already received.
    """

    def __init__(
        self,
        config: GenerationConfig,
        sink: Sink,
        factory: Optional[EntityFactory] = None,
    ):
        """
        Initialize generator.

        Args:
            config: Generation configuration
            sink: Destination for generated records
            factory: Record factory (default: seeded from config.seed)
        """
        self.config = config
        self.sink = sink
        self.factory = factory or EntityFactory.seeded(
            config.seed,
            email_mode=config.email_mode,
            password_mode=config.password_mode,
        )

        self._expected = config.expected_counts()
        self._row_counts: Dict[str, int] = {}
        self._batch_counts: Dict[str, int] = {}
        self._phase: Optional[str] = None

    def generate(self) -> GenerationSummary:
        """
        Run every phase in order.

        Returns:
            Summary with per-table row and batch counts

        Raises:
            GenerationError: If any phase or the sink fails; the sink is aborted first
        """
        logger.info(f"Starting {self.sink.name} data generation...")
        start = time.perf_counter()

        try:
            self._phase = "schema"
            self.sink.open()

            user_ids = self._generate_users()
            user_accounts = self._generate_accounts(user_ids)
            self._generate_transactions(user_accounts)
            self._generate_invoices(user_ids)
            self._generate_loans(user_ids)

            self._phase = "finalize"
            self.sink.finish()
        except Exception as e:
            phase = self._phase
            logger.error(f"Error during data generation: {e}")
            self.sink.abort()
            if isinstance(e, GenerationError):
                raise GenerationError(e.detail, phase=e.phase or phase, sink=self.sink.name) from e
            raise GenerationError(f"Failed to generate data: {e}", phase=phase, sink=self.sink.name) from e

        elapsed = time.perf_counter() - start
        logger.info(f"Data generation completed in {elapsed:.1f} seconds")

        return GenerationSummary(
            sink=self.sink.name,
            row_counts=dict(self._row_counts),
            batch_counts=dict(self._batch_counts),
            elapsed_seconds=elapsed,
        )

    def _generate_users(self) -> range:
        user_ids = range(1, self.config.users + 1)
        logger.info(f"Generating {len(user_ids):,} users...")

        def fill(batch: BatchAccumulator) -> None:
            for user_id in user_ids:
                batch.add(self.factory.make_user(user_id))

        self._run_phase(EntityKind.USERS, fill)
        return user_ids

    def _generate_accounts(self, user_ids: range) -> Dict[int, range]:
        logger.info(f"Generating accounts for {len(user_ids):,} users...")
        per_user = self.config.accounts_per_user
        user_accounts: Dict[int, range] = {}

        def fill(batch: BatchAccumulator) -> None:
            next_id = 1
            for user_id in user_ids:
                account_ids = range(next_id, next_id + per_user)
                for account_id in account_ids:
                    batch.add(self.factory.make_account(account_id, user_id))
                user_accounts[user_id] = account_ids
                next_id += per_user

        self._run_phase(EntityKind.ACCOUNTS, fill)
        return user_accounts

    def _generate_transactions(self, user_accounts: Dict[int, range]) -> int:
        logger.info("Generating transactions...")
        per_account = self.config.transactions_per_account
        total_accounts = sum(len(ids) for ids in user_accounts.values())
        # Account ids are dense, so the pool is a range rather than a list
        account_pool = range(1, total_accounts + 1)

        def fill(batch: BatchAccumulator) -> None:
            transaction_id = 1
            for account_ids in user_accounts.values():
                for source_id in account_ids:
                    for _ in range(per_account):
                        batch.add(
                            self.factory.make_transaction(transaction_id, source_id, account_pool)
                        )
                        transaction_id += 1

        return self._run_phase(EntityKind.TRANSACTIONS, fill)

    def _generate_invoices(self, user_ids: range) -> int:
        logger.info("Generating invoices...")
        per_user = self.config.invoices_per_user

        def fill(batch: BatchAccumulator) -> None:
            invoice_id = 1
            for user_id in user_ids:
                for _ in range(per_user):
                    batch.add(self.factory.make_invoice(invoice_id, user_id))
                    invoice_id += 1

        return self._run_phase(EntityKind.INVOICES, fill)

    def _generate_loans(self, user_ids: range) -> int:
        logger.info("Generating loans...")
        per_user = self.config.loans_per_user

        def fill(batch: BatchAccumulator) -> None:
            loan_id = 1
            for user_id in user_ids:
                for _ in range(per_user):
                    batch.add(self.factory.make_loan(loan_id, user_id))
                    loan_id += 1

        return self._run_phase(EntityKind.LOANS, fill)

    def _run_phase(self, kind: EntityKind, fill: Callable[[BatchAccumulator], None]) -> int:
        """Run one phase through a fresh accumulator and record its counts."""
        self._phase = kind.value

        with tqdm(
            total=self._expected[kind],
            desc=f"Generating {kind.value}",
            unit="rows",
            disable=not self.config.show_progress,
        ) as progress:
            with BatchAccumulator(
                self.sink,
                kind,
                self.config.batch_size,
                on_flush=progress.update,
            ) as batch:
                fill(batch)

        self.sink.end_phase(kind)

        self._row_counts[kind.value] = batch.record_count
        self._batch_counts[kind.value] = batch.flush_count
        logger.info(
            f"Generated {batch.record_count:,} {kind.value} in {batch.flush_count:,} batches"
        )
        return batch.record_count
