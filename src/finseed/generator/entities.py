"""
Per-record generators for every entity kind.

Each ``make_*`` method builds one record from its sequential id and its parent
id(s). All randomness comes from the injected ``random.Random`` and ``Faker``
instances, so a seeded pair reproduces the same records.
"""

from __future__ import annotations

import hashlib
import logging
import random
from datetime import date, timedelta
from decimal import ROUND_DOWN, Decimal
from typing import Optional, Sequence

from faker import Faker

from finseed.errors import GenerationError
from finseed.models import (
    Account,
    AccountStatus,
    EmailMode,
    Invoice,
    Loan,
    PasswordMode,
    Role,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
)

logger = logging.getLogger(__name__)

# Bcrypt hash reused for every user in shared password mode
SHARED_PASSWORD_HASH = "$2a$10$0Pp2F39K/SwPJ9tmSNzk8.FWukmZTdGE/BiS4tXJ5QNSXGQTWdHY2"

MAX_DESTINATION_DRAWS = 100

_CENT = Decimal("0.01")

# Enumerations are sampled as tuples to avoid rebuilding lists per record
_ROLES = tuple(Role)
_ACCOUNT_STATUSES = tuple(AccountStatus)
_TRANSACTION_TYPES = tuple(TransactionType)
_TRANSACTION_STATUSES = tuple(TransactionStatus)


def truncate_cents(value: float) -> float:
    """Truncate to two decimals; never rounds up past an exclusive bound."""
    return float(Decimal(value).quantize(_CENT, rounding=ROUND_DOWN))


def hash_password(password: str, salt: str) -> str:
    """Salted SHA-256 hash in ``sha256$<salt>$<hex>`` form."""
    digest = hashlib.sha256(f"{salt}{password}".encode("utf-8")).hexdigest()
    return f"sha256${salt}${digest}"


class EntityFactory:
    """
    Produces synthetic users, accounts, transactions, invoices and loans.

    Value ranges (all half-open):
    - user age [18, 80), monthly income [30000, 180000), credit score [300, 850)
    - account balance [1000, 51000)
    - transaction amount [10, 1010)
    - invoice amount due [100, 5100), due date today + [0, 365) days
    - loan principal [10000, 510000), interest rate [5, 20), term [12, 360) months
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        faker: Optional[Faker] = None,
        today: Optional[date] = None,
        email_mode: EmailMode = EmailMode.FAKER,
        password_mode: PasswordMode = PasswordMode.PER_RECORD,
    ):
        """
        Initialize factory.

        Args:
            rng: Randomness source for numeric and enumerated fields
            faker: Provider for names, emails and raw passwords
            today: Base date for invoice due dates (default: date.today())
            email_mode: How emails are produced
            password_mode: How password hashes are produced
        """
        self.rng = rng or random.Random()
        self.faker = faker or Faker()
        self.today = today or date.today()
        self.email_mode = EmailMode(email_mode)
        self.password_mode = PasswordMode(password_mode)

    @classmethod
    def seeded(cls, seed: Optional[int], **kwargs) -> EntityFactory:
        """Create a factory whose randomness sources are seeded with ``seed``."""
        rng = random.Random(seed)
        faker = Faker()
        if seed is not None:
            faker.seed_instance(seed)
        return cls(rng=rng, faker=faker, **kwargs)

    def make_user(self, user_id: int) -> User:
        return User(
            id=user_id,
            name=self.faker.name(),
            email=self._email(user_id),
            password=self._password(),
            age=self.rng.randrange(18, 80),
            monthly_income=self._uniform_cents(30000, 180000),
            credit_score=self.rng.randrange(300, 850),
            role=self.rng.choice(_ROLES),
        )

    def make_account(self, account_id: int, user_id: int) -> Account:
        return Account(
            id=account_id,
            balance=self._uniform_cents(1000, 51000),
            status=self.rng.choice(_ACCOUNT_STATUSES),
            user_id=user_id,
        )

    def make_transaction(
        self,
        transaction_id: int,
        source_account_id: int,
        account_pool: Sequence[int],
    ) -> Transaction:
        """
        Build a transaction from ``source_account_id`` to a random other account.

        Args:
            transaction_id: Sequential id
            source_account_id: Account the money leaves
            account_pool: Every account id a destination may be drawn from

        Raises:
            GenerationError: If no distinct destination can be drawn
        """
        return Transaction(
            id=transaction_id,
            type=self.rng.choice(_TRANSACTION_TYPES),
            amount=self._uniform_cents(10, 1010),
            source_account_id=source_account_id,
            destination_account_id=self.pick_destination(source_account_id, account_pool),
            status=self.rng.choice(_TRANSACTION_STATUSES),
        )

    def pick_destination(self, source_account_id: int, account_pool: Sequence[int]) -> int:
        """Draw uniformly from ``account_pool`` until the draw differs from the source."""
        pool_size = len(account_pool)
        if pool_size < 2:
            raise GenerationError(
                f"Transactions need at least two accounts, pool has {pool_size}",
                phase="transactions",
            )

        for _ in range(MAX_DESTINATION_DRAWS):
            candidate = account_pool[self.rng.randrange(pool_size)]
            if candidate != source_account_id:
                return candidate

        raise GenerationError(
            f"No destination distinct from account {source_account_id} "
            f"after {MAX_DESTINATION_DRAWS} draws",
            phase="transactions",
        )

    def make_invoice(self, invoice_id: int, user_id: int) -> Invoice:
        return Invoice(
            id=invoice_id,
            amount_due=self._uniform_cents(100, 5100),
            due_date=self.today + timedelta(days=self.rng.randrange(365)),
            user_id=user_id,
        )

    def make_loan(self, loan_id: int, user_id: int) -> Loan:
        return Loan(
            id=loan_id,
            principal=self._uniform_cents(10000, 510000),
            interest_rate=self._uniform_cents(5, 20),
            term_months=self.rng.randrange(12, 360),
            user_id=user_id,
            approved=self.rng.random() < 0.5,
        )

    def _uniform_cents(self, low: float, high: float) -> float:
        """Uniform draw from [low, high), truncated to cents."""
        value = truncate_cents(low + (high - low) * self.rng.random())
        # Float rounding in the draw can land exactly on the upper bound
        return min(value, high - 0.01)

    def _email(self, user_id: int) -> str:
        if self.email_mode == EmailMode.SEQUENTIAL:
            return f"user{user_id}@example.com"
        # The trailing ".<id>" keeps Faker addresses unique at any scale
        return f"{self.faker.user_name()}.{user_id}@{self.faker.free_email_domain()}"

    def _password(self) -> str:
        if self.password_mode == PasswordMode.SHARED:
            return SHARED_PASSWORD_HASH
        salt = "%016x" % self.rng.getrandbits(64)
        return hash_password(self.faker.password(length=12), salt)
