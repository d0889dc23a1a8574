"""
Core data models for the finseed package.

Defines the generated record types, the enumerations they draw from, and the
configuration and summary objects used throughout the system.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

import yaml

from finseed.errors import ConfigurationError

# Fan-out and batching defaults
DEFAULT_USERS = 3_000_000
ACCOUNTS_PER_USER = 2
TRANSACTIONS_PER_ACCOUNT = 6
INVOICES_PER_USER = 2
LOANS_PER_USER = 2
BATCH_SIZE = 1000


class Role(str, Enum):
    """User roles."""
    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"
    CLIENT = "CLIENT"


class AccountStatus(str, Enum):
    """Account lifecycle status."""
    ACTIVE = "ACTIVE"
    BLOCKED = "BLOCKED"


class TransactionType(str, Enum):
    """How a transaction is executed."""
    STANDARD = "STANDARD"
    INSTANT = "INSTANT"
    SCHEDULED = "SCHEDULED"


class TransactionStatus(str, Enum):
    """Settlement status of a transaction."""
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


class EntityKind(str, Enum):
    """Generation phases, in dependency order."""
    USERS = "users"
    ACCOUNTS = "accounts"
    TRANSACTIONS = "transactions"
    INVOICES = "invoices"
    LOANS = "loans"


class SinkType(str, Enum):
    """Supported persistence targets."""
    FILE = "file"
    DB = "db"


class EmailMode(str, Enum):
    """How user emails are produced."""
    FAKER = "faker"             # Realistic address, made unique with the user id
    SEQUENTIAL = "sequential"   # user<id>@example.com


class PasswordMode(str, Enum):
    """How user password hashes are produced."""
    PER_RECORD = "per_record"   # Salted hash computed for every user
    SHARED = "shared"           # One precomputed hash reused for every user


# Sink-specific defaults for (email_mode, password_mode)
SINK_DEFAULT_MODES = {
    SinkType.FILE: (EmailMode.FAKER, PasswordMode.PER_RECORD),
    SinkType.DB: (EmailMode.SEQUENTIAL, PasswordMode.SHARED),
}


@dataclass(frozen=True)
class User:
    """A generated user; root of every other relation."""
    TABLE: ClassVar[str] = "users"
    COLUMNS: ClassVar[Tuple[str, ...]] = (
        "id", "name", "email", "password", "age", "monthly_income", "credit_score", "role",
    )

    id: int
    name: str
    email: str
    password: str
    age: int
    monthly_income: float
    credit_score: int
    role: Role

    def to_row(self) -> Tuple[Any, ...]:
        return (
            self.id, self.name, self.email, self.password, self.age,
            self.monthly_income, self.credit_score, self.role.value,
        )


@dataclass(frozen=True)
class Account:
    """A generated account owned by one user."""
    TABLE: ClassVar[str] = "accounts"
    COLUMNS: ClassVar[Tuple[str, ...]] = ("id", "balance", "status", "user_id")

    id: int
    balance: float
    status: AccountStatus
    user_id: int

    def to_row(self) -> Tuple[Any, ...]:
        return (self.id, self.balance, self.status.value, self.user_id)


@dataclass(frozen=True)
class Transaction:
    """A generated transfer between two distinct accounts."""
    TABLE: ClassVar[str] = "transactions"
    COLUMNS: ClassVar[Tuple[str, ...]] = (
        "id", "type", "amount", "source_account_id", "destination_account_id", "status",
    )

    id: int
    type: TransactionType
    amount: float
    source_account_id: int
    destination_account_id: int
    status: TransactionStatus

    def to_row(self) -> Tuple[Any, ...]:
        return (
            self.id, self.type.value, self.amount, self.source_account_id,
            self.destination_account_id, self.status.value,
        )


@dataclass(frozen=True)
class Invoice:
    """A generated invoice owned by one user."""
    TABLE: ClassVar[str] = "invoices"
    COLUMNS: ClassVar[Tuple[str, ...]] = ("id", "amount_due", "due_date", "user_id")

    id: int
    amount_due: float
    due_date: date
    user_id: int

    def to_row(self) -> Tuple[Any, ...]:
        return (self.id, self.amount_due, self.due_date, self.user_id)


@dataclass(frozen=True)
class Loan:
    """A generated loan owned by one user."""
    TABLE: ClassVar[str] = "loans"
    COLUMNS: ClassVar[Tuple[str, ...]] = (
        "id", "principal", "interest_rate", "term_months", "user_id", "approved",
    )

    id: int
    principal: float
    interest_rate: float
    term_months: int
    user_id: int
    approved: bool

    def to_row(self) -> Tuple[Any, ...]:
        return (
            self.id, self.principal, self.interest_rate, self.term_months,
            self.user_id, self.approved,
        )


Record = Union[User, Account, Transaction, Invoice, Loan]

COUNT_FIELDS = (
    "users",
    "accounts_per_user",
    "transactions_per_account",
    "invoices_per_user",
    "loans_per_user",
)


@dataclass
class GenerationConfig:
    """Configuration for a generation run."""
    sink: Union[SinkType, str] = SinkType.FILE
    output_file: Optional[Path] = None
    database_url: Optional[str] = None

    # Per-entity counts
    users: int = DEFAULT_USERS
    accounts_per_user: int = ACCOUNTS_PER_USER
    transactions_per_account: int = TRANSACTIONS_PER_ACCOUNT
    invoices_per_user: int = INVOICES_PER_USER
    loans_per_user: int = LOANS_PER_USER
    batch_size: int = BATCH_SIZE

    seed: Optional[int] = None

    # None means "use the sink's default"
    email_mode: Optional[Union[EmailMode, str]] = None
    password_mode: Optional[Union[PasswordMode, str]] = None

    show_progress: bool = True

    def __post_init__(self):
        self.sink = _coerce_enum(SinkType, self.sink, "sink")
        if isinstance(self.output_file, str):
            self.output_file = Path(self.output_file)

        default_email, default_password = SINK_DEFAULT_MODES[self.sink]
        if self.email_mode is None:
            self.email_mode = default_email
        if self.password_mode is None:
            self.password_mode = default_password
        self.email_mode = _coerce_enum(EmailMode, self.email_mode, "email_mode")
        self.password_mode = _coerce_enum(PasswordMode, self.password_mode, "password_mode")

        self.validate()

    def validate(self) -> None:
        """Reject configurations that cannot produce a valid run."""
        if self.sink == SinkType.FILE and self.output_file is None:
            raise ConfigurationError("The file sink requires an output file path")
        if self.sink == SinkType.DB and not self.database_url:
            raise ConfigurationError("The db sink requires a database URL")

        for name in COUNT_FIELDS + ("batch_size",):
            value = getattr(self, name)
            # bool is an int subclass but never a valid count
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigurationError(
                    f"{name} must be an integer, got {type(value).__name__} {value!r}"
                )

        if self.batch_size < 1:
            raise ConfigurationError(f"batch_size must be at least 1, got {self.batch_size}")

        for name in COUNT_FIELDS:
            value = getattr(self, name)
            if value < 0:
                raise ConfigurationError(f"{name} must not be negative, got {value}")

    @property
    def total_accounts(self) -> int:
        return self.users * self.accounts_per_user

    def expected_counts(self) -> Dict[EntityKind, int]:
        """Number of rows each phase will produce."""
        return {
            EntityKind.USERS: self.users,
            EntityKind.ACCOUNTS: self.total_accounts,
            EntityKind.TRANSACTIONS: self.total_accounts * self.transactions_per_account,
            EntityKind.INVOICES: self.users * self.invoices_per_user,
            EntityKind.LOANS: self.users * self.loans_per_user,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for reporting."""
        return {
            "sink": self.sink.value,
            "output_file": str(self.output_file) if self.output_file else None,
            "database_url": _redact_url(self.database_url),
            "users": self.users,
            "accounts_per_user": self.accounts_per_user,
            "transactions_per_account": self.transactions_per_account,
            "invoices_per_user": self.invoices_per_user,
            "loans_per_user": self.loans_per_user,
            "batch_size": self.batch_size,
            "seed": self.seed,
            "email_mode": self.email_mode.value,
            "password_mode": self.password_mode.value,
        }

    @classmethod
    def from_yaml(cls, path: Path, **overrides: Any) -> GenerationConfig:
        """
        Load configuration from a YAML file.

        Args:
            path: YAML file with top-level config keys
            **overrides: Values that replace file values; None values are ignored

        Returns:
            Validated GenerationConfig
        """
        with open(path, "r") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in configuration file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")

        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys in {path}: {', '.join(unknown)}")

        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**data)


@dataclass
class GenerationSummary:
    """Outcome of a completed generation run."""
    sink: str
    row_counts: Dict[str, int] = field(default_factory=dict)
    batch_counts: Dict[str, int] = field(default_factory=dict)
    elapsed_seconds: float = 0.0

    @property
    def total_rows(self) -> int:
        return sum(self.row_counts.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sink": self.sink,
            "row_counts": dict(self.row_counts),
            "batch_counts": dict(self.batch_counts),
            "total_rows": self.total_rows,
            "elapsed_seconds": self.elapsed_seconds,
        }


def _coerce_enum(enum_cls, value, name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(f"Invalid {name}: {value!r} (expected one of: {allowed})") from None


def _redact_url(url: Optional[str]) -> Optional[str]:
    """Hide the password part of a database URL."""
    if not url or "@" not in url or "://" not in url:
        return url
    scheme, rest = url.split("://", 1)
    credentials, host = rest.rsplit("@", 1)
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}"
