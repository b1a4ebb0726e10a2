"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Tuple

from finance_tracker.domain.exceptions import ValidationError

MAX_BILLING_PERIOD_DAYS = 90


class DateRangeType(str, Enum):
    """Preset billing period ranges"""

    CURRENT_MONTH = "current_month"
    LAST_MONTH = "last_month"
    LAST_3_MONTHS = "last_3_months"
    CURRENT_YEAR = "current_year"
    LAST_YEAR = "last_year"
    CUSTOM = "custom"


class NotificationChannel(str, Enum):
    """Notification delivery mechanisms, in dispatch order"""

    SMS = "sms"
    EMAIL = "email"
    PUSH_ALERT = "ntfy"


class NotificationTopic(str, Enum):
    INFO = "info"
    WARNING = "warning"


class ChannelStatus(str, Enum):
    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"


class RunStatus(str, Enum):
    NO_CHANGE = "no_change"
    SUMMARIZED = "summarized"  # summary generated, dispatch disabled
    NOTIFIED = "notified"


@dataclass(frozen=True)
class BillingPeriod:
    """Inclusive date range over which transactions are summarized"""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValidationError("Start date cannot be after end date")
        if (self.end - self.start).days > MAX_BILLING_PERIOD_DAYS:
            raise ValidationError(f"Billing period cannot exceed {MAX_BILLING_PERIOD_DAYS} days")

    def epoch_bounds(self) -> Tuple[int, int]:
        """Local-day start of `start` and local-day end of `end`, in epoch seconds."""
        start_ts = datetime.combine(self.start, time.min).timestamp()
        end_ts = datetime.combine(self.end + timedelta(days=1), time.min).timestamp() - 1
        return int(start_ts), int(end_ts)


@dataclass
class Transaction:
    """Transaction reported by the bridge"""

    transaction_id: str
    description: str
    amount: Decimal
    posted: int
    transacted_at: Optional[int] = None
    pending: bool = False

    @property
    def timestamp(self) -> int:
        return self.transacted_at if self.transacted_at is not None else self.posted


@dataclass
class Account:
    """Financial account reported by the bridge"""

    account_id: str
    name: str
    balance: Decimal
    balance_timestamp: int
    currency: Optional[str] = None
    available_balance: Optional[Decimal] = None
    organization: Optional[str] = None
    transactions: List[Transaction] = field(default_factory=list)

    def snapshot(self) -> "AccountSnapshot":
        return AccountSnapshot(
            account_id=self.account_id,
            balance=self.balance,
            balance_timestamp=self.balance_timestamp,
        )


@dataclass
class BridgeResult:
    """Accounts plus any error strings the bridge reported alongside them"""

    accounts: List[Account]
    errors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class AccountSnapshot:
    """Last-known balance of a single account"""

    account_id: str
    balance: Decimal
    balance_timestamp: int


@dataclass(frozen=True)
class Cache:
    """Snapshot persisted between runs"""

    accounts: Dict[str, AccountSnapshot] = field(default_factory=dict)
    last_successful_notification: Optional[int] = None

    @classmethod
    def empty(cls) -> "Cache":
        return cls()

    def with_accounts(self, accounts: Dict[str, AccountSnapshot]) -> "Cache":
        return replace(self, accounts=dict(accounts))

    def with_notification(self, timestamp: int) -> "Cache":
        return replace(self, last_successful_notification=timestamp)


@dataclass(frozen=True)
class ChangeSet:
    """Output of change detection"""

    changed: bool
    updated: Dict[str, AccountSnapshot]
    changed_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff, no jitter.

    Delay after attempt n (counted from 1) is
    initial_delay * backoff_multiplier ** (n - 1), capped by max_delay when set.
    """

    max_attempts: int = 50
    initial_delay: float = 0.5
    backoff_multiplier: float = 2.0
    max_delay: Optional[float] = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay < 0:
            raise ValueError("initial_delay cannot be negative")

    def delay_for(self, attempt: int) -> float:
        delay = self.initial_delay * (self.backoff_multiplier ** (attempt - 1))
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay


@dataclass(frozen=True)
class SummaryRequest:
    """Billing period plus pre-formatted account and transaction listings"""

    period: BillingPeriod
    accounts_text: str
    transactions_text: str


@dataclass
class NotificationContext:
    """What a channel needs besides the message text"""

    topic: NotificationTopic = NotificationTopic.INFO
    title: str = "Finance Tracker"
    period: Optional[BillingPeriod] = None
    transactions: List[Transaction] = field(default_factory=list)


@dataclass(frozen=True)
class ChannelResult:
    """Outcome of dispatching to one channel"""

    channel: NotificationChannel
    status: ChannelStatus
    detail: str = ""


@dataclass
class RunReport:
    """Outcome of a completed pipeline run"""

    status: RunStatus
    changed_accounts: Tuple[str, ...] = ()
    channel_results: List[ChannelResult] = field(default_factory=list)
    summary: Optional[str] = None
    warnings_sent: int = 0
