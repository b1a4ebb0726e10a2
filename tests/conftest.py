"""Pytest fixtures for testing"""

import pytest
from decimal import Decimal
from datetime import date
from typing import Callable, List, Optional

from finance_tracker.domain.exceptions import ChannelSendError
from finance_tracker.domain.models import (
    Account,
    BillingPeriod,
    BridgeResult,
    Cache,
    NotificationChannel,
    NotificationContext,
    SummaryRequest,
    Transaction,
)
from finance_tracker.infrastructure.notifications.dispatcher import NotificationDispatcher

# 2025-10-09T18:13:20Z
NOW = 1_760_033_600
HOUR = 60 * 60
DAY = 24 * HOUR


class FakeBridge:
    """Bridge collaborator returning canned accounts"""

    def __init__(self, accounts: List[Account], errors: Optional[List[str]] = None, error: Exception = None):
        self.accounts = accounts
        self.errors = errors or []
        self.error = error
        self.calls: List[BillingPeriod] = []

    async def fetch(self, period: BillingPeriod) -> BridgeResult:
        self.calls.append(period)
        if self.error is not None:
            raise self.error
        return BridgeResult(accounts=list(self.accounts), errors=list(self.errors))


class FakeSummarizer:
    """Summarizer returning fixed text or raising"""

    def __init__(self, text: str = "You spent $42.00 on coffee.", error: Exception = None):
        self.text = text
        self.error = error
        self.requests: List[SummaryRequest] = []

    async def summarize(self, request: SummaryRequest) -> str:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.text


class RecordingChannel:
    """Channel sender that records messages, optionally failing"""

    def __init__(self, channel: NotificationChannel, configured: bool = True, error: Exception = None):
        self.channel = channel
        self.configured = configured
        self.error = error
        self.sent: List[tuple] = []

    def is_configured(self) -> bool:
        return self.configured

    async def send(self, message: str, context: NotificationContext) -> str:
        self.sent.append((message, context))
        if self.error is not None:
            raise self.error
        return f"{self.channel.value}: ok"


class MemoryCacheStore:
    """Cache store keeping the snapshot in memory and counting writes"""

    def __init__(self, cache: Optional[Cache] = None):
        self.cache = cache or Cache.empty()
        self.loads = 0
        self.saves: List[Cache] = []

    def load(self) -> Cache:
        self.loads += 1
        return self.cache

    def save(self, cache: Cache) -> None:
        self.saves.append(cache)
        self.cache = cache


@pytest.fixture
def now() -> int:
    return NOW


@pytest.fixture
def period() -> BillingPeriod:
    return BillingPeriod(start=date(2025, 10, 1), end=date(2025, 10, 9))


@pytest.fixture
def make_account() -> Callable[..., Account]:
    """Factory for bridge accounts with one transaction by default"""

    def _make(
        account_id: str = "acct_checking",
        balance: str = "1250.40",
        balance_timestamp: int = NOW - HOUR,
        name: Optional[str] = None,
        transactions: Optional[List[Transaction]] = None,
    ) -> Account:
        if transactions is None:
            transactions = [
                Transaction(
                    transaction_id=f"{account_id}_tx1",
                    description="Coffee Shop",
                    amount=Decimal("-4.50"),
                    posted=NOW - 2 * DAY,
                )
            ]
        return Account(
            account_id=account_id,
            name=name or account_id.replace("acct_", "").title(),
            balance=Decimal(balance),
            balance_timestamp=balance_timestamp,
            currency="USD",
            transactions=transactions,
        )

    return _make


@pytest.fixture
def channels():
    """One recording sender per channel"""
    return {channel: RecordingChannel(channel) for channel in NotificationChannel}


@pytest.fixture
def dispatcher(channels) -> NotificationDispatcher:
    return NotificationDispatcher(channels.values())


@pytest.fixture
def failing_sms() -> RecordingChannel:
    return RecordingChannel(NotificationChannel.SMS, error=ChannelSendError("twilio down"))


@pytest.fixture
def make_bridge() -> Callable[..., FakeBridge]:
    return FakeBridge


@pytest.fixture
def make_summarizer() -> Callable[..., FakeSummarizer]:
    return FakeSummarizer


@pytest.fixture
def make_channel() -> Callable[..., RecordingChannel]:
    return RecordingChannel


@pytest.fixture
def make_store() -> Callable[..., MemoryCacheStore]:
    return MemoryCacheStore
