"""Sync pipeline: fetch → detect → cooldown → summarize → dispatch → persist

One run per invocation; callers must serialize runs against the same cache.
"""

import logging
import time
from typing import Callable, Iterable, List, Optional, Protocol

from finance_tracker.domain.change_detection import (
    detect_changes,
    exclude_zero_balances,
    find_stale_accounts,
)
from finance_tracker.domain.exceptions import (
    CooldownActiveError,
    FetchError,
    NoTransactionsError,
    PipelineError,
)
from finance_tracker.domain.models import (
    Account,
    BillingPeriod,
    BridgeResult,
    Cache,
    ChannelStatus,
    NotificationChannel,
    NotificationContext,
    NotificationTopic,
    RunReport,
    RunStatus,
    SummaryRequest,
    Transaction,
)
from finance_tracker.domain.prompts import format_accounts, format_transactions
from finance_tracker.infrastructure.notifications.dispatcher import NotificationDispatcher
from finance_tracker.infrastructure.observability.logging import log_run_outcome
from finance_tracker.infrastructure.observability.metrics import (
    bridge_fetch_failures_counter,
    record_run,
    stale_account_warning_counter,
)
from finance_tracker.utils.date_utils import format_timestamp, now_epoch

LOGGER = logging.getLogger(__name__)

TWO_DAYS_IN_SECONDS = 2 * 24 * 60 * 60


class Bridge(Protocol):
    async def fetch(self, period: BillingPeriod) -> BridgeResult:
        ...


class Summarizer(Protocol):
    async def summarize(self, request: SummaryRequest) -> str:
        ...


class SnapshotStore(Protocol):
    def load(self) -> Cache:
        ...

    def save(self, cache: Cache) -> None:
        ...


class SyncPipeline:
    """Orchestrates a single sync-detect-summarize-notify run"""

    def __init__(
        self,
        bridge: Bridge,
        summarizer: Summarizer,
        dispatcher: NotificationDispatcher,
        cache_store: SnapshotStore,
        cooldown_seconds: int = TWO_DAYS_IN_SECONDS,
        staleness_seconds: int = TWO_DAYS_IN_SECONDS,
        notifications_enabled: bool = True,
        clock: Callable[[], int] = now_epoch,
    ):
        self.bridge = bridge
        self.summarizer = summarizer
        self.dispatcher = dispatcher
        self.cache_store = cache_store
        self.cooldown_seconds = cooldown_seconds
        self.staleness_seconds = staleness_seconds
        self.notifications_enabled = notifications_enabled
        self.clock = clock

    async def run(
        self,
        period: BillingPeriod,
        channels: Iterable[NotificationChannel],
        *,
        now: Optional[int] = None,
        force: bool = False,
        use_cache: bool = True,
    ) -> RunReport:
        """
        Run the pipeline once.

        Flow:
        1. Load cache snapshot
        2. Fetch accounts from the bridge, drop zero balances
        3. Warn about stale accounts (out of band)
        4. Detect changes; stop early if nothing changed
        5. Enforce the notification cooldown
        6. Generate the summary
        7. Dispatch to channels
        8. Persist the updated snapshot

        `force` skips the no-change and cooldown checks. `use_cache=False`
        starts from an empty snapshot and never writes it back.

        Raises:
            PipelineError: The stage that terminated the run (see `.stage`)
        """
        start_time = time.time()
        now = self.clock() if now is None else now

        try:
            report = await self._run(period, list(channels), now, force, use_cache)

        except CooldownActiveError as e:
            record_run("cooldown")
            log_run_outcome("cooldown", e.stage, (time.time() - start_time) * 1000, reason=str(e))
            raise

        except PipelineError as e:
            record_run("failed")
            log_run_outcome("failed", e.stage, (time.time() - start_time) * 1000, reason=str(e))
            raise

        record_run(report.status.value)
        log_run_outcome(
            report.status.value,
            "done",
            (time.time() - start_time) * 1000,
            changed_accounts=report.changed_accounts,
            channel_results=report.channel_results,
        )
        return report

    async def _run(
        self,
        period: BillingPeriod,
        channels: List[NotificationChannel],
        now: int,
        force: bool,
        use_cache: bool,
    ) -> RunReport:
        # 1. Load cache
        cache = self.cache_store.load() if use_cache else Cache.empty()

        # 2. Fetch
        try:
            fetched = await self.bridge.fetch(period)
        except FetchError:
            bridge_fetch_failures_counter.inc()
            raise

        warnings_sent = 0
        for error in fetched.errors:
            warnings_sent += await self._warn(f"API Error: {error}")

        accounts = exclude_zero_balances(fetched.accounts)
        if not accounts:
            bridge_fetch_failures_counter.inc()
            raise FetchError("Bridge returned no accounts with a non-zero balance")

        # 3. Stale accounts warn regardless of what happens next
        for account in find_stale_accounts(accounts, now, self.staleness_seconds):
            stale_account_warning_counter.inc()
            warnings_sent += await self._warn(
                f"Account {account.name} is not synced "
                f"(last synced {format_timestamp(account.balance_timestamp)})"
            )

        # 4. Change detection
        changes = detect_changes(cache, [account.snapshot() for account in accounts])
        if not changes.changed and not force:
            LOGGER.info("No updated accounts", extra={"account_count": len(accounts)})
            return RunReport(status=RunStatus.NO_CHANGE, warnings_sent=warnings_sent)

        LOGGER.info("Accounts updated", extra={"changed_accounts": list(changes.changed_ids)})

        transactions = self._collect_transactions(accounts)
        if not transactions:
            raise NoTransactionsError("No transactions found for the billing period")

        # 5. Cooldown
        self._check_cooldown(cache, now, force)

        # 6. Summarize
        summary = await self.summarizer.summarize(
            SummaryRequest(
                period=period,
                accounts_text=format_accounts(accounts),
                transactions_text=format_transactions(transactions),
            )
        )
        LOGGER.info("Summary generated", extra={"summary_length": len(summary)})

        if not self.notifications_enabled:
            LOGGER.info("Notifications disabled, skipping dispatch and cache write")
            return RunReport(
                status=RunStatus.SUMMARIZED,
                changed_accounts=changes.changed_ids,
                summary=summary,
                warnings_sent=warnings_sent,
            )

        # 7. Dispatch
        context = NotificationContext(
            topic=NotificationTopic.INFO,
            title="Finance Tracker",
            period=period,
            transactions=transactions,
        )
        results = await self.dispatcher.dispatch(summary, context, channels)
        if not any(result.status == ChannelStatus.SENT for result in results):
            # Channel outcomes never fail the run; the snapshot is still persisted
            LOGGER.warning(
                "No notification channel delivered the summary",
                extra={"channels": {r.channel.value: r.status.value for r in results}},
            )

        # 8. Persist
        if use_cache:
            self.cache_store.save(cache.with_accounts(changes.updated).with_notification(now))

        return RunReport(
            status=RunStatus.NOTIFIED,
            changed_accounts=changes.changed_ids,
            channel_results=results,
            summary=summary,
            warnings_sent=warnings_sent,
        )

    def _check_cooldown(self, cache: Cache, now: int, force: bool) -> None:
        last = cache.last_successful_notification
        if force or last is None:
            return
        elapsed = now - last
        if elapsed < self.cooldown_seconds:
            raise CooldownActiveError(
                f"Last message was sent too recently (at {format_timestamp(last)})",
                last_notification=last,
                retry_after_seconds=self.cooldown_seconds - elapsed,
            )

    async def _warn(self, message: str) -> int:
        """Send an out-of-band warning; failures are logged, never raised"""
        results = await self.dispatcher.alert(message)
        for result in results:
            if result.status != ChannelStatus.SENT:
                LOGGER.warning(
                    "Warning notification not delivered",
                    extra={"status": result.status.value, "detail": result.detail, "warning": message},
                )
        return sum(1 for result in results if result.status == ChannelStatus.SENT)

    @staticmethod
    def _collect_transactions(accounts: List[Account]) -> List[Transaction]:
        return [txn for account in accounts for txn in account.transactions]
