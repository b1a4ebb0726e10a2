"""Change detection between the cached snapshot and freshly fetched accounts"""

from typing import Dict, Iterable, List

from finance_tracker.domain.models import Account, AccountSnapshot, Cache, ChangeSet


def detect_changes(previous: Cache, current: Iterable[AccountSnapshot]) -> ChangeSet:
    """
    Compare fetched snapshots against the cache.

    Rules:
    - New account (not in cache) → changed
    - Different balance_timestamp → changed
    - Balance differs but timestamp does not → NOT changed; the bridge bumps
      the timestamp on every real update

    The returned map carries every cached entry forward and overwrites it with
    the fetched snapshot, so it can be persisted as-is.
    """
    updated: Dict[str, AccountSnapshot] = dict(previous.accounts)
    changed_ids: List[str] = []

    for snapshot in current:
        cached = previous.accounts.get(snapshot.account_id)
        if cached is None or cached.balance_timestamp != snapshot.balance_timestamp:
            changed_ids.append(snapshot.account_id)
        updated[snapshot.account_id] = snapshot

    return ChangeSet(changed=bool(changed_ids), updated=updated, changed_ids=tuple(changed_ids))


def exclude_zero_balances(accounts: Iterable[Account]) -> List[Account]:
    """Drop accounts with a zero balance before change detection"""
    return [account for account in accounts if account.balance != 0]


def find_stale_accounts(accounts: Iterable[Account], now: int, staleness_seconds: int) -> List[Account]:
    """Accounts whose balance timestamp is older than the staleness threshold"""
    cutoff = now - staleness_seconds
    return [account for account in accounts if account.balance_timestamp < cutoff]
