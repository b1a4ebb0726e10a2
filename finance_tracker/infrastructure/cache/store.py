"""JSON file persistence for the account snapshot cache"""

import json
import logging
import os
import tempfile
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict

from finance_tracker.domain.exceptions import CacheIOError
from finance_tracker.domain.models import AccountSnapshot, Cache

LOGGER = logging.getLogger(__name__)

CACHE_VERSION = 2


def cache_to_dict(cache: Cache) -> Dict[str, Any]:
    return {
        "version": CACHE_VERSION,
        "accounts": {
            account_id: {
                "balance": str(snapshot.balance),
                "balance_date": snapshot.balance_timestamp,
            }
            for account_id, snapshot in sorted(cache.accounts.items())
        },
        "last_successful_message": cache.last_successful_notification,
    }


def cache_from_dict(data: Dict[str, Any]) -> Cache:
    """
    Rebuild a Cache from its serialized form.

    Raises:
        ValueError: Unknown version or malformed entries
    """
    if data.get("version") != CACHE_VERSION:
        raise ValueError(f"Unsupported cache version: {data.get('version')!r}")

    accounts = {}
    for account_id, entry in (data.get("accounts") or {}).items():
        try:
            accounts[account_id] = AccountSnapshot(
                account_id=account_id,
                balance=Decimal(str(entry["balance"])),
                balance_timestamp=int(entry["balance_date"]),
            )
        except (KeyError, TypeError, InvalidOperation) as e:
            raise ValueError(f"Malformed cache entry for {account_id}: {e}") from e

    last = data.get("last_successful_message")
    return Cache(accounts=accounts, last_successful_notification=int(last) if last is not None else None)


class CacheStore:
    """Reads and atomically writes the single cache record"""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Cache:
        """
        Load the last snapshot.

        A missing file is a first run. An unreadable, corrupt or outdated file
        degrades to an empty cache so every account counts as changed.
        """
        if not self.path.exists():
            LOGGER.debug("No cache file found, starting empty", extra={"path": str(self.path)})
            return Cache.empty()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return cache_from_dict(data)
        except (OSError, ValueError, AttributeError) as e:
            LOGGER.warning(
                "Cache unreadable, treating every account as changed",
                extra={"path": str(self.path), "error": str(e)},
            )
            return Cache.empty()

    def save(self, cache: Cache) -> None:
        """
        Write the snapshot via a temp file + rename so readers never see a partial record.

        Raises:
            CacheIOError: The file could not be written
        """
        payload = json.dumps(cache_to_dict(cache), indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".cache-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise CacheIOError(f"Failed to write cache to {self.path}: {e}") from e

        LOGGER.debug("Cache saved", extra={"path": str(self.path), "accounts": len(cache.accounts)})
