"""SimpleFIN bridge HTTP client for fetching accounts and transactions"""

import logging
from typing import Optional

import httpx
import pydantic

from finance_tracker.domain.exceptions import FetchError
from finance_tracker.domain.models import Account, BillingPeriod, BridgeResult, Transaction
from finance_tracker.infrastructure.clients.http import open_client
from finance_tracker.infrastructure.clients.schemas import AccountSchema, AccountsResponse

LOGGER = logging.getLogger(__name__)


def _to_account(schema: AccountSchema) -> Account:
    return Account(
        account_id=schema.id,
        name=schema.name,
        balance=schema.balance,
        balance_timestamp=schema.balance_date,
        currency=schema.currency,
        available_balance=schema.available_balance,
        organization=schema.org.name if schema.org else None,
        transactions=[
            Transaction(
                transaction_id=txn.id,
                description=txn.description,
                amount=txn.amount,
                posted=txn.posted,
                transacted_at=txn.transacted_at,
                pending=bool(txn.pending),
            )
            for txn in schema.transactions or []
        ],
    )


class BridgeClient:
    """Client for the external financial-data bridge"""

    def __init__(self, base_url: str, timeout: float = 120.0, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def fetch(self, period: BillingPeriod) -> BridgeResult:
        """
        Fetch accounts with their transactions for a billing period.

        Period bounds are sent as inclusive local-day epoch seconds.

        Raises:
            FetchError: On timeout, HTTP errors, or invalid response
        """
        start_ts, end_ts = period.epoch_bounds()
        LOGGER.debug("Fetching accounts from bridge", extra={"start": start_ts, "end": end_ts})

        async with open_client(self._client, self.timeout) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/accounts",
                    params={"start-date": start_ts, "end-date": end_ts},
                    timeout=self.timeout,
                )
                response.raise_for_status()
                payload = AccountsResponse.model_validate(response.json())

            except httpx.TimeoutException as e:
                raise FetchError(f"Bridge timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise FetchError(f"Bridge error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise FetchError(f"Bridge unreachable: {e}") from e
            except (pydantic.ValidationError, ValueError) as e:
                raise FetchError(f"Invalid account data from bridge: {e}") from e

        for message in payload.x_api_message:
            LOGGER.debug("Bridge message", extra={"bridge_message": message})
        for error in payload.errors:
            LOGGER.warning("Bridge reported an error", extra={"bridge_error": error})

        accounts = [_to_account(schema) for schema in payload.accounts]
        LOGGER.debug("Fetched accounts", extra={"account_count": len(accounts)})
        return BridgeResult(accounts=accounts, errors=list(payload.errors))
