"""Monobank personal API HTTP client for client info and statements"""

import httpx
from typing import List

from monosync.domain.models import ClientInfo, RemoteTransaction, StatementAccount
from monosync.domain.exceptions import BankAPIError, RateLimitError
from monosync.infrastructure.observability.metrics import statement_request_counter


class MonobankClient:
    """Client for the Monobank personal API"""

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.monobank.ua",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not token:
            raise ValueError("Monobank API token is required")
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"X-Token": self.token},
            transport=self.transport,
        )

    async def _get_json(self, path: str):
        async with self._client() as client:
            try:
                response = await client.get(path)
                if response.status_code == 429:
                    raise RateLimitError(f"Monobank rate limit exceeded for {path}")
                response.raise_for_status()
                return response.json()

            except httpx.TimeoutException as e:
                raise BankAPIError(f"Monobank API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise BankAPIError(f"Monobank API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise BankAPIError(f"Monobank API unreachable: {e}") from e
            except ValueError as e:
                raise BankAPIError(f"Invalid JSON from Monobank: {e}") from e

    async def get_client_info(self) -> ClientInfo:
        """
        Fetch the account list of the token owner.

        Raises:
            RateLimitError: Monobank answered 429
            BankAPIError: On timeout, HTTP errors, or invalid response
        """
        data = await self._get_json("/personal/client-info")
        try:
            return ClientInfo(
                name=data.get("name", ""),
                accounts=[
                    StatementAccount(
                        id=acc["id"],
                        currency_code=acc["currencyCode"],
                        balance=acc.get("balance", 0),
                        masked_pan=list(acc.get("maskedPan") or []),
                        iban=acc.get("iban"),
                    )
                    for acc in data.get("accounts", [])
                ],
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise BankAPIError(f"Invalid client info from Monobank: {e}") from e

    async def get_statements(self, account_id: str, from_ts: int, to_ts: int) -> List[RemoteTransaction]:
        """
        Fetch statement items for ``account_id`` between two Unix timestamps.

        Monobank returns items newest first and limits the window to 31 days.

        Raises:
            RateLimitError: Monobank answered 429
            BankAPIError: On timeout, HTTP errors, or invalid response
        """
        try:
            data = await self._get_json(f"/personal/statement/{account_id}/{from_ts}/{to_ts}")
        except RateLimitError:
            statement_request_counter.labels(outcome="rate_limited").inc()
            raise
        except BankAPIError:
            statement_request_counter.labels(outcome="error").inc()
            raise

        try:
            transactions = [
                RemoteTransaction(
                    id=str(item["id"]),
                    time=int(item["time"]),
                    amount=int(item["amount"]),
                    balance=int(item["balance"]),
                    description=item.get("description", ""),
                    mcc=int(item.get("mcc", 0)),
                    comment=item.get("comment") or None,
                )
                for item in data
            ]
        except (KeyError, ValueError, TypeError) as e:
            statement_request_counter.labels(outcome="error").inc()
            raise BankAPIError(f"Invalid statement data from Monobank: {e}") from e

        statement_request_counter.labels(outcome="ok").inc()
        return transactions
