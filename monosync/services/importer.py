"""Incremental Monobank statement import for one account pair"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Set, TypeVar

from monosync.config import ImportConfig
from monosync.domain.exceptions import RateLimitError, StatementOrderError
from monosync.domain.mapping import (
    build_starting_balance,
    check_newest_first,
    make_imported_id,
    resolve_category_id,
    to_ledger_transaction,
)
from monosync.domain.models import (
    FetchChunk,
    FetchOutcome,
    ImportCursor,
    ImportResult,
    LedgerTransaction,
    RemoteTransaction,
)
from monosync.domain.window import compute_fetch_start, iter_fetch_chunks
from monosync.infrastructure.clients.monobank import MonobankClient
from monosync.infrastructure.database.repositories import LedgerRepository
from monosync.infrastructure.observability.logging import log_import_outcome
from monosync.infrastructure.observability.metrics import (
    import_duration_histogram,
    rate_limit_wait_counter,
    record_import,
)

T = TypeVar("T")


async def with_rate_limit_retry(
    call: Callable[[], Awaitable[T]],
    backoff_seconds: float,
    max_retries: Optional[int] = None,
) -> T:
    """
    Await ``call()`` and repeat it after a fixed wait while Monobank answers 429.

    Retries are unbounded when ``max_retries`` is None; otherwise the last
    RateLimitError is raised once the bound is reached.
    """
    attempt = 0
    while True:
        try:
            return await call()
        except RateLimitError:
            attempt += 1
            if max_retries is not None and attempt > max_retries:
                raise
            rate_limit_wait_counter.inc()
            logging.warning(
                f"Rate limit exceeded. Waiting {backoff_seconds:g} seconds before retry...",
                extra={"attempt": attempt},
            )
            await asyncio.sleep(backoff_seconds)


class StatementImporter:
    """Imports new Monobank statement items into one ledger account"""

    def __init__(self, statement_source: MonobankClient, ledger: LedgerRepository, config: ImportConfig):
        self.statement_source = statement_source
        self.ledger = ledger
        self.config = config

    def find_cursor(self, ledger_account_id: str) -> Optional[ImportCursor]:
        """Newest ledger row of the account that came from a previous import"""
        rows = self.ledger.query_transactions(
            ledger_account_id,
            imported_id_prefix=self.config.imported_id_prefix,
            newest_first=True,
            limit=1,
        )
        if not rows:
            return None
        return ImportCursor(imported_id=rows[0].imported_id, date=rows[0].date)

    async def fetch_chunk(self, mono_account_id: str, chunk: FetchChunk) -> List[RemoteTransaction]:
        logging.info(
            f"Fetching transactions from {chunk.start.isoformat()} to {chunk.end.isoformat()}",
            extra={"mono_account_id": mono_account_id, "from_ts": chunk.from_ts, "to_ts": chunk.to_ts},
        )
        transactions = await with_rate_limit_retry(
            lambda: self.statement_source.get_statements(mono_account_id, chunk.from_ts, chunk.to_ts),
            self.config.rate_limit_backoff_seconds,
            self.config.max_rate_limit_retries,
        )
        if not check_newest_first(transactions):
            raise StatementOrderError(
                f"Statement for {mono_account_id} between {chunk.from_ts} and {chunk.to_ts} is not ordered newest first"
            )
        logging.info(f"Retrieved {len(transactions)} transactions", extra={"mono_account_id": mono_account_id})
        return transactions

    async def fetch_new_transactions(
        self,
        mono_account_id: str,
        ledger_account_id: str,
        cursor: Optional[ImportCursor],
        now: datetime,
    ) -> FetchOutcome:
        """
        Walk statement windows newest first and collect items not yet imported.

        The walk stops at the first item whose imported id matches the
        cursor; that item and everything older is left out.
        """
        from_time = compute_fetch_start(now, self.config.lookback, cursor.date if cursor else None)
        logging.info(f"Fetching history from {from_time.date().isoformat()}", extra={"mono_account_id": mono_account_id})

        cursor_id = cursor.imported_id if cursor else None
        new_transactions: List[LedgerTransaction] = []
        seen: Set[str] = set()
        oldest: Optional[RemoteTransaction] = None
        cursor_found = False
        chunks_fetched = 0

        for chunk in iter_fetch_chunks(from_time, now, self.config.max_window_days):
            transactions = await self.fetch_chunk(mono_account_id, chunk)
            chunks_fetched += 1

            for tx in transactions:
                oldest = tx
                imported_id = make_imported_id(self.config.namespace, tx.id)
                if imported_id == cursor_id:
                    logging.info("Found last imported transaction, stopping import", extra={"imported_id": imported_id})
                    cursor_found = True
                    break
                # Items on a shared window boundary can come back twice
                if imported_id in seen:
                    continue
                seen.add(imported_id)
                new_transactions.append(to_ledger_transaction(tx, ledger_account_id, self.config.namespace))

            if cursor_found:
                break

        return FetchOutcome(
            new_transactions=new_transactions,
            cursor_found=cursor_found,
            oldest_transaction=oldest,
            chunks_fetched=chunks_fetched,
        )

    def starting_balance_for(self, oldest: RemoteTransaction, ledger_account_id: str) -> LedgerTransaction:
        category_id = resolve_category_id(
            self.ledger.get_categories(),
            self.config.starting_balance_category_name,
            self.config.default_starting_balance_category_id,
        )
        return build_starting_balance(oldest, ledger_account_id, category_id, self.config.starting_balance_payee)

    def submit(self, ledger_account_id: str, transactions: List[LedgerTransaction]) -> int:
        """Hand the whole batch to the ledger in one call, oldest first"""
        if not transactions:
            logging.info("No new transactions to import", extra={"ledger_account_id": ledger_account_id})
            return 0
        logging.info(
            f"Importing {len(transactions)} transactions to the ledger",
            extra={"ledger_account_id": ledger_account_id},
        )
        return self.ledger.import_transactions(ledger_account_id, list(reversed(transactions)))

    async def run(self, mono_account_id: str, ledger_account_id: str, now: Optional[datetime] = None) -> ImportResult:
        """
        Import everything new for one Monobank account into one ledger account.

        Flow:
        1. Read the import cursor from the ledger
        2. Fetch statement windows until the cursor or the fetch start
        3. Add a starting balance on first import
        4. Submit the batch
        """
        start_time = time.time()
        now = now or datetime.now(timezone.utc)
        logging.info(
            f"Importing transactions for Monobank account {mono_account_id} to ledger account {ledger_account_id}",
            extra={"mono_account_id": mono_account_id, "ledger_account_id": ledger_account_id},
        )

        cursor = self.find_cursor(ledger_account_id)
        if cursor:
            logging.info(
                f"Last imported transaction: {cursor.date.isoformat()}, ID: {cursor.imported_id}",
                extra={"ledger_account_id": ledger_account_id},
            )

        outcome = await self.fetch_new_transactions(mono_account_id, ledger_account_id, cursor, now)
        new_transactions = list(outcome.new_transactions)

        starting_balance = None
        if outcome.oldest_transaction is not None and not outcome.cursor_found:
            logging.info("No last imported transaction found, adding starting balance")
            starting_balance = self.starting_balance_for(outcome.oldest_transaction, ledger_account_id)
            new_transactions.append(starting_balance)

        inserted = self.submit(ledger_account_id, new_transactions)

        duration = time.time() - start_time
        import_duration_histogram.observe(duration)
        record_import(inserted - (1 if starting_balance else 0), starting_balance is not None)
        log_import_outcome(
            mono_account_id,
            ledger_account_id,
            new_count=len(new_transactions),
            inserted_count=inserted,
            cursor_found=outcome.cursor_found,
            starting_balance=starting_balance is not None,
            duration_ms=duration * 1000,
        )

        return ImportResult(
            mono_account_id=mono_account_id,
            ledger_account_id=ledger_account_id,
            new_transactions=new_transactions,
            cursor_found=outcome.cursor_found,
            oldest_transaction=outcome.oldest_transaction,
            starting_balance=starting_balance,
            inserted_count=inserted,
        )
