"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timezone
from typing import Generator, Iterable, List
from unittest.mock import AsyncMock, patch
from sqlalchemy.orm import sessionmaker, Session

from monosync.config import ImportConfig
from monosync.domain.exceptions import RateLimitError
from monosync.domain.models import ClientInfo, RemoteTransaction, StatementAccount
from monosync.infrastructure.database.repositories import LedgerRepository
from monosync.infrastructure.database.session import build_engine, init_ledger


NOW = datetime(2026, 10, 19, 15, 30, tzinfo=timezone.utc)
DAY = 86400


def ts(year: int, month: int, day: int, hour: int = 12) -> int:
    return int(datetime(year, month, day, hour, tzinfo=timezone.utc).timestamp())


def make_remote(tx_id: str, time: int, amount: int = -100, balance: int = 1000, comment: str | None = None, mcc: int = 5411) -> RemoteTransaction:
    return RemoteTransaction(
        id=tx_id,
        time=time,
        amount=amount,
        balance=balance,
        description=f"Payee {tx_id}",
        mcc=mcc,
        comment=comment,
    )


class FakeStatementSource:
    """In-memory Monobank stand-in that answers like the real statement endpoint"""

    def __init__(self, transactions: Iterable[RemoteTransaction] = (), accounts: List[str] = ("mono-1",)):
        self.transactions = list(transactions)
        self.accounts = list(accounts)
        self.calls: List[tuple] = []
        self.rate_limited_calls: set[int] = set()  # call indexes answered with 429
        self.reverse_order = False

    async def get_statements(self, account_id: str, from_ts: int, to_ts: int) -> List[RemoteTransaction]:
        index = len(self.calls)
        self.calls.append((account_id, from_ts, to_ts))
        if index in self.rate_limited_calls:
            raise RateLimitError("Too many requests")
        items = [t for t in self.transactions if from_ts <= t.time <= to_ts]
        return sorted(items, key=lambda t: t.time, reverse=not self.reverse_order)

    async def get_client_info(self) -> ClientInfo:
        return ClientInfo(
            name="Test Client",
            accounts=[StatementAccount(id=a, currency_code=980, masked_pan=[f"5375****{i:04d}"]) for i, a in enumerate(self.accounts)],
        )


@pytest.fixture
def db(tmp_path) -> Generator[Session, None, None]:
    """Create a file-backed SQLite ledger per test"""
    engine = build_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    init_ledger(engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def ledger(db: Session) -> LedgerRepository:
    return LedgerRepository(db)


@pytest.fixture
def import_config() -> ImportConfig:
    return ImportConfig()


@pytest.fixture
def no_sleep() -> Generator[AsyncMock, None, None]:
    """Skip the 60 second rate-limit backoff"""
    with patch("monosync.services.importer.asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep
