"""Domain models - pure Python dataclasses representing import entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from monosync.utils.currency import currency_alpha_code
from monosync.utils.date_utils import unix_to_utc_date


@dataclass(frozen=True)
class RemoteTransaction:
    """Statement item as returned by Monobank"""

    id: str
    time: int  # Unix seconds
    amount: int  # minor currency units, signed
    balance: int  # account balance after this transaction
    description: str
    mcc: int
    comment: Optional[str] = None

    @property
    def date(self) -> date:
        return unix_to_utc_date(self.time)


@dataclass
class LedgerTransaction:
    """Transaction row in the ledger store"""

    account_id: str
    amount: int
    date: date
    payee_name: str
    notes: Optional[str] = None
    imported_id: Optional[str] = None  # "<namespace>|<remote id>", None for synthesized rows
    category_id: Optional[str] = None
    id: Optional[int] = None  # assigned by the store


@dataclass(frozen=True)
class ImportCursor:
    """Most recently imported transaction for an account pair"""

    imported_id: str
    date: date


@dataclass(frozen=True)
class FetchChunk:
    """One statement request window, bounds inclusive"""

    start: datetime
    end: datetime

    @property
    def from_ts(self) -> int:
        return int(self.start.timestamp())

    @property
    def to_ts(self) -> int:
        return int(self.end.timestamp())


@dataclass(frozen=True)
class Category:
    id: str
    name: str


@dataclass(frozen=True)
class StatementAccount:
    """Monobank account from client info"""

    id: str
    currency_code: int
    balance: int = 0
    masked_pan: List[str] = field(default_factory=list)
    iban: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.masked_pan[0] if self.masked_pan else self.iban or self.id

    @property
    def currency(self) -> str:
        return currency_alpha_code(self.currency_code)


@dataclass(frozen=True)
class ClientInfo:
    name: str
    accounts: List[StatementAccount]

    def find_account(self, account_id: str) -> Optional[StatementAccount]:
        return next((a for a in self.accounts if a.id == account_id), None)


@dataclass
class FetchOutcome:
    """Output of the fetch-and-dedup pass"""

    new_transactions: List[LedgerTransaction]  # newest first
    cursor_found: bool
    oldest_transaction: Optional[RemoteTransaction]
    chunks_fetched: int = 0


@dataclass
class ImportResult:
    """Outcome of importing one account pair"""

    mono_account_id: str
    ledger_account_id: str
    new_transactions: List[LedgerTransaction]
    cursor_found: bool
    oldest_transaction: Optional[RemoteTransaction]
    starting_balance: Optional[LedgerTransaction] = None
    inserted_count: int = 0
