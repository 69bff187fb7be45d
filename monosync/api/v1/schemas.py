"""Pydantic schemas for API responses"""

from pydantic import BaseModel
from datetime import date
from typing import List, Optional


class AccountItem(BaseModel):
    """Monobank account and the ledger account it imports into"""

    id: str
    masked_pan: List[str]
    currency_code: int
    currency: str
    balance: int
    ledger_account_id: Optional[str] = None


class AccountsResponse(BaseModel):
    """Response for GET /v1/accounts"""

    client_name: str
    accounts: List[AccountItem]


class SyncAcceptedResponse(BaseModel):
    """Response for POST /v1/sync"""

    status: str
    account_pairs: dict[str, str]


class LedgerTransactionItem(BaseModel):
    id: int
    amount: int
    date: date
    payee_name: str
    notes: Optional[str] = None
    imported_id: Optional[str] = None
    category_id: Optional[str] = None


class TransactionsResponse(BaseModel):
    """Response for GET /v1/transactions"""

    account_id: str
    transactions: List[LedgerTransactionItem]
