"""GET /v1/transactions - Ledger transactions of one account"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from monosync.api.v1.schemas import LedgerTransactionItem, TransactionsResponse
from monosync.domain.exceptions import LedgerStoreError
from monosync.infrastructure.database.repositories import LedgerRepository
from monosync.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/transactions", response_model=TransactionsResponse)
def list_transactions(
    account_id: str = Query(..., description="Ledger account identifier"),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Newest ledger transactions of an account"""
    try:
        rows = LedgerRepository(db).query_transactions(account_id, newest_first=True, limit=limit)
    except LedgerStoreError:
        raise HTTPException(status_code=500, detail="Ledger unavailable")

    return TransactionsResponse(
        account_id=account_id,
        transactions=[
            LedgerTransactionItem(
                id=row.id,
                amount=row.amount,
                date=row.date,
                payee_name=row.payee_name,
                notes=row.notes,
                imported_id=row.imported_id,
                category_id=row.category_id,
            )
            for row in rows
        ],
    )
