"""Data access layer for the ledger store"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from monosync.domain.exceptions import LedgerStoreError
from monosync.domain.models import Category, LedgerTransaction
from monosync.infrastructure.database.models import LedgerCategory, LedgerTransactionRecord


def _to_domain(row: LedgerTransactionRecord) -> LedgerTransaction:
    return LedgerTransaction(
        id=row.id,
        account_id=row.account_id,
        amount=row.amount,
        date=row.date,
        payee_name=row.payee_name,
        notes=row.notes,
        imported_id=row.imported_id,
        category_id=row.category_id,
    )


class LedgerRepository:
    """Repository for ledger transactions and categories"""

    def __init__(self, db: Session):
        self.db = db

    def query_transactions(
        self,
        account_id: str,
        imported_id_prefix: Optional[str] = None,
        newest_first: bool = True,
        limit: Optional[int] = None,
    ) -> List[LedgerTransaction]:
        """
        Fetch transactions of one account.

        Args:
            account_id: Exact ledger account match
            imported_id_prefix: Only rows whose imported_id starts with this
            newest_first: Order by date descending, later inserts first within a day
            limit: Maximum rows to return
        """
        try:
            query = self.db.query(LedgerTransactionRecord).filter(LedgerTransactionRecord.account_id == account_id)
            if imported_id_prefix is not None:
                query = query.filter(LedgerTransactionRecord.imported_id.startswith(imported_id_prefix, autoescape=True))
            if newest_first:
                query = query.order_by(LedgerTransactionRecord.date.desc(), LedgerTransactionRecord.id.desc())
            else:
                query = query.order_by(LedgerTransactionRecord.date.asc(), LedgerTransactionRecord.id.asc())
            if limit is not None:
                query = query.limit(limit)
            return [_to_domain(row) for row in query.all()]
        except SQLAlchemyError as e:
            raise LedgerStoreError(f"Ledger query failed: {e}") from e

    def get_categories(self) -> List[Category]:
        try:
            rows = self.db.query(LedgerCategory).order_by(LedgerCategory.name).all()
        except SQLAlchemyError as e:
            raise LedgerStoreError(f"Category query failed: {e}") from e
        return [Category(id=row.id, name=row.name) for row in rows]

    def ensure_category(self, category_id: str, name: str) -> Category:
        """Create a category unless one with this id exists"""
        try:
            row = self.db.get(LedgerCategory, category_id)
            if row is None:
                row = LedgerCategory(id=category_id, name=name)
                self.db.add(row)
                self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise LedgerStoreError(f"Category insert failed: {e}") from e
        return Category(id=row.id, name=row.name)

    def import_transactions(self, account_id: str, transactions: Sequence[LedgerTransaction]) -> int:
        """
        Insert transactions into ``account_id`` in one database transaction.

        Rows whose imported_id already exists in this account, or repeats
        earlier in the batch, are skipped. The same imported_id may live in
        other accounts. Rows without an imported_id are always inserted.

        Returns:
            Number of rows inserted

        Raises:
            LedgerStoreError: On any database failure; nothing is inserted
        """
        incoming_ids = [t.imported_id for t in transactions if t.imported_id]
        try:
            existing = set()
            if incoming_ids:
                existing = {
                    imported_id
                    for (imported_id,) in self.db.query(LedgerTransactionRecord.imported_id)
                    .filter(
                        LedgerTransactionRecord.account_id == account_id,
                        LedgerTransactionRecord.imported_id.in_(incoming_ids),
                    )
                    .all()
                }

            inserted = 0
            for txn in transactions:
                if txn.imported_id:
                    if txn.imported_id in existing:
                        logging.debug("Skipping duplicate imported transaction", extra={"imported_id": txn.imported_id})
                        continue
                    existing.add(txn.imported_id)
                self.db.add(
                    LedgerTransactionRecord(
                        account_id=account_id,
                        amount=txn.amount,
                        date=txn.date,
                        payee_name=txn.payee_name,
                        notes=txn.notes,
                        imported_id=txn.imported_id,
                        category_id=txn.category_id,
                    )
                )
                inserted += 1

            self.db.commit()
            return inserted

        except SQLAlchemyError as e:
            self.db.rollback()
            raise LedgerStoreError(f"Ledger insert failed for account {account_id}: {e}") from e
