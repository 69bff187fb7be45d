"""Conversion of Monobank statement items into ledger transactions"""

from typing import Iterable, List

from monosync.domain.models import Category, LedgerTransaction, RemoteTransaction


def make_imported_id(namespace: str, remote_id: str) -> str:
    """Namespaced identifier used to recognise already imported rows"""
    return f"{namespace}|{remote_id}"


def to_ledger_transaction(tx: RemoteTransaction, account_id: str, namespace: str) -> LedgerTransaction:
    """
    Map one statement item to a ledger row.

    Notes fall back to the merchant category code when the statement item
    carries no comment.
    """
    return LedgerTransaction(
        account_id=account_id,
        amount=tx.amount,
        date=tx.date,
        payee_name=tx.description,
        notes=tx.comment or f"MCC: {tx.mcc}",
        imported_id=make_imported_id(namespace, tx.id),
    )


def resolve_category_id(categories: Iterable[Category], name: str, default_id: str) -> str:
    return next((c.id for c in categories if c.name == name), default_id)


def build_starting_balance(
    oldest: RemoteTransaction,
    account_id: str,
    category_id: str,
    payee_name: str = "Starting Balance",
) -> LedgerTransaction:
    """
    Opening balance row dated on the oldest fetched transaction.

    The amount is the balance before ``oldest`` was applied. The row has no
    imported id so it never becomes the import cursor.
    """
    return LedgerTransaction(
        account_id=account_id,
        amount=oldest.balance - oldest.amount,
        date=oldest.date,
        payee_name=payee_name,
        category_id=category_id,
    )


def check_newest_first(transactions: List[RemoteTransaction]) -> bool:
    """True when statement times never increase along the list"""
    return all(earlier.time >= later.time for earlier, later in zip(transactions, transactions[1:]))
