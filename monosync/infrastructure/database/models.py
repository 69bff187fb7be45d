"""SQLAlchemy ORM models for the ledger store"""

from sqlalchemy import Column, String, BigInteger, Date, DateTime, Integer, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class LedgerCategory(Base):
    """Budget category"""

    __tablename__ = "categories"

    id = Column(String(64), primary_key=True)
    name = Column(Text, nullable=False, index=True)


class LedgerTransactionRecord(Base):
    """Ledger transaction; imported rows carry a namespaced imported_id"""

    __tablename__ = "transactions"
    __table_args__ = (UniqueConstraint("account_id", "imported_id", name="uq_transactions_account_imported_id"),)

    # Autoincrement id doubles as insertion order for same-day rows
    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Text, nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    date = Column(Date, nullable=False, index=True)
    payee_name = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)
    imported_id = Column(Text, nullable=True)
    category_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
