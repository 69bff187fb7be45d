"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class BankAPIError(DomainException):
    """Monobank API returned an error or is unavailable"""

    pass


class RateLimitError(BankAPIError):
    """Monobank rejected the request with HTTP 429"""

    pass


class StatementOrderError(DomainException):
    """Statement items were not ordered newest-first"""

    pass


class LedgerStoreError(DomainException):
    """Ledger database query or insert failed"""

    pass

