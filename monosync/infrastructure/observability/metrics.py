"""Prometheus metrics for statement fetches, rate limiting, and ledger imports"""

from prometheus_client import Counter, Histogram

# Monobank metrics
statement_request_counter = Counter(
    "monosync_statement_requests_total",
    "Monobank statement requests",
    ["outcome"],  # ok | rate_limited | error
)

rate_limit_wait_counter = Counter(
    "monosync_rate_limit_waits_total",
    "Backoff waits after a Monobank 429",
)

# Import metrics
imported_transactions_counter = Counter(
    "monosync_imported_transactions_total",
    "Transactions inserted into the ledger",
    ["kind"],  # statement | starting_balance
)

import_failure_counter = Counter(
    "monosync_import_failures_total",
    "Account pair imports that raised",
)

import_duration_histogram = Histogram(
    "monosync_import_duration_seconds",
    "Wall time of one account pair import, backoff included",
    buckets=[1.0, 5.0, 30.0, 60.0, 120.0, 300.0, 600.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_import(statement_count: int, starting_balance: bool) -> None:
    """Count inserted rows split by origin"""
    if statement_count:
        imported_transactions_counter.labels(kind="statement").inc(statement_count)
    if starting_balance:
        imported_transactions_counter.labels(kind="starting_balance").inc()
