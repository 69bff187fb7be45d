"""Unit tests for the fetch-and-dedup executor and import run"""

import pytest
from datetime import date, timedelta
from unittest.mock import MagicMock

from monosync.config import ImportConfig
from monosync.domain.exceptions import BankAPIError, RateLimitError, StatementOrderError
from monosync.domain.models import Category, ImportCursor, LedgerTransaction
from monosync.services.importer import StatementImporter, with_rate_limit_retry
from conftest import DAY, NOW, FakeStatementSource, make_remote, ts


def make_ledger(cursor_rows=(), categories=()):
    """Ledger stand-in with a fixed cursor query answer"""
    ledger = MagicMock()
    ledger.query_transactions.return_value = list(cursor_rows)
    ledger.get_categories.return_value = list(categories)
    ledger.import_transactions.side_effect = lambda account_id, txns: len(txns)
    return ledger


def stream(count: int):
    """Remote items one day apart, newest first, ids t0..tN"""
    return [make_remote(f"t{i}", ts(2026, 10, 18) - i * DAY) for i in range(count)]


async def test_without_cursor_collects_everything(import_config):
    source = FakeStatementSource(stream(5))
    importer = StatementImporter(source, make_ledger(), import_config)

    outcome = await importer.fetch_new_transactions("mono-1", "ledger-1", None, NOW)

    assert [t.imported_id for t in outcome.new_transactions] == [f"mono|t{i}" for i in range(5)]
    assert outcome.cursor_found is False
    assert outcome.oldest_transaction.id == "t4"


@pytest.mark.parametrize("k", [0, 1, 3, 6])
async def test_dedup_stops_at_cursor(import_config, k):
    """Everything newer than the cursor is kept, the cursor and older items are not"""
    items = stream(7)
    source = FakeStatementSource(items)
    importer = StatementImporter(source, make_ledger(), import_config)
    cursor = ImportCursor(imported_id=f"mono|t{k}", date=items[k].date)

    outcome = await importer.fetch_new_transactions("mono-1", "ledger-1", cursor, NOW)

    assert [t.imported_id for t in outcome.new_transactions] == [f"mono|t{i}" for i in range(k)]
    assert outcome.cursor_found is True


async def test_cursor_stop_ends_walk_across_chunks(import_config):
    """Once the cursor is met no further chunk is requested"""
    items = [
        make_remote("new", ts(2026, 10, 15)),
        make_remote("cursor", ts(2026, 9, 1)),
        make_remote("old", ts(2026, 6, 1)),
    ]
    source = FakeStatementSource(items)
    importer = StatementImporter(source, make_ledger(), ImportConfig(lookback=timedelta(days=365)))
    cursor = ImportCursor(imported_id="mono|cursor", date=date(2026, 9, 1))

    outcome = await importer.fetch_new_transactions("mono-1", "ledger-1", cursor, NOW)

    assert [t.imported_id for t in outcome.new_transactions] == ["mono|new"]
    assert len(source.calls) == 2  # 2026-10-19 back to 2026-09-18, then back to 2026-08-18


async def test_chunks_requested_newest_first(import_config):
    source = FakeStatementSource([])
    importer = StatementImporter(source, make_ledger(), ImportConfig(lookback=timedelta(days=90)))

    outcome = await importer.fetch_new_transactions("mono-1", "ledger-1", None, NOW)

    to_values = [call[2] for call in source.calls]
    assert to_values == sorted(to_values, reverse=True)
    assert outcome.chunks_fetched == len(source.calls) == 3
    for newer, older in zip(source.calls, source.calls[1:]):
        assert older[2] == newer[1]
    assert outcome.oldest_transaction is None


async def test_item_on_shared_boundary_kept_once(import_config):
    """A statement item at the exact boundary second comes back in both windows"""
    source = FakeStatementSource()
    calls = []

    async def get_statements(account_id, from_ts, to_ts):
        calls.append((from_ts, to_ts))
        return [make_remote("edge", from_ts)] if len(calls) == 1 else [make_remote("edge", to_ts)]

    source.get_statements = get_statements
    importer = StatementImporter(source, make_ledger(), ImportConfig(lookback=timedelta(days=40)))

    outcome = await importer.fetch_new_transactions("mono-1", "ledger-1", None, NOW)

    assert [t.imported_id for t in outcome.new_transactions] == ["mono|edge"]


async def test_rate_limit_retries_same_chunk_once(import_config, no_sleep):
    source = FakeStatementSource(stream(3))
    source.rate_limited_calls = {1}
    importer = StatementImporter(source, make_ledger(), ImportConfig(lookback=timedelta(days=90)))

    outcome = await importer.fetch_new_transactions("mono-1", "ledger-1", None, NOW)

    assert len(source.calls) == 4  # three chunks, the second one asked twice
    assert source.calls[1] == source.calls[2]
    assert len(set(source.calls)) == 3
    no_sleep.assert_awaited_once_with(60.0)
    assert len(outcome.new_transactions) == 3


async def test_rate_limit_retries_until_cleared(import_config, no_sleep):
    source = FakeStatementSource(stream(2))
    source.rate_limited_calls = {0, 1, 2}
    importer = StatementImporter(source, make_ledger(), import_config)

    outcome = await importer.fetch_new_transactions("mono-1", "ledger-1", None, NOW)

    assert no_sleep.await_count == 3
    assert source.calls[0] == source.calls[3]
    assert len(outcome.new_transactions) == 2


async def test_bounded_rate_limit_retries_give_up(no_sleep):
    source = FakeStatementSource(stream(2))
    source.rate_limited_calls = {0, 1, 2}
    importer = StatementImporter(source, make_ledger(), ImportConfig(max_rate_limit_retries=2))

    with pytest.raises(RateLimitError):
        await importer.fetch_new_transactions("mono-1", "ledger-1", None, NOW)

    assert no_sleep.await_count == 2


async def test_other_bank_errors_propagate(import_config, no_sleep):
    source = FakeStatementSource(stream(2))

    async def failing(*args):
        raise BankAPIError("Monobank API error: 403")

    source.get_statements = failing
    importer = StatementImporter(source, make_ledger(), import_config)

    with pytest.raises(BankAPIError):
        await importer.fetch_new_transactions("mono-1", "ledger-1", None, NOW)
    no_sleep.assert_not_awaited()


async def test_out_of_order_statement_is_rejected(import_config):
    """Oldest-first results would break the cursor stop, so they raise instead"""
    source = FakeStatementSource(stream(3))
    source.reverse_order = True
    importer = StatementImporter(source, make_ledger(), import_config)
    cursor = ImportCursor(imported_id="mono|t1", date=date(2026, 10, 17))

    with pytest.raises(StatementOrderError):
        await importer.fetch_new_transactions("mono-1", "ledger-1", cursor, NOW)


async def test_with_rate_limit_retry_returns_value(no_sleep):
    attempts = []

    async def call():
        attempts.append(1)
        if len(attempts) == 1:
            raise RateLimitError("429")
        return "ok"

    assert await with_rate_limit_retry(call, 60.0) == "ok"
    no_sleep.assert_awaited_once_with(60.0)


async def test_run_example_scenario(no_sleep):
    """Lookback one month, no cursor, three items over two chunks"""
    items = [
        make_remote("a", ts(2026, 10, 15), amount=-50, balance=1500),
        make_remote("b", ts(2026, 10, 1), amount=750, balance=1550),
        make_remote("c", ts(2026, 9, 18), amount=-200, balance=1000),
    ]
    source = FakeStatementSource(items)
    ledger = make_ledger(categories=[Category(id="sb-cat", name="Starting Balances")])
    importer = StatementImporter(source, ledger, ImportConfig(lookback=timedelta(days=31)))

    result = await importer.run("mono-1", "ledger-1", now=NOW)

    assert len(source.calls) == 2
    assert [t.imported_id for t in result.new_transactions[:3]] == ["mono|a", "mono|b", "mono|c"]
    opening = result.starting_balance
    assert opening is result.new_transactions[-1]
    assert opening.amount == 1200
    assert opening.date == date(2026, 9, 18)
    assert opening.category_id == "sb-cat"
    assert opening.imported_id is None
    assert result.inserted_count == 4

    ledger.import_transactions.assert_called_once()
    account_id, submitted = ledger.import_transactions.call_args.args
    assert account_id == "ledger-1"
    assert [t.payee_name for t in submitted] == ["Starting Balance", "Payee c", "Payee b", "Payee a"]


async def test_run_with_cursor_skips_starting_balance(import_config):
    items = stream(4)
    cursor_row = LedgerTransaction(
        account_id="ledger-1", amount=-100, date=items[2].date, payee_name="Payee t2", imported_id="mono|t2"
    )
    ledger = make_ledger(cursor_rows=[cursor_row])
    importer = StatementImporter(FakeStatementSource(items), ledger, import_config)

    result = await importer.run("mono-1", "ledger-1", now=NOW)

    assert result.cursor_found is True
    assert result.starting_balance is None
    assert [t.imported_id for t in result.new_transactions] == ["mono|t0", "mono|t1"]
    ledger.get_categories.assert_not_called()
    ledger.query_transactions.assert_called_once_with(
        "ledger-1", imported_id_prefix="mono|", newest_first=True, limit=1
    )


async def test_run_starting_balance_uses_default_category(import_config):
    ledger = make_ledger(categories=[Category(id="food", name="Food")])
    importer = StatementImporter(FakeStatementSource(stream(1)), ledger, import_config)

    result = await importer.run("mono-1", "ledger-1", now=NOW)

    assert result.starting_balance.category_id == "506e8d9d-7ed0-4397-84e4-07a9185dc6b2"


async def test_run_with_empty_history_submits_nothing(import_config):
    ledger = make_ledger()
    importer = StatementImporter(FakeStatementSource([]), ledger, import_config)

    result = await importer.run("mono-1", "ledger-1", now=NOW)

    assert result.new_transactions == []
    assert result.starting_balance is None
    assert result.inserted_count == 0
    ledger.import_transactions.assert_not_called()


async def test_run_cursor_lost_beyond_history_adds_starting_balance(import_config):
    """A cursor never met during the walk counts as not found"""
    cursor_row = LedgerTransaction(
        account_id="ledger-1", amount=-100, date=date(2026, 10, 1), payee_name="Gone", imported_id="mono|gone"
    )
    ledger = make_ledger(cursor_rows=[cursor_row])
    importer = StatementImporter(FakeStatementSource(stream(2)), ledger, import_config)

    result = await importer.run("mono-1", "ledger-1", now=NOW)

    assert result.cursor_found is False
    assert result.starting_balance is not None
    assert result.starting_balance.date == stream(2)[-1].date
