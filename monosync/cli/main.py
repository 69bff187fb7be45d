#!/usr/bin/env python3
"""
monosync command line

Runs one import pass over the configured account pairs and exits non-zero
if any pair failed.
"""

import asyncio
import logging
import sys
from datetime import timedelta

import click
from pydantic import TypeAdapter, ValidationError

from monosync.config import ImportConfig, get_settings
from monosync.domain.exceptions import DomainException
from monosync.infrastructure.clients.monobank import MonobankClient
from monosync.infrastructure.database.repositories import LedgerRepository
from monosync.infrastructure.database.session import get_session_factory
from monosync.infrastructure.observability.logging import setup_logging
from monosync.services.sync import fetch_client_info, log_accounts, sync_accounts


def _parse_lookback(ctx: click.Context, param: click.Parameter, value: str | None) -> timedelta | None:
    if value is None:
        return None
    try:
        return TypeAdapter(timedelta).validate_python(value)
    except ValidationError as e:
        raise click.BadParameter(f"not an ISO 8601 duration: {value}") from e


def _make_client(ctx: click.Context) -> MonobankClient:
    settings = ctx.obj["settings"]
    if not settings.mono_token:
        raise click.UsageError("MONO_TOKEN is not set")
    return MonobankClient(
        token=settings.mono_token,
        base_url=settings.mono_api_base,
        timeout=settings.http_timeout_seconds,
    )


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, debug: bool) -> None:
    """Import Monobank statements into the ledger."""
    ctx.ensure_object(dict)
    settings = get_settings()
    setup_logging("DEBUG" if debug else settings.log_level, settings.service_name)
    ctx.obj["settings"] = settings


@main.command()
@click.option(
    "--lookback",
    callback=_parse_lookback,
    help="Override LOOKBACK_PERIOD with an ISO 8601 duration, e.g. P1M",
)
@click.pass_context
def sync(ctx: click.Context, lookback: timedelta | None) -> None:
    """Import new transactions for every account pair in ACCOUNT_IDS."""
    settings = ctx.obj["settings"]
    client = _make_client(ctx)
    config = ImportConfig.from_settings(settings, lookback=lookback)

    db = get_session_factory()()
    try:
        report = asyncio.run(sync_accounts(client, LedgerRepository(db), config, settings.account_pairs()))
    except DomainException as e:
        logging.error(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()

    for result in report.results:
        click.echo(
            f"{result.mono_account_id} -> {result.ledger_account_id}: "
            f"{result.inserted_count} transactions imported"
        )
    for failure in report.failures:
        click.echo(f"{failure.mono_account_id} -> {failure.ledger_account_id}: failed ({failure.error})", err=True)

    if not report.ok:
        sys.exit(1)


@main.command()
@click.pass_context
def accounts(ctx: click.Context) -> None:
    """List Monobank accounts visible to MONO_TOKEN."""
    settings = ctx.obj["settings"]
    client = _make_client(ctx)
    config = ImportConfig.from_settings(settings)

    try:
        client_info = asyncio.run(fetch_client_info(client, config))
    except DomainException as e:
        logging.error(f"Error: {e}")
        sys.exit(1)

    log_accounts(client_info)
    pairs = settings.account_pairs()
    for account in client_info.accounts:
        target = pairs.get(account.id, "-")
        click.echo(f"{account.id}\t{account.display_name}\t{account.currency}\t{target}")


@main.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create ledger tables and the Starting Balances category."""
    settings = ctx.obj["settings"]
    config = ImportConfig.from_settings(settings)
    db = get_session_factory()()
    try:
        category = LedgerRepository(db).ensure_category(
            config.default_starting_balance_category_id,
            config.starting_balance_category_name,
        )
    finally:
        db.close()
    click.echo(f"Ledger ready at {settings.database_url} (category {category.name}: {category.id})")


if __name__ == "__main__":
    main()
