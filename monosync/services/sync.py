"""Sequential import of every configured account pair"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from monosync.config import ImportConfig
from monosync.domain.exceptions import DomainException
from monosync.domain.models import ClientInfo, ImportResult
from monosync.infrastructure.clients.monobank import MonobankClient
from monosync.infrastructure.database.repositories import LedgerRepository
from monosync.infrastructure.observability.metrics import import_failure_counter
from monosync.services.importer import StatementImporter, with_rate_limit_retry


@dataclass
class PairFailure:
    mono_account_id: str
    ledger_account_id: str
    error: str


@dataclass
class SyncReport:
    """What happened to each account pair in one run"""

    results: List[ImportResult] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failures: List[PairFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


async def fetch_client_info(client: MonobankClient, config: ImportConfig) -> ClientInfo:
    """Client info under the same rate-limit backoff as statements"""
    return await with_rate_limit_retry(
        client.get_client_info,
        config.rate_limit_backoff_seconds,
        config.max_rate_limit_retries,
    )


def log_accounts(client_info: ClientInfo) -> None:
    logging.info(f"Found {len(client_info.accounts)} accounts")
    for index, account in enumerate(client_info.accounts, start=1):
        logging.info(
            f"Account #{index}: {account.display_name} ({account.currency})",
            extra={"mono_account_id": account.id, "currency": account.currency},
        )


async def sync_accounts(
    client: MonobankClient,
    ledger: LedgerRepository,
    config: ImportConfig,
    account_pairs: Dict[str, str],
    now: Optional[datetime] = None,
) -> SyncReport:
    """
    Import every mapped Monobank account, one pair at a time.

    Pairs run sequentially because they share the Monobank rate limit. A
    failing pair is logged and recorded; the remaining pairs still run.
    Errors fetching client info propagate.
    """
    report = SyncReport()

    client_info = await fetch_client_info(client, config)
    log_accounts(client_info)

    if not account_pairs:
        logging.warning("No account mappings defined. Set ACCOUNT_IDS=monoId1:ledgerId1,monoId2:ledgerId2")
        return report

    importer = StatementImporter(client, ledger, config)

    for mono_account_id, ledger_account_id in account_pairs.items():
        logging.info(f"Processing account mapping: {mono_account_id} -> {ledger_account_id}")

        if client_info.find_account(mono_account_id) is None:
            logging.warning(f"Monobank account {mono_account_id} not found. Skipping.")
            report.skipped.append(mono_account_id)
            continue

        try:
            result = await importer.run(mono_account_id, ledger_account_id, now=now)
            report.results.append(result)
        except DomainException as e:
            import_failure_counter.inc()
            logging.error(
                f"Error importing transactions for account {ledger_account_id}: {e}",
                extra={"mono_account_id": mono_account_id, "ledger_account_id": ledger_account_id},
            )
            report.failures.append(PairFailure(mono_account_id, ledger_account_id, str(e)))

    return report
