"""GET /v1/accounts - Monobank accounts and their ledger mapping"""

import logging
from fastapi import APIRouter, Depends, HTTPException

from monosync.api.dependencies import get_import_config, get_monobank_client
from monosync.api.v1.schemas import AccountItem, AccountsResponse
from monosync.config import ImportConfig, Settings, get_settings
from monosync.domain.exceptions import BankAPIError
from monosync.infrastructure.clients.monobank import MonobankClient
from monosync.services.sync import fetch_client_info

router = APIRouter()


@router.get("/accounts", response_model=AccountsResponse)
async def list_accounts(
    settings: Settings = Depends(get_settings),
    client: MonobankClient = Depends(get_monobank_client),
    config: ImportConfig = Depends(get_import_config),
):
    """List accounts visible to the configured token"""
    try:
        client_info = await fetch_client_info(client, config)
    except BankAPIError as e:
        logging.error(f"Bank API error: {e}")
        raise HTTPException(status_code=503, detail="Monobank unavailable")

    pairs = settings.account_pairs()
    return AccountsResponse(
        client_name=client_info.name,
        accounts=[
            AccountItem(
                id=account.id,
                masked_pan=account.masked_pan,
                currency_code=account.currency_code,
                currency=account.currency,
                balance=account.balance,
                ledger_account_id=pairs.get(account.id),
            )
            for account in client_info.accounts
        ],
    )
