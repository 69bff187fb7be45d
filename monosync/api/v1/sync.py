"""POST /v1/sync - Start an import of all configured account pairs"""

import logging
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request

from monosync.api.dependencies import get_import_config, get_monobank_client, get_request_id
from monosync.api.v1.schemas import SyncAcceptedResponse
from monosync.config import ImportConfig, Settings, get_settings
from monosync.infrastructure.clients.monobank import MonobankClient
from monosync.infrastructure.database.repositories import LedgerRepository
from monosync.infrastructure.database.session import get_session_factory
from monosync.services.sync import sync_accounts

router = APIRouter()


async def run_sync_job(app_state, client: MonobankClient, config: ImportConfig, account_pairs: dict[str, str], request_id: str) -> None:
    """Background sync; owns its own session because the request session is closed by then"""
    db = get_session_factory()()
    try:
        report = await sync_accounts(client, LedgerRepository(db), config, account_pairs)
        logging.info(
            "Sync run finished",
            extra={
                "request_id": request_id,
                "imported_pairs": len(report.results),
                "skipped_pairs": len(report.skipped),
                "failed_pairs": len(report.failures),
            },
        )
    except Exception as e:
        logging.error(f"Sync run failed: {e}", extra={"request_id": request_id})
    finally:
        db.close()
        app_state.sync_running = False


@router.post("/sync", response_model=SyncAcceptedResponse, status_code=202)
async def start_sync(
    request: Request,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
    client: MonobankClient = Depends(get_monobank_client),
    config: ImportConfig = Depends(get_import_config),
):
    """
    Queue one sync run over every account pair.

    Only one run may be active; pairs share the Monobank rate limit.
    """
    state = request.app.state
    if getattr(state, "sync_running", False):
        raise HTTPException(status_code=409, detail="A sync run is already in progress")
    state.sync_running = True

    account_pairs = settings.account_pairs()
    background_tasks.add_task(run_sync_job, state, client, config, account_pairs, get_request_id(request))
    return SyncAcceptedResponse(status="accepted", account_pairs=account_pairs)
