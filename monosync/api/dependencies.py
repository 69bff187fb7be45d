"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, HTTPException, Request
from monosync.config import ImportConfig, Settings, get_settings
from monosync.infrastructure.clients.monobank import MonobankClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_monobank_client(settings: Settings = Depends(get_settings)) -> MonobankClient:
    """Provide Monobank API client instance"""
    if not settings.mono_token:
        raise HTTPException(status_code=503, detail="MONO_TOKEN is not configured")
    return MonobankClient(
        token=settings.mono_token,
        base_url=settings.mono_api_base,
        timeout=settings.http_timeout_seconds,
    )


def get_import_config(settings: Settings = Depends(get_settings)) -> ImportConfig:
    return ImportConfig.from_settings(settings)
