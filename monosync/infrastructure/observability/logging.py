"""Structured JSON logging for import runs"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args, service_name: str = "monosync", **kwargs):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "monosync") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service_name=service_name,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_import_outcome(
    mono_account_id: str,
    ledger_account_id: str,
    new_count: int,
    inserted_count: int,
    cursor_found: bool,
    starting_balance: bool,
    duration_ms: float,
) -> None:
    """Log structured import outcome for one account pair"""
    logging.info(
        "Import completed",
        extra={
            "mono_account_id": mono_account_id,
            "ledger_account_id": ledger_account_id,
            "step": "import_complete",
            "new_transactions": new_count,
            "inserted_transactions": inserted_count,
            "cursor_found": cursor_found,
            "starting_balance_added": starting_balance,
            "duration_ms": duration_ms,
        },
    )
