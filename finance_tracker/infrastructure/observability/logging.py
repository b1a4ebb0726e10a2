"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Iterable

from pythonjsonlogger import jsonlogger

SERVICE_NAME = "finance-tracker"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args: Any, service: str = SERVICE_NAME, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.service = service

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service


def setup_logging(level: str = "INFO", service: str = SERVICE_NAME) -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service=service,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_run_outcome(
    outcome: str,
    stage: str,
    duration_ms: float,
    changed_accounts: Iterable[str] = (),
    channel_results: Iterable[Any] = (),
    reason: str = "",
) -> None:
    """Log structured run outcome for analysis"""
    logging.info(
        "Sync run completed",
        extra={
            "step": "run_complete",
            "outcome": outcome,
            "stage": stage,
            "reason": reason,
            "changed_accounts": list(changed_accounts),
            "channels": {r.channel.value: r.status.value for r in channel_results},
            "duration_ms": duration_ms,
        },
    )
