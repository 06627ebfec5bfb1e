"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from token_gateway.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def mask_secret(value: str, visible: int = 4) -> str:
    """Shorten codes and tokens before they reach a log line"""
    if len(value) <= visible:
        return "*" * len(value)
    return f"{value[:visible]}***"


def log_pipeline_outcome(
    request_id: str,
    user_id: str | None,
    success: bool,
    transaction_count: int,
    duration_ms: float,
    failed_step: str | None = None,
) -> None:
    """Log structured pipeline outcome for analysis"""
    logging.getLogger("token_gateway.pipeline").info(
        "OAuth flow completed" if success else "OAuth flow failed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "pipeline_complete",
            "outcome": "success" if success else "error",
            "failed_step": failed_step,
            "transaction_count": transaction_count,
            "duration_ms": duration_ms,
        },
    )
