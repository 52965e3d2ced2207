"""Structured JSON logging for production observability"""

import hashlib
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from roi_gateway.config import settings


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


def hash_email(email: str) -> str:
    """Stable pseudonym for an email address; raw addresses are never logged"""
    return hashlib.sha256(email.strip().lower().encode("utf-8")).hexdigest()[:16]


def log_roi_outcome(
    request_id: str,
    email: str,
    outcome: str,
    duration_ms: float,
) -> None:
    """Log structured ROI request outcome for analysis"""
    logging.info(
        "ROI request completed",
        extra={
            "request_id": request_id,
            "email_hash": hash_email(email),
            "step": "roi_complete",
            "outcome": outcome,
            "duration_ms": duration_ms,
        },
    )
