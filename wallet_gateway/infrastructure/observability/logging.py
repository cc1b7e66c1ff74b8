"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "wallet-sync-gateway"


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


def log_authentication(
    session_id: int,
    environment: str,
    account_count: int,
    warnings: list[str],
    duration_ms: float,
) -> None:
    """Log structured authentication outcome; never includes token or secret"""
    logging.info(
        "Authentication completed",
        extra={
            "session_id": session_id,
            "environment": environment,
            "step": "authenticate_complete",
            "account_count": account_count,
            "warnings": warnings,
            "duration_ms": duration_ms,
        },
    )


def log_cache_fallback(session_id: int, resource: str, error: Exception) -> None:
    """Log a refresh served from cache after a provider failure"""
    logging.warning(
        "Provider unavailable, serving cached data",
        extra={
            "session_id": session_id,
            "step": "cache_fallback",
            "resource": resource,
            "error_type": type(error).__name__,
            "error": str(error),
        },
    )


def log_transfer(session_id: int, stage: str, outcome: str, provider_code: Optional[str] = None) -> None:
    """Log transfer stage outcome (simulate, sms, execute)"""
    logging.info(
        "Transfer stage completed",
        extra={
            "session_id": session_id,
            "step": f"transfer_{stage}",
            "outcome": outcome,
            "provider_code": provider_code,
        },
    )


def log_request(
    request_id: str,
    method: str,
    endpoint: str,
    status: int,
    duration_ms: float,
    session_id: Optional[str] = None,
) -> None:
    """Access log line; endpoint is the route template, never the raw path"""
    logging.info(
        "Request handled",
        extra={
            "request_id": request_id,
            "session_id": session_id,
            "step": "http_request",
            "method": method,
            "endpoint": endpoint,
            "status": status,
            "duration_ms": duration_ms,
        },
    )
