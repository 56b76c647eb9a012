"""
Filament Finder - Structured Logging Configuration

Provides JSON-formatted logging for log aggregation.
Catalog changes are additionally written to a separate audit log.

Usage:
    from app.logging_config import get_logger, audit_log

    logger = get_logger(__name__)
    logger.info("Catalog loaded", extra={"filaments": 34})

    # For catalog changes
    audit_log("FILAMENT_CREATED", resource_type="filament", resource_id=35)
"""
import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.core.settings import settings

# LogRecord attributes that are not "extra" fields
_RECORD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message",
}


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}


class JSONFormatter(logging.Formatter):
    """
    Formats log records as JSON for log aggregation systems.

    Output format:
    {
        "timestamp": "2024-01-01T12:00:00.000Z",
        "level": "INFO",
        "logger": "app.services.filament_service",
        "message": "Filament created: eSUN PLA+ Black",
        "filament_id": 35,
        ...
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add location info for errors
        if record.levelno >= logging.ERROR:
            log_data["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in _extra_fields(record).items():
            # Serialize non-JSON-serializable objects
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        return json.dumps(log_data)


class TextFormatter(logging.Formatter):
    """
    Formats log records as human-readable text for development.

    Output format:
    2024-01-01 12:00:00 [INFO] app.services.filament_service: Filament created: eSUN PLA+ Black filament_id=35
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        base_msg = f"{timestamp} [{record.levelname}] {record.name}: {record.getMessage()}"

        extras = [f"{key}={value}" for key, value in _extra_fields(record).items()]
        if extras:
            base_msg += " " + " ".join(extras)

        if record.exc_info:
            base_msg += "\n" + self.formatException(record.exc_info)

        return base_msg


class AuditFormatter(logging.Formatter):
    """
    Formats audit log records.

    Output format (JSON):
    {
        "timestamp": "2024-01-01T12:00:00.000Z",
        "event": "FILAMENT_CREATED",
        "resource_type": "filament",
        "resource_id": 35,
        "details": {...},
        "ip_address": "192.168.1.1"
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event": getattr(record, "event", record.getMessage()),
            "resource_type": getattr(record, "resource_type", None),
            "resource_id": getattr(record, "resource_id", None),
            "details": getattr(record, "details", {}),
            "ip_address": getattr(record, "ip_address", None),
        }

        # Remove None values
        log_data = {k: v for k, v in log_data.items() if v is not None}

        return json.dumps(log_data)


def setup_logging() -> None:
    """
    Configure application logging based on settings.

    Call this once at application startup.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    if settings.LOG_FORMAT == "json":
        formatter = JSONFormatter()
    else:
        formatter = TextFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)

    if settings.LOG_FILE:
        os.makedirs(os.path.dirname(settings.LOG_FILE) or ".", exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            settings.LOG_FILE,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        root_logger.addHandler(file_handler)

    setup_audit_logging()

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def setup_audit_logging() -> None:
    """Configure separate audit logger for catalog changes."""
    audit_logger = logging.getLogger("audit")
    audit_logger.setLevel(logging.INFO)
    audit_logger.handlers.clear()
    audit_logger.propagate = False  # Don't send to root logger

    audit_file = settings.AUDIT_LOG_FILE
    if audit_file:
        os.makedirs(os.path.dirname(audit_file) or ".", exist_ok=True)
        audit_handler = logging.handlers.RotatingFileHandler(
            audit_file,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
        )
        audit_handler.setFormatter(AuditFormatter())
        audit_handler.setLevel(logging.INFO)
        audit_logger.addHandler(audit_handler)

    # Also log audit events to console in development
    if settings.DEBUG:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(AuditFormatter())
        audit_logger.addHandler(console_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def audit_log(
    event: str,
    *,
    resource_type: Optional[str] = None,
    resource_id: Optional[Any] = None,
    details: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None,
) -> None:
    """
    Log a catalog change to the audit log.

    Args:
        event: Event name (e.g., "FILAMENT_CREATED")
        resource_type: Type of resource affected (e.g., "filament")
        resource_id: ID of the affected resource
        details: Additional event-specific data
        ip_address: IP address of the request

    Example:
        audit_log(
            "FILAMENT_CREATED",
            resource_type="filament",
            resource_id=35,
            details={"brand": "eSUN", "material": "PLA"}
        )
    """
    audit_logger = logging.getLogger("audit")
    audit_logger.info(
        event,
        extra={
            "event": event,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "details": details or {},
            "ip_address": ip_address,
        },
    )


def get_client_ip(request) -> Optional[str]:
    """
    Extract client IP from FastAPI request, handling proxies.

    Args:
        request: FastAPI Request object

    Returns:
        Client IP address or None
    """
    x_forwarded_for = request.headers.get("X-Forwarded-For")
    if x_forwarded_for:
        return x_forwarded_for.split(",")[0].strip()

    x_real_ip = request.headers.get("X-Real-IP")
    if x_real_ip:
        return x_real_ip

    if request.client:
        return request.client.host

    return None
