"""
Structured logging for registry operations and access decisions.
Digest payloads are health data hashes and are redacted before logging.
"""

import logging
from typing import Any, Dict, List

from src.core.config import debug_enabled

# Fields whose values never reach the log unredacted
SENSITIVE_FIELDS = ['demographic_digest', 'diagnosis_digest', 'payload', 'data', 'secret']


class StructuredLogger:
    """Structured logger for registry operations."""

    def __init__(self, name: str = "patient_registry"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG if debug_enabled() else logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None,
                      level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.log(level, message)

    def log_registry_operation(self, operation: str, caller_id: str, record_id: bytes,
                               status: str = "success", details: Dict[str, Any] = None):
        """Log a registry operation against a single record."""
        log_details = {"caller_id": caller_id, "record_id": _format_id(record_id)}
        if details:
            log_details.update(sanitize_payload(details))

        self.log_operation(f"registry.{operation}", status, log_details)

    def log_access_decision(self, operation: str, caller_id: str, record_id: bytes,
                            capability: str, granted: bool, reason: str = ""):
        """Log the outcome of a capability check."""
        log_details = {
            "caller_id": caller_id,
            "record_id": _format_id(record_id),
            "capability": capability,
            "reason": reason[:100] if reason else ""
        }
        status = "granted" if granted else "denied"
        self.log_operation(f"access.{operation}", status, log_details)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)


def _format_id(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    return value


# Global logger instance
logger = StructuredLogger()


def log_registry_operation(operation: str, caller_id: str, record_id: bytes,
                           status: str = "success", details: Dict[str, Any] = None):
    """Log a registry operation."""
    logger.log_registry_operation(operation, caller_id, record_id, status, details)


def log_access_decision(operation: str, caller_id: str, record_id: bytes,
                        capability: str, granted: bool, reason: str = ""):
    """Log an access decision."""
    logger.log_access_decision(operation, caller_id, record_id, capability, granted, reason)


def audit_event(event_type: str, identifiers: Dict[str, Any], payload: Dict[str, Any] = None,
                sensitive_fields: List[str] = None):
    """General audit event logging with privacy controls."""
    if sensitive_fields is None:
        sensitive_fields = SENSITIVE_FIELDS

    log_details = {k: _format_id(v) for k, v in identifiers.items()} if identifiers else {}

    if payload:
        log_details["payload"] = sanitize_payload(payload, sensitive_fields=sensitive_fields)

    # Determine operation type from event_type
    if event_type.startswith("registry"):
        operation = "registry"
    elif event_type.startswith("access"):
        operation = "access"
    else:
        operation = event_type.replace(".", "_")

    # log_registry_operation already reports each operation at INFO
    logger.log_operation(operation, "audit", log_details, level=logging.DEBUG)


def sanitize_payload(payload: Any, reveal_sensitive: bool = False, sensitive_fields: List[str] = None) -> Any:
    """Sanitize payloads for audit logging."""
    if sensitive_fields is None:
        sensitive_fields = SENSITIVE_FIELDS

    if isinstance(payload, dict):
        sanitized = {}
        for k, v in payload.items():
            if reveal_sensitive or k not in sensitive_fields:
                sanitized[k] = sanitize_payload(v, reveal_sensitive, sensitive_fields)
            else:
                sanitized[k] = "[REDACTED]"
        return sanitized
    elif isinstance(payload, (bytes, bytearray)):
        return bytes(payload).hex()
    elif isinstance(payload, str):
        # Truncate long strings
        return payload[:100] + "..." if len(payload) > 100 else payload
    elif isinstance(payload, list):
        return [sanitize_payload(item, reveal_sensitive, sensitive_fields) for item in payload]
    else:
        return payload
