"""
Registry configuration - environment driven, loaded once at import.
Values may also come from a local .env file.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Fixed identifier and digest widths, enforced only under strict validation
RECORD_ID_LENGTH = int(os.getenv("RECORD_ID_LENGTH", "32"))
DIGEST_LENGTH = int(os.getenv("DIGEST_LENGTH", "32"))
SCHEMA_VALIDATION_STRICT = os.getenv("SCHEMA_VALIDATION_STRICT", "false").lower() == "true"

# Serialization boundary: a fixed set of lock stripes keyed by record id, or one lock for the whole registry
LOCK_GRANULARITY = os.getenv("LOCK_GRANULARITY", "record")  # record|global
LOCK_STRIPES = int(os.getenv("LOCK_STRIPES", "256"))

# Audit trail
AUDIT_ENABLED = os.getenv("AUDIT_ENABLED", "true").lower() == "true"
AUDIT_MAX_EVENTS = int(os.getenv("AUDIT_MAX_EVENTS", "10000"))


def debug_enabled():
    """Check if debug logging is enabled (read from DEBUG at call time)."""
    return os.getenv("DEBUG", "false").lower() == "true"


def is_strict_validation():
    """Check if operation inputs are validated against the request schemas."""
    return SCHEMA_VALIDATION_STRICT


def get_lock_granularity():
    """Get lock granularity (record|global)."""
    return LOCK_GRANULARITY


def get_lock_stripes():
    """Get the number of lock stripes used with record granularity."""
    return LOCK_STRIPES


def is_audit_enabled():
    """Check if the in-memory audit trail is enabled."""
    return AUDIT_ENABLED


def validate_registry_config():
    """Validate registry configuration and return any issues."""
    issues = []

    if LOCK_GRANULARITY not in ["record", "global"]:
        issues.append(f"Invalid LOCK_GRANULARITY: {LOCK_GRANULARITY}")

    if LOCK_STRIPES < 1:
        issues.append("LOCK_STRIPES must be >= 1")

    if RECORD_ID_LENGTH < 1:
        issues.append("RECORD_ID_LENGTH must be >= 1")

    if DIGEST_LENGTH < 1:
        issues.append("DIGEST_LENGTH must be >= 1")

    if AUDIT_MAX_EVENTS < 1:
        issues.append("AUDIT_MAX_EVENTS must be >= 1")

    return issues
