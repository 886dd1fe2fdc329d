"""
Typed failures raised by the registry.

Each error carries a stable code and numeric status so callers can turn it
into a result value with to_dict().
"""

from typing import Any, Dict, Optional


class RegistryError(Exception):
    """Base class for all registry failures."""

    code = "ERR_REGISTRY"
    status = 0

    def __init__(self, message: str, record_id: Optional[bytes] = None):
        super().__init__(message)
        self.message = message
        self.record_id = record_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "code": self.code,
            "status": self.status,
            "message": self.message,
            "record_id": self.record_id.hex() if self.record_id is not None else None,
        }


class Unauthorized(RegistryError):
    """Caller lacks the capability the operation needs.

    capability and reason are for internal logging only; to_dict() leaves
    them out so callers cannot tell an absent, expired or disabled grant apart.
    """

    code = "ERR_UNAUTHORIZED"
    status = 1

    def __init__(self, message: str, record_id: Optional[bytes] = None,
                 capability: str = "", reason: str = ""):
        super().__init__(message, record_id)
        self.capability = capability
        self.reason = reason


class AlreadyExists(RegistryError):
    """A record with this id has already been registered."""

    code = "ERR_ALREADY_REGISTERED"
    status = 2


class NotFound(RegistryError):
    """No record exists for the requested id."""

    code = "ERR_RECORD_NOT_FOUND"
    status = 3
