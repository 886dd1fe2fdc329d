"""
Record and grant value types shared by the record store, the access table
and the registry service.
"""

from dataclasses import dataclass, asdict
from typing import Dict

# expires_at value meaning "never expires"; real expirations are > 0
NEVER = 0


@dataclass(frozen=True)
class Record:
    record_id: bytes
    demographic_digest: bytes
    diagnosis_digest: bytes
    consent_status: bool
    created_at: int
    updated_at: int

    def to_dict(self) -> Dict:
        """Convert to dictionary with hex-encoded byte fields."""
        data = asdict(self)
        for field in ("record_id", "demographic_digest", "diagnosis_digest"):
            data[field] = data[field].hex()
        return data


@dataclass(frozen=True)
class Grant:
    can_read: bool
    can_write: bool
    expires_at: int = NEVER

    def is_active(self, now: int) -> bool:
        """A grant is active if it never expires or now is before its expiry."""
        return self.expires_at == NEVER or now < self.expires_at


@dataclass(frozen=True)
class Capabilities:
    can_read: bool
    can_write: bool


NO_CAPABILITIES = Capabilities(can_read=False, can_write=False)
FULL_ACCESS = Grant(can_read=True, can_write=True, expires_at=NEVER)
