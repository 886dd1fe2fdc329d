"""
Per-record, per-accessor capability table.

Grants are evaluated lazily: an expired grant stays stored but resolves to
no capabilities until it is overwritten or revoked. There is no sweep.
"""

import threading
from typing import Dict, Optional, Tuple

from .schema import Capabilities, Grant, NO_CAPABILITIES


class AccessTable:
    """Maps (record_id, accessor_id) to a Grant."""

    def __init__(self):
        self._grants: Dict[Tuple[bytes, str], Grant] = {}
        self._lock = threading.Lock()

    def grant(self, record_id: bytes, accessor_id: str, can_read: bool, can_write: bool,
              expires_at: int) -> Grant:
        """Insert or fully replace the grant for (record_id, accessor_id)."""
        grant = Grant(can_read=can_read, can_write=can_write, expires_at=expires_at)
        with self._lock:
            self._grants[(record_id, accessor_id)] = grant
        return grant

    def revoke(self, record_id: bytes, accessor_id: str) -> bool:
        """Remove the grant if present. Returns whether a grant was removed."""
        with self._lock:
            removed = self._grants.pop((record_id, accessor_id), None)
        return removed is not None

    def get_grant(self, record_id: bytes, accessor_id: str) -> Optional[Grant]:
        """Stored grant, expired or not."""
        with self._lock:
            return self._grants.get((record_id, accessor_id))

    def resolve(self, record_id: bytes, accessor_id: str, now: int) -> Capabilities:
        """Effective capabilities of accessor_id on record_id at logical time now."""
        grant = self.get_grant(record_id, accessor_id)
        if grant is None or not grant.is_active(now):
            return NO_CAPABILITIES
        return Capabilities(can_read=grant.can_read, can_write=grant.can_write)

    def explain(self, record_id: bytes, accessor_id: str, now: int) -> str:
        """Internal reason for a resolution, for logs only."""
        grant = self.get_grant(record_id, accessor_id)
        if grant is None:
            return "no_grant"
        if not grant.is_active(now):
            return "expired"
        return "active"

    def has_read(self, record_id: bytes, accessor_id: str, now: int) -> bool:
        return self.resolve(record_id, accessor_id, now).can_read

    def has_write(self, record_id: bytes, accessor_id: str, now: int) -> bool:
        return self.resolve(record_id, accessor_id, now).can_write

    def __len__(self) -> int:
        with self._lock:
            return len(self._grants)
