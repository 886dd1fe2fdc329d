"""
Public operation surface of the patient registry.

Every operation resolves the caller's grant from the AccessTable, applies the
authorization rule for that operation and only then touches the RecordStore.
Write capability is the sole gate for every mutation, including grant and
revoke: any principal holding can_write on a record may grant or revoke any
accessor on it, the original creator included. There is no owner override.
"""

import threading
from contextlib import contextmanager
from typing import Dict, List, Optional

from pydantic import ValidationError

from src.api.schemas import (
    GrantAccessRequest,
    ReadRequest,
    RegisterRequest,
    RevokeAccessRequest,
    UpdateConsentRequest,
    UpdateDataRequest,
)
from util.logging import logger, log_access_decision

from . import config
from .access_table import AccessTable
from .audit import AuditEvent, AuditTrail
from .clock import BlockClock, Clock
from .errors import RegistryError, Unauthorized
from .record_store import RecordStore
from .schema import NEVER, Capabilities, Record


class RecordLockManager:
    """Hands out the mutual-exclusion boundary for a record id.

    With "record" granularity a record id always maps to the same one of a
    fixed set of lock stripes, so operations on most different records run in
    parallel and unknown ids never grow the lock set. With "global"
    granularity every record shares one lock.
    """

    def __init__(self, granularity: str = "record", stripes: int = 256):
        if granularity not in ("record", "global"):
            raise ValueError(f"Invalid lock granularity: {granularity}")
        if stripes < 1:
            raise ValueError(f"Lock stripes must be >= 1, got {stripes}")
        self.granularity = granularity
        self._global_lock = threading.Lock()
        self._locks: List[threading.Lock] = [threading.Lock() for _ in range(stripes)]

    def lock_for(self, record_id: bytes) -> threading.Lock:
        if self.granularity == "global":
            return self._global_lock
        return self._locks[hash(record_id) % len(self._locks)]

    def __len__(self) -> int:
        return 1 if self.granularity == "global" else len(self._locks)


class RegistryService:
    """Composes a RecordStore and an AccessTable with caller identity and a clock."""

    def __init__(self, records: Optional[RecordStore] = None, access: Optional[AccessTable] = None,
                 clock: Optional[Clock] = None, strict_validation: Optional[bool] = None,
                 lock_granularity: Optional[str] = None, audit: Optional[AuditTrail] = None):
        self._records = records if records is not None else RecordStore()
        self._access = access if access is not None else AccessTable()
        self._clock = clock if clock is not None else BlockClock()
        self._strict = config.is_strict_validation() if strict_validation is None else strict_validation
        self._locks = RecordLockManager(lock_granularity or config.get_lock_granularity(),
                                        config.get_lock_stripes())
        if audit is None and config.is_audit_enabled():
            audit = AuditTrail(max_events=config.AUDIT_MAX_EVENTS)
        self._audit = audit

    # Operations

    def register(self, caller_id: str, record_id: bytes, demographic_digest: bytes,
                 diagnosis_digest: bytes, now: Optional[int] = None) -> bytes:
        """Create the record and give the caller a standing full-access grant."""
        now = self._now(now)
        self._validate(RegisterRequest, caller_id=caller_id, record_id=record_id,
                       demographic_digest=demographic_digest, diagnosis_digest=diagnosis_digest)

        with self._operation("register", caller_id, record_id, now):
            self._records.create(record_id, demographic_digest, diagnosis_digest, now)
            self._access.grant(record_id, caller_id, True, True, NEVER)
        return record_id

    def update_data(self, caller_id: str, record_id: bytes, demographic_digest: bytes,
                    diagnosis_digest: bytes, now: Optional[int] = None) -> Record:
        now = self._now(now)
        self._validate(UpdateDataRequest, caller_id=caller_id, record_id=record_id,
                       demographic_digest=demographic_digest, diagnosis_digest=diagnosis_digest)

        with self._operation("update_data", caller_id, record_id, now):
            self._require_write("update_data", caller_id, record_id, now)
            record = self._records.update_data(record_id, demographic_digest, diagnosis_digest, now)
        return record

    def update_consent(self, caller_id: str, record_id: bytes, new_status: bool,
                       now: Optional[int] = None) -> Record:
        now = self._now(now)
        self._validate(UpdateConsentRequest, caller_id=caller_id, record_id=record_id,
                       new_status=new_status)

        with self._operation("update_consent", caller_id, record_id, now,
                             {"new_status": new_status}):
            self._require_write("update_consent", caller_id, record_id, now)
            record = self._records.update_consent(record_id, new_status, now)
        return record

    def grant_access(self, caller_id: str, record_id: bytes, accessor_id: str, can_read: bool,
                     can_write: bool, expires_at: int = NEVER, now: Optional[int] = None) -> None:
        """Insert or overwrite accessor_id's grant. Past expirations are accepted and inert."""
        now = self._now(now)
        self._validate(GrantAccessRequest, caller_id=caller_id, record_id=record_id,
                       accessor_id=accessor_id, can_read=can_read, can_write=can_write,
                       expires_at=expires_at)

        details = {"accessor_id": accessor_id, "can_read": can_read,
                   "can_write": can_write, "expires_at": expires_at}
        with self._operation("grant_access", caller_id, record_id, now, details):
            self._require_write("grant_access", caller_id, record_id, now)
            self._access.grant(record_id, accessor_id, can_read, can_write, expires_at)

    def revoke_access(self, caller_id: str, record_id: bytes, accessor_id: str,
                      now: Optional[int] = None) -> None:
        """Remove accessor_id's grant. Succeeds even if there was none."""
        now = self._now(now)
        self._validate(RevokeAccessRequest, caller_id=caller_id, record_id=record_id,
                       accessor_id=accessor_id)

        details = {"accessor_id": accessor_id}
        with self._operation("revoke_access", caller_id, record_id, now, details):
            self._require_write("revoke_access", caller_id, record_id, now)
            details["removed"] = self._access.revoke(record_id, accessor_id)

    def read(self, caller_id: str, record_id: bytes, now: Optional[int] = None) -> Record:
        now = self._now(now)
        self._validate(ReadRequest, caller_id=caller_id, record_id=record_id)

        with self._operation("read", caller_id, record_id, now):
            record = self._records.get(record_id)
            caps = self._access.resolve(record_id, caller_id, now)
            self._check("read", caller_id, record_id, now, caps.can_read, "read")
        return record

    def check_access(self, record_id: bytes, accessor_id: str, now: Optional[int] = None) -> Capabilities:
        """Read-only capability query; open to any caller."""
        now = self._now(now)
        with self._locks.lock_for(record_id):
            self._records.get(record_id)
            return self._access.resolve(record_id, accessor_id, now)

    def audit_events(self, record_id: Optional[bytes] = None) -> List[AuditEvent]:
        if self._audit is None:
            return []
        return self._audit.events(record_id)

    # Internals

    def _now(self, now: Optional[int]) -> int:
        return self._clock.height() if now is None else now

    def _validate(self, model, **fields) -> None:
        if not self._strict:
            return
        try:
            model(**fields)
        except ValidationError as e:
            logger.error(f"Schema validation failed for {model.__name__}: {e.error_count()} error(s)")
            raise

    def _require_write(self, operation: str, caller_id: str, record_id: bytes, now: int) -> None:
        self._records.get(record_id)
        caps = self._access.resolve(record_id, caller_id, now)
        self._check(operation, caller_id, record_id, now, caps.can_write, "write")

    def _check(self, operation: str, caller_id: str, record_id: bytes, now: int,
               allowed: bool, capability: str) -> None:
        if allowed:
            return
        # absent, expired and disabled grants are indistinguishable to the caller
        reason = self._access.explain(record_id, caller_id, now)
        if reason == "active":
            reason = f"{capability}_disabled"
        raise Unauthorized(f"Caller not authorized to {operation} record {record_id.hex()}", record_id,
                           capability=capability, reason=reason)

    @contextmanager
    def _operation(self, operation: str, caller_id: str, record_id: bytes, now: int,
                   details: Optional[Dict] = None):
        """Hold the record's lock for the operation; log and audit once it is released."""
        details = details if details is not None else {}
        error = None
        with self._locks.lock_for(record_id):
            try:
                yield details
            except RegistryError as e:
                error = e

        if error is not None:
            if isinstance(error, Unauthorized):
                log_access_decision(operation, caller_id, record_id, error.capability, False, error.reason)
            logger.log_registry_operation(operation, caller_id, record_id, "failed",
                                          {"code": error.code, **details})
            self._record_audit(operation, caller_id, record_id, error.code, now, details)
            raise error

        logger.log_registry_operation(operation, caller_id, record_id, "success", details)
        self._record_audit(operation, caller_id, record_id, "ok", now, details)

    def _record_audit(self, operation: str, caller_id: str, record_id: bytes, outcome: str,
                      now: int, details: Dict) -> None:
        if self._audit is not None:
            self._audit.record(operation, caller_id, record_id, outcome, now, dict(details))
