"""
Record storage. Owns record payloads and consent flags; no authorization or
clock logic lives here.
"""

import threading
from dataclasses import replace
from typing import Dict

from .errors import AlreadyExists, NotFound
from .schema import Record


class RecordStore:
    """Maps record_id to Record. Records are created once and never removed."""

    def __init__(self):
        self._records: Dict[bytes, Record] = {}
        self._lock = threading.Lock()

    def create(self, record_id: bytes, demographic_digest: bytes, diagnosis_digest: bytes,
               now: int) -> Record:
        """Insert a new record with consent on and created_at == updated_at == now."""
        with self._lock:
            if record_id in self._records:
                raise AlreadyExists(f"Record {record_id.hex()} already registered", record_id)
            record = Record(
                record_id=record_id,
                demographic_digest=demographic_digest,
                diagnosis_digest=diagnosis_digest,
                consent_status=True,
                created_at=now,
                updated_at=now
            )
            self._records[record_id] = record
            return record

    def update_data(self, record_id: bytes, demographic_digest: bytes, diagnosis_digest: bytes,
                    now: int) -> Record:
        """Replace both digests, keeping consent and created_at."""
        with self._lock:
            record = self._get(record_id)
            record = replace(record, demographic_digest=demographic_digest,
                             diagnosis_digest=diagnosis_digest, updated_at=now)
            self._records[record_id] = record
            return record

    def update_consent(self, record_id: bytes, new_status: bool, now: int) -> Record:
        """Replace the consent flag, keeping digests and created_at."""
        with self._lock:
            record = self._get(record_id)
            record = replace(record, consent_status=new_status, updated_at=now)
            self._records[record_id] = record
            return record

    def get(self, record_id: bytes) -> Record:
        with self._lock:
            return self._get(record_id)

    def exists(self, record_id: bytes) -> bool:
        with self._lock:
            return record_id in self._records

    def _get(self, record_id: bytes) -> Record:
        record = self._records.get(record_id)
        if record is None:
            raise NotFound(f"Record {record_id.hex()} not found", record_id)
        return record

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
