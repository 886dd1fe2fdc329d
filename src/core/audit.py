"""
In-memory audit trail of registry operations, successes and failures alike.
"""

import threading
from collections import deque
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Optional

from util.logging import audit_event


@dataclass(frozen=True)
class AuditEvent:
    operation: str
    caller_id: str
    record_id: bytes
    outcome: str  # ok, or the error code
    at: int
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        """Convert to dictionary for export."""
        data = asdict(self)
        data['record_id'] = self.record_id.hex()
        return data


class AuditTrail:
    """Bounded, append-only list of audit events (oldest dropped first)."""

    def __init__(self, max_events: int = 10000):
        self._events = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def record(self, operation: str, caller_id: str, record_id: bytes, outcome: str, at: int,
               details: Optional[Dict[str, Any]] = None) -> AuditEvent:
        event = AuditEvent(
            operation=operation,
            caller_id=caller_id,
            record_id=record_id,
            outcome=outcome,
            at=at,
            details=details or {}
        )
        with self._lock:
            self._events.append(event)

        audit_event(
            event_type=f"registry.{operation}",
            identifiers={"caller_id": caller_id, "record_id": record_id, "at": at},
            payload={"outcome": outcome, **event.details}
        )
        return event

    def events(self, record_id: Optional[bytes] = None) -> List[AuditEvent]:
        with self._lock:
            if record_id is None:
                return list(self._events)
            return [e for e in self._events if e.record_id == record_id]

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
