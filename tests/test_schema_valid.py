"""
Strict schema validation tests for registry operation inputs.
"""

import pytest
from pydantic import ValidationError

from src.api.schemas import GrantAccessRequest, RegisterRequest, UpdateConsentRequest
from src.core.registry_service import RegistryService


RID = b"\x11" * 32
DIGEST = b"\x22" * 32


@pytest.fixture
def strict_enabled():
    """Enable strict validation by patching the global flag."""
    from src.core import config
    original_value = config.SCHEMA_VALIDATION_STRICT
    config.SCHEMA_VALIDATION_STRICT = True
    yield
    config.SCHEMA_VALIDATION_STRICT = original_value


class TestRequestModels:

    def test_valid_register_request(self):
        request = RegisterRequest(caller_id="alice", record_id=RID,
                                  demographic_digest=DIGEST, diagnosis_digest=DIGEST)
        assert request.record_id == RID

    def test_record_id_wrong_width(self):
        with pytest.raises(ValidationError, match="record_id must be exactly 32 bytes"):
            RegisterRequest(caller_id="alice", record_id=b"short",
                            demographic_digest=DIGEST, diagnosis_digest=DIGEST)

    def test_digest_wrong_width(self):
        with pytest.raises(ValidationError, match="diagnosis_digest must be exactly 32 bytes"):
            RegisterRequest(caller_id="alice", record_id=RID,
                            demographic_digest=DIGEST, diagnosis_digest=b"x")

    def test_empty_caller(self):
        with pytest.raises(ValidationError, match="caller_id cannot be empty"):
            UpdateConsentRequest(caller_id="  ", record_id=RID, new_status=False)

    def test_record_id_must_be_bytes(self):
        with pytest.raises(ValidationError):
            UpdateConsentRequest(caller_id="alice", record_id="not-bytes", new_status=False)

    @pytest.mark.parametrize("expires_at,valid", [(0, True), (1, True), (-1, False)])
    def test_expires_at_sentinel_and_range(self, expires_at, valid):
        fields = dict(caller_id="alice", record_id=RID, accessor_id="bob",
                      can_read=True, can_write=False, expires_at=expires_at)
        if valid:
            assert GrantAccessRequest(**fields).expires_at == expires_at
        else:
            with pytest.raises(ValidationError, match="expires_at cannot be negative"):
                GrantAccessRequest(**fields)


class TestStrictService:

    def test_strict_from_config(self, strict_enabled):
        service = RegistryService()

        with pytest.raises(ValidationError):
            service.register("alice", b"P1", DIGEST, DIGEST, now=1)

        assert service.audit_events() == []

    def test_strict_accepts_fixed_width(self, strict_enabled):
        service = RegistryService()
        service.register("alice", RID, DIGEST, DIGEST, now=1)

        assert service.read("alice", RID, now=1).diagnosis_digest == DIGEST

    def test_non_strict_accepts_any_width(self):
        service = RegistryService(strict_validation=False)

        assert service.register("alice", b"P1", b"D", b"X", now=1) == b"P1"
