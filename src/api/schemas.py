"""
Request models for registry operations.
Used to validate operation inputs when strict schema validation is enabled.
"""

from pydantic import BaseModel, ConfigDict, field_validator

from src.core import config


def _check_width(v: bytes, width: int, name: str) -> bytes:
    if len(v) != width:
        raise ValueError(f'{name} must be exactly {width} bytes, got {len(v)}')
    return v


def _check_principal(v: str, name: str) -> str:
    if not v.strip():
        raise ValueError(f'{name} cannot be empty')
    return v


class RecordRequest(BaseModel):
    model_config = ConfigDict(strict=True, frozen=True)

    caller_id: str
    record_id: bytes

    @field_validator('caller_id')
    @classmethod
    def caller_must_not_be_empty(cls, v):
        return _check_principal(v, 'caller_id')

    @field_validator('record_id')
    @classmethod
    def record_id_must_be_fixed_width(cls, v):
        return _check_width(v, config.RECORD_ID_LENGTH, 'record_id')


class ReadRequest(RecordRequest):
    pass


class RegisterRequest(RecordRequest):
    demographic_digest: bytes
    diagnosis_digest: bytes

    @field_validator('demographic_digest', 'diagnosis_digest')
    @classmethod
    def digest_must_be_fixed_width(cls, v, info):
        return _check_width(v, config.DIGEST_LENGTH, info.field_name)


class UpdateDataRequest(RegisterRequest):
    pass


class UpdateConsentRequest(RecordRequest):
    new_status: bool


class RevokeAccessRequest(RecordRequest):
    accessor_id: str

    @field_validator('accessor_id')
    @classmethod
    def accessor_must_not_be_empty(cls, v):
        return _check_principal(v, 'accessor_id')


class GrantAccessRequest(RevokeAccessRequest):
    can_read: bool
    can_write: bool
    expires_at: int

    @field_validator('expires_at')
    @classmethod
    def expires_at_must_not_be_negative(cls, v):
        # 0 means "never expires"; past expirations are accepted and stay inert
        if v < 0:
            raise ValueError('expires_at cannot be negative')
        return v
