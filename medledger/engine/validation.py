"""Input validation shared by every public operation."""

from __future__ import annotations

from ..errors import InvalidInput
from .models import CONTENT_REF_SIZE, MAX_TIMESTAMP

DEFAULT_MAX_RECORD_ID_LENGTH = 64


def validate_record_id(record_id: str, *, max_length: int = DEFAULT_MAX_RECORD_ID_LENGTH) -> str:
    if not isinstance(record_id, str) or not record_id:
        raise InvalidInput("record_id must be a non-empty string", record_id=record_id or None)
    if len(record_id) > max_length:
        raise InvalidInput(
            f"record_id exceeds {max_length} characters (got {len(record_id)})",
            record_id=record_id,
        )
    return record_id


def validate_content_ref(content_ref: bytes) -> bytes:
    if not isinstance(content_ref, (bytes, bytearray)):
        raise InvalidInput(f"content_ref must be bytes, got {type(content_ref).__name__}")
    if len(content_ref) != CONTENT_REF_SIZE:
        raise InvalidInput(f"content_ref must be exactly {CONTENT_REF_SIZE} bytes (got {len(content_ref)})")
    return bytes(content_ref)


def validate_identity(identity: str, *, field: str = "identity") -> str:
    if not isinstance(identity, str) or not identity.strip():
        raise InvalidInput(f"{field} must be a non-empty string")
    return identity


def validate_distinct(target: str, caller: str, *, field: str) -> None:
    """Reject operations that name the caller as their own target."""
    if target == caller:
        raise InvalidInput(f"{field} must differ from the caller", caller=caller)


def validate_timestamp(now: int) -> int:
    # bool is an int subclass; True is not a time
    if isinstance(now, bool) or not isinstance(now, int):
        raise InvalidInput(f"current time must be an integer, got {type(now).__name__}")
    if not 0 <= now <= MAX_TIMESTAMP:
        raise InvalidInput(f"current time out of range: {now}")
    return now


def validate_duration(duration: int, now: int) -> int:
    """Validate a grant duration and return the absolute expiry."""
    if isinstance(duration, bool) or not isinstance(duration, int):
        raise InvalidInput(f"duration must be an integer, got {type(duration).__name__}")
    if duration <= 0:
        raise InvalidInput(f"duration must be strictly positive (got {duration})")
    expires_at = now + duration
    if expires_at > MAX_TIMESTAMP:
        raise InvalidInput(f"grant expiry overflows the time range (now={now}, duration={duration})")
    return expires_at
