"""
Content references.

A record stores only a 32-byte reference (sha256 digest) to encrypted data
held elsewhere. These helpers produce and parse such references; the
engine never sees the data itself.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

from ..errors import InvalidInput
from .models import CONTENT_REF_SIZE

_PREFIX = "sha256:"


def hash_content(content: bytes | str) -> bytes:
    """Compute the sha256 digest of a payload."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).digest()


def hash_file(path: Path) -> bytes:
    """Compute the sha256 digest of a file, streaming it in chunks."""
    hasher = hashlib.sha256()
    with Path(path).open("rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            hasher.update(chunk)
    return hasher.digest()


def parse_content_ref(text: str) -> bytes:
    """
    Parse a hex content reference.

    Accepts 64 hex characters, optionally prefixed with "sha256:".

    Raises:
        InvalidInput: if the text is not a 32-byte hex reference
    """
    value = text.strip()
    if value.lower().startswith(_PREFIX):
        value = value[len(_PREFIX):]
    try:
        ref = bytes.fromhex(value)
    except ValueError as e:
        raise InvalidInput(f"content reference is not valid hex: {text!r}") from e
    if len(ref) != CONTENT_REF_SIZE:
        raise InvalidInput(f"content reference must be {CONTENT_REF_SIZE} bytes (got {len(ref)})")
    return ref


def format_content_ref(ref: bytes, *, short: bool = False) -> str:
    text = ref.hex()
    return (text[:12] + "…") if short else text
