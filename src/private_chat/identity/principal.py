"""Textual principal codec (self-checking base32 with a CRC32 prefix)."""

from __future__ import annotations

import base64
import binascii
import re
import zlib

from private_chat.exceptions import PrincipalFormatError

Principal = str

MAX_PRINCIPAL_BYTES = 29
_GROUP_SIZE = 5
_COMPACT_RE = re.compile(r"^[a-z2-7]+$")


def encode_principal(raw: bytes) -> Principal:
    """Encode raw principal bytes into their dash-grouped text form."""
    if len(raw) > MAX_PRINCIPAL_BYTES:
        raise PrincipalFormatError(
            f"Principal is {len(raw)} bytes, limit is {MAX_PRINCIPAL_BYTES}"
        )
    checksum = zlib.crc32(raw).to_bytes(4, "big")
    compact = base64.b32encode(checksum + raw).decode("ascii").rstrip("=").lower()
    return "-".join(
        compact[i:i + _GROUP_SIZE] for i in range(0, len(compact), _GROUP_SIZE)
    )


def decode_principal(text: str) -> bytes:
    """Decode principal text back to raw bytes, verifying the checksum.

    Raises:
        PrincipalFormatError: if the text is not exactly the canonical
            encoding of some principal.
    """
    compact = text.replace("-", "")
    if not compact or not _COMPACT_RE.match(compact):
        raise PrincipalFormatError(f"Invalid principal text: {text!r}")

    padded = compact.upper() + "=" * (-len(compact) % 8)
    try:
        data = base64.b32decode(padded)
    except (binascii.Error, ValueError) as e:
        raise PrincipalFormatError(f"Invalid principal text: {text!r}") from e

    if len(data) < 4:
        raise PrincipalFormatError(f"Principal text too short: {text!r}")

    checksum, raw = data[:4], data[4:]
    if zlib.crc32(raw).to_bytes(4, "big") != checksum:
        raise PrincipalFormatError(f"Principal checksum mismatch: {text!r}")
    if encode_principal(raw) != text:
        raise PrincipalFormatError(f"Principal text is not canonical: {text!r}")
    return raw


def parse_principal(text: str) -> Principal:
    """Validate principal text and return it unchanged."""
    decode_principal(text)
    return text


ANONYMOUS_PRINCIPAL: Principal = encode_principal(b"\x04")


def is_anonymous(principal: Principal | None) -> bool:
    return principal is None or principal == ANONYMOUS_PRINCIPAL
