"""Caller identity and principal text handling."""

from private_chat.identity.context import IdentityContext
from private_chat.identity.principal import (
    ANONYMOUS_PRINCIPAL,
    Principal,
    decode_principal,
    encode_principal,
    is_anonymous,
    parse_principal,
)

__all__ = [
    "IdentityContext",
    "ANONYMOUS_PRINCIPAL",
    "Principal",
    "decode_principal",
    "encode_principal",
    "is_anonymous",
    "parse_principal",
]
