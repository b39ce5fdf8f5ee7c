"""
SafeStake Identity Keys

Every piece of per-user state is keyed by an IdentityKey: the SHA-256 digest
of the raw account identifier bytes. The raw identifier is never stored.
"""

import hashlib
from typing import Union

from .errors import ComplianceError, ErrorKind

IDENTITY_KEY_LENGTH = 32

AccountId = Union[bytes, bytearray, str]


def account_bytes(account: AccountId) -> bytes:
    """
    Normalise an account identifier to the bytes that get hashed and signed.

    Raw addresses are passed through untouched; textual addresses are
    encoded as UTF-8, matching what the verifier backend signs.
    """
    if isinstance(account, (bytes, bytearray)):
        data = bytes(account)
    elif isinstance(account, str):
        data = account.encode('utf-8')
    else:
        raise ComplianceError(
            ErrorKind.PARSE_PARAMS,
            f"account identifier must be bytes or str, got {type(account).__name__}"
        )

    if not data:
        raise ComplianceError(ErrorKind.PARSE_PARAMS, "account identifier is empty")
    return data


def identity_key(account: AccountId) -> bytes:
    """Derive the 32-byte IdentityKey for an account identifier."""
    return hashlib.sha256(account_bytes(account)).digest()


def identity_hex(key: bytes) -> str:
    """Hex form used in logs, JSON documents and the SQLite store."""
    return key.hex()


def parse_identity_hex(value: str) -> bytes:
    """Inverse of identity_hex."""
    try:
        key = bytes.fromhex(value)
    except (ValueError, TypeError):
        raise ComplianceError(ErrorKind.PARSE_PARAMS, f"invalid identity key: {value!r}")
    if len(key) != IDENTITY_KEY_LENGTH:
        raise ComplianceError(ErrorKind.PARSE_PARAMS, f"identity key must be {IDENTITY_KEY_LENGTH} bytes")
    return key
