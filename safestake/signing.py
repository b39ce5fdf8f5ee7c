"""
SafeStake Attestation Signing

Age verification happens off-line: a verifier backend checks the participant's
proof and, if they are of legal age, signs the raw bytes of their account
identifier with Ed25519 (RFC 8032). The registry only ever sees the verifier's
public key and that signature.

The signed message is exactly the account identifier bytes, with no length
prefix and no domain separation, so signatures stay compatible with the
existing verifier backend.
"""

import base64
import binascii
import secrets
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from .errors import ComplianceError, ErrorKind
from .identity import AccountId, account_bytes

KEY_LENGTH = 32
SIGNATURE_LENGTH = 64

KeyMaterial = Union[bytes, bytearray, str]


def decode_key_material(value: KeyMaterial, expected_length: int = KEY_LENGTH) -> bytes:
    """
    Decode a key or signature given as raw bytes, hex or base64.

    Raises:
        ValueError if the value cannot be decoded to `expected_length` bytes.
    """
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str):
        text = value.strip()
        if text.startswith("0x"):
            text = text[2:]
        try:
            raw = bytes.fromhex(text)
        except ValueError:
            try:
                raw = base64.b64decode(text, validate=True)
            except (binascii.Error, ValueError):
                raise ValueError("key material is neither hex nor base64")
    else:
        raise ValueError(f"unsupported key material type: {type(value).__name__}")

    if len(raw) != expected_length:
        raise ValueError(f"expected {expected_length} bytes, got {len(raw)}")
    return raw


class SignatureVerifier:
    """
    Checks age-verification attestations against the configured verifier key.

    Stateless apart from the immutable public key.
    """

    def __init__(self, public_key: KeyMaterial):
        try:
            raw = decode_key_material(public_key, KEY_LENGTH)
            self._verify_key = VerifyKey(raw)
        except (ValueError, TypeError) as e:
            raise ComplianceError(ErrorKind.PARSE_PARAMS, f"invalid verifier public key: {e}")
        self._public_key = raw

    @property
    def public_key(self) -> bytes:
        return self._public_key

    @property
    def public_key_hex(self) -> str:
        return self._public_key.hex()

    def verify(self, message: bytes, signature) -> bool:
        """
        Verify an Ed25519 signature over `message`.

        Returns:
            True if the signature is valid, False otherwise (including malformed input)
        """
        if not isinstance(signature, (bytes, bytearray)) or len(signature) != SIGNATURE_LENGTH:
            return False
        try:
            self._verify_key.verify(message, bytes(signature))
            return True
        except (BadSignatureError, ValueError, TypeError):
            return False

    def verify_account(self, account: AccountId, signature) -> bool:
        """Verify an attestation over an account identifier."""
        return self.verify(account_bytes(account), signature)


@dataclass
class KeyPair:
    """Ed25519 verifier key pair."""
    key_id: str
    signing_key: bytes
    verify_key: bytes
    algorithm: str = "Ed25519"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key_id": self.key_id,
            "algorithm": self.algorithm,
            "private_key_hex": self.signing_key.hex(),
            "public_key_hex": self.verify_key.hex(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeyPair":
        signing_key = decode_key_material(data["private_key_hex"], KEY_LENGTH)
        return cls(
            key_id=data.get("key_id", "verifier"),
            signing_key=signing_key,
            verify_key=bytes(SigningKey(signing_key).verify_key),
            algorithm=data.get("algorithm", "Ed25519"),
        )


class AttestationSigner:
    """
    The verifier-backend side of age verification.

    Used by the `safestake sign` command and by tests to produce attestations
    the registry will accept.
    """

    def __init__(self, signing_key: KeyMaterial, key_id: str = "verifier"):
        try:
            raw = decode_key_material(signing_key, KEY_LENGTH)
        except ValueError as e:
            raise ComplianceError(ErrorKind.PARSE_PARAMS, f"invalid signing key: {e}")
        self._signing_key = SigningKey(raw)
        self.key_id = key_id

    @classmethod
    def generate(cls, key_id: Optional[str] = None) -> "AttestationSigner":
        key_id = key_id or f"verifier-{secrets.token_hex(4)}"
        signing_key, _ = generate_signing_key()
        return cls(signing_key, key_id=key_id)

    @classmethod
    def from_seed(cls, seed: bytes, key_id: str = "verifier") -> "AttestationSigner":
        """Deterministic signer; the seed is zero-padded to 32 bytes."""
        if len(seed) > KEY_LENGTH:
            raise ValueError(f"seed longer than {KEY_LENGTH} bytes")
        return cls(seed.ljust(KEY_LENGTH, b"\x00"), key_id=key_id)

    @property
    def public_key(self) -> bytes:
        return bytes(self._signing_key.verify_key)

    def key_pair(self) -> KeyPair:
        return KeyPair(
            key_id=self.key_id,
            signing_key=bytes(self._signing_key),
            verify_key=self.public_key,
        )

    def sign(self, message: bytes) -> bytes:
        return self._signing_key.sign(message).signature

    def sign_account(self, account: AccountId) -> bytes:
        """Sign the raw account identifier bytes."""
        return self.sign(account_bytes(account))


# Convenience functions

def generate_signing_key() -> Tuple[bytes, bytes]:
    """
    Generate an Ed25519 key pair.

    Returns:
        Tuple of (signing_key_bytes, verify_key_bytes)
    """
    signing_key = SigningKey.generate()
    return bytes(signing_key), bytes(signing_key.verify_key)
