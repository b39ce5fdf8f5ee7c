"""
SafeStake Registration

Creates (or re-creates) a compliance record once the participant presents a
valid age-verification attestation for their account.
"""

from enum import Enum

from .errors import ComplianceError, ErrorKind
from .identity import AccountId, account_bytes, identity_key
from .records import ComplianceRecord
from .signing import SignatureVerifier
from .store import ComplianceStore
from .windows import validate_timestamp


class ReregistrationPolicy(str, Enum):
    """
    What happens when an identity that already has a record registers again.

    RESET: a fresh record replaces the old one; limits and spend go back to zero.
    PRESERVE: the existing record keeps limits, spend, windows and platforms;
        only age_verified is set.
    """
    RESET = "reset"
    PRESERVE = "preserve"


class Registration:
    """Gatekeeper for age-verified registration."""

    def __init__(
        self,
        store: ComplianceStore,
        verifier: SignatureVerifier,
        policy: ReregistrationPolicy = ReregistrationPolicy.RESET
    ):
        self.store = store
        self.verifier = verifier
        self.policy = ReregistrationPolicy(policy)

    def register(self, account: AccountId, signature, now: int) -> ComplianceRecord:
        """
        Register an account after checking its attestation.

        Under RESET the new record starts with zero limits and spend. Under
        either policy it keeps the cooldown of any earlier self-exclusion, so
        registering again never lifts a running cooldown.

        Args:
            account: Account identifier; its raw bytes are the signed message
            signature: 64-byte Ed25519 signature from the verifier backend
            now: Current time in milliseconds

        Returns:
            Snapshot of the stored record

        Raises:
            ComplianceError(INVALID_SIGNATURE) if the attestation does not verify
        """
        message = account_bytes(account)
        now = validate_timestamp(now)

        if not self.verifier.verify(message, signature):
            raise ComplianceError(ErrorKind.INVALID_SIGNATURE, "attestation does not verify under the verifier key")

        identity = identity_key(message)

        with self.store.transaction(identity):
            existing = self.store.get_record(identity)

            if existing is not None and self.policy == ReregistrationPolicy.PRESERVE:
                existing.age_verified = True
                record = existing
            else:
                exclusion = self.store.get_exclusion(identity)
                record = ComplianceRecord.create(
                    identity,
                    now,
                    age_verified=True,
                    cooldown_until=exclusion.cooldown_until if exclusion else None,
                )

            self.store.put_record(record)

        return record.copy()
