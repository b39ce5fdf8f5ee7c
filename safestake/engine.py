"""
SafeStake Compliance Engine

Single entry point composing registration, limits, self-exclusion, the spend
ledger and the eligibility evaluator over one injectable store.

The host supplies the caller's account identifier and the current time on
every call; the engine keeps no ambient context of its own.

Usage:
    engine = ComplianceEngine(verifier_public_key)

    engine.register(account, signature, now)
    engine.set_limits(account, daily_limit=1_000_000_000, monthly_limit=5_000_000_000, now=now)

    if engine.check_eligibility(account, 300_000_000, now) == EligibilityStatus.ELIGIBLE:
        engine.record_transaction(account, 300_000_000, "platform_1", now)
"""

import logging
from typing import Optional

from .eligibility import EligibilityEvaluator, EligibilityReport, EligibilityStatus
from .errors import ComplianceError, ErrorKind
from .exclusion import SelfExclusion
from .identity import AccountId, identity_hex, identity_key
from .ledger import SpendLedger, SpendReceipt
from .limits import LimitManager
from .logging_config import audit_log
from .records import ComplianceRecord, ExclusionEntry
from .registration import Registration, ReregistrationPolicy
from .signing import KeyMaterial, SignatureVerifier
from .store import ComplianceStore, InMemoryComplianceStore

logger = logging.getLogger(__name__)


def _safe_identity(account: AccountId) -> str:
    try:
        return identity_hex(identity_key(account))
    except ComplianceError:
        return "unparseable"


class ComplianceEngine:
    """
    The SafeStake compliance policy engine.

    Enforces:
    - no unverified or excluded participant may transact
    - no participant may spend past a configured limit
    - counters reset exactly once per calendar window
    """

    def __init__(
        self,
        verifier_key: KeyMaterial,
        store: Optional[ComplianceStore] = None,
        reregistration: ReregistrationPolicy = ReregistrationPolicy.RESET
    ):
        self._verifier = SignatureVerifier(verifier_key)
        self.store = store if store is not None else InMemoryComplianceStore()

        self.registration = Registration(self.store, self._verifier, reregistration)
        self.limits = LimitManager(self.store)
        self.exclusion = SelfExclusion(self.store)
        self.ledger = SpendLedger(self.store)
        self.evaluator = EligibilityEvaluator(self.store)

        logger.info(
            "Compliance engine ready (verifier key %s, store %s, reregistration %s)",
            self._verifier.public_key_hex,
            type(self.store).__name__,
            self.registration.policy.value
        )

    @property
    def verifier_key(self) -> bytes:
        return self._verifier.public_key

    @property
    def verifier_key_hex(self) -> str:
        return self._verifier.public_key_hex

    def register(self, account: AccountId, signature, now: int) -> ComplianceRecord:
        identity = _safe_identity(account)
        try:
            record = self.registration.register(account, signature, now)
        except ComplianceError as e:
            audit_log.registration(identity, "REJECTED", error=e.kind.value)
            if e.kind == ErrorKind.INVALID_SIGNATURE:
                audit_log.security_event("invalid_attestation", severity="medium", identity=identity)
            raise
        audit_log.registration(identity, "SUCCESS")
        return record

    def set_limits(self, caller: AccountId, daily_limit: int, monthly_limit: int, now: int) -> ComplianceRecord:
        record, created = self.limits.set_limits(caller, daily_limit, monthly_limit, now)
        audit_log.limits_set(identity_hex(record.identity), daily_limit, monthly_limit, created)
        return record

    def self_exclude(self, caller: AccountId, duration_days: int, now: int) -> ExclusionEntry:
        entry, has_record = self.exclusion.self_exclude(caller, duration_days, now)
        audit_log.self_exclusion(identity_hex(entry.identity), duration_days, entry.cooldown_until, has_record)
        return entry

    def record_transaction(self, user: AccountId, amount: int, platform_id: str, now: int) -> SpendReceipt:
        try:
            receipt = self.ledger.record_transaction(user, amount, platform_id, now)
        except ComplianceError as e:
            audit_log.transaction_rejected(_safe_identity(user), amount, platform_id, e.kind.value)
            raise
        audit_log.transaction_recorded(
            identity_hex(receipt.identity),
            receipt.amount,
            receipt.platform_id,
            receipt.daily_spent,
            receipt.monthly_spent
        )
        return receipt

    def check_eligibility(self, user: AccountId, proposed_amount: int, now: int) -> EligibilityStatus:
        """
        Read-only eligibility decision for a proposed spend.

        Every well-formed call returns a status; a missing record is
        NOT_REGISTERED, not an error.

        Raises:
            ComplianceError(PARSE_PARAMS) for a malformed account, a negative
            or non-integer amount, or an out-of-range timestamp
        """
        return self.eligibility_report(user, proposed_amount, now).status

    def eligibility_report(self, user: AccountId, proposed_amount: int, now: int) -> EligibilityReport:
        report = self.evaluator.report(user, proposed_amount, now)
        audit_log.eligibility_check(_safe_identity(user), report.proposed_amount, report.status.value)
        return report

    def get_record(self, account: AccountId) -> Optional[ComplianceRecord]:
        """Snapshot of the account's record, or None."""
        return self.store.get_record(identity_key(account))

    def is_excluded(self, account: AccountId) -> bool:
        return self.store.is_excluded(identity_key(account))
