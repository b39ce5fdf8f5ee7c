"""
SafeStake Eligibility Evaluator

The pre-flight question asked before every wager: may this participant place
a bet of this size right now?

Evaluation is read-only. Window rollover is applied to a snapshot and never
committed, so an ELIGIBLE answer followed by record_transaction for the same
amount succeeds unless a window rolls over in between.

Evaluation order (first match wins):
    1. NOT_REGISTERED          no record
    2. ON_COOLDOWN             cooldown still running
    3. SELF_EXCLUDED           identity is in the exclusion set
    4. AGE_NOT_VERIFIED        record staged by set_limits only
    5. DAILY_LIMIT_REACHED     daily spend + amount > daily limit
    6. MONTHLY_LIMIT_REACHED   monthly spend + amount > monthly limit
    7. ELIGIBLE
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .identity import AccountId, identity_key
from .records import ComplianceRecord, validate_amount
from .store import ComplianceStore
from .windows import SpendWindows, format_timestamp, roll_windows, validate_timestamp


class EligibilityStatus(str, Enum):
    """Eligibility decision. Values match the registry contract."""
    ELIGIBLE = "Eligible"
    DAILY_LIMIT_REACHED = "DailyLimitReached"
    MONTHLY_LIMIT_REACHED = "MonthlyLimitReached"
    SELF_EXCLUDED = "SelfExcluded"
    ON_COOLDOWN = "OnCooldown"
    NOT_REGISTERED = "NotRegistered"
    AGE_NOT_VERIFIED = "AgeNotVerified"


_MESSAGES = {
    EligibilityStatus.ELIGIBLE: "Eligible to place this bet",
    EligibilityStatus.DAILY_LIMIT_REACHED: "Daily spending limit would be exceeded",
    EligibilityStatus.MONTHLY_LIMIT_REACHED: "Monthly spending limit would be exceeded",
    EligibilityStatus.SELF_EXCLUDED: "Participant has self-excluded",
    EligibilityStatus.ON_COOLDOWN: "Participant is in a self-exclusion cooldown",
    EligibilityStatus.NOT_REGISTERED: "Participant is not registered",
    EligibilityStatus.AGE_NOT_VERIFIED: "Participant has not completed age verification",
}


@dataclass(frozen=True)
class EligibilityReport:
    """Eligibility decision with the context an operator UI needs."""
    status: EligibilityStatus
    proposed_amount: int
    remaining_daily: Optional[int] = None
    remaining_monthly: Optional[int] = None
    cooldown_until: Optional[int] = None

    @property
    def eligible(self) -> bool:
        return self.status == EligibilityStatus.ELIGIBLE

    @property
    def message(self) -> str:
        if self.status == EligibilityStatus.ON_COOLDOWN and self.cooldown_until is not None:
            return f"{_MESSAGES[self.status]} until {format_timestamp(self.cooldown_until)}"
        return _MESSAGES[self.status]

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "status": self.status.value,
            "eligible": self.eligible,
            "proposed_amount": self.proposed_amount,
            "message": self.message,
        }
        if self.remaining_daily is not None:
            d["remaining_daily"] = self.remaining_daily
        if self.remaining_monthly is not None:
            d["remaining_monthly"] = self.remaining_monthly
        if self.cooldown_until is not None:
            d["cooldown_until"] = self.cooldown_until
        return d


def evaluate(
    record: Optional[ComplianceRecord],
    excluded: bool,
    proposed_amount: int,
    now: int
) -> Tuple[EligibilityStatus, Optional[SpendWindows]]:
    """Pure decision over a record snapshot."""
    if record is None:
        return EligibilityStatus.NOT_REGISTERED, None
    if record.on_cooldown(now):
        return EligibilityStatus.ON_COOLDOWN, None
    if excluded:
        return EligibilityStatus.SELF_EXCLUDED, None
    if not record.age_verified:
        return EligibilityStatus.AGE_NOT_VERIFIED, None

    windows = roll_windows(record, now)
    if windows.daily_spent + proposed_amount > record.daily_limit:
        return EligibilityStatus.DAILY_LIMIT_REACHED, windows
    if windows.monthly_spent + proposed_amount > record.monthly_limit:
        return EligibilityStatus.MONTHLY_LIMIT_REACHED, windows
    return EligibilityStatus.ELIGIBLE, windows


class EligibilityEvaluator:
    """Read-only eligibility decisions over the compliance store."""

    def __init__(self, store: ComplianceStore):
        self.store = store

    def check_eligibility(self, user: AccountId, proposed_amount: int, now: int) -> EligibilityStatus:
        """Return the eligibility status for a proposed spend."""
        return self.report(user, proposed_amount, now).status

    def report(self, user: AccountId, proposed_amount: int, now: int) -> EligibilityReport:
        """Eligibility status plus remaining allowance after rollover."""
        proposed_amount = validate_amount(proposed_amount, "proposed_amount")
        now = validate_timestamp(now)
        identity = identity_key(user)

        record = self.store.get_record(identity)
        excluded = self.store.is_excluded(identity)
        status, windows = evaluate(record, excluded, proposed_amount, now)

        if record is None:
            return EligibilityReport(status=status, proposed_amount=proposed_amount)

        if windows is None:
            windows = roll_windows(record, now)

        return EligibilityReport(
            status=status,
            proposed_amount=proposed_amount,
            remaining_daily=max(0, record.daily_limit - windows.daily_spent),
            remaining_monthly=max(0, record.monthly_limit - windows.monthly_spent),
            cooldown_until=record.cooldown_until if record.on_cooldown(now) else None,
        )
