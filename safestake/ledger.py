"""
SafeStake Spend Ledger

Records a spend against the participant's limits. This is the only place where
spend counters grow, and the only place where window rollover is committed.

Invariant: within one window the committed spend never exceeds the limit in
force when each spend was recorded.

All checks are evaluated against a snapshot of the record before anything is
written; a rejected transaction leaves the store untouched.
"""

from dataclasses import dataclass
from typing import Any, Dict

from .errors import ComplianceError, ErrorKind
from .identity import AccountId, identity_hex, identity_key
from .records import validate_amount
from .store import ComplianceStore
from .windows import roll_windows, validate_timestamp


@dataclass(frozen=True)
class SpendReceipt:
    """Outcome of a recorded transaction."""
    identity: bytes
    amount: int
    platform_id: str
    recorded_at: int
    daily_spent: int
    monthly_spent: int
    remaining_daily: int
    remaining_monthly: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identity": identity_hex(self.identity),
            "amount": self.amount,
            "platform_id": self.platform_id,
            "recorded_at": self.recorded_at,
            "daily_spent": self.daily_spent,
            "monthly_spent": self.monthly_spent,
            "remaining_daily": self.remaining_daily,
            "remaining_monthly": self.remaining_monthly,
        }


class SpendLedger:
    """Applies window resets and records spends."""

    def __init__(self, store: ComplianceStore):
        self.store = store

    def record_transaction(
        self,
        user: AccountId,
        amount: int,
        platform_id: str,
        now: int
    ) -> SpendReceipt:
        """
        Record a spend of `amount` on `platform_id`.

        Check order:
            1. record exists            -> USER_NOT_REGISTERED
            2. age verified             -> AGE_NOT_VERIFIED
            3. cooldown still running   -> ON_COOLDOWN
            4. in the exclusion set     -> SELF_EXCLUDED
            5. rollover, then daily limit before monthly limit

        Raises:
            ComplianceError with the first failing check
        """
        amount = validate_amount(amount)
        if not isinstance(platform_id, str) or not platform_id:
            raise ComplianceError(ErrorKind.PARSE_PARAMS, "platform_id must be a non-empty string")
        now = validate_timestamp(now)

        identity = identity_key(user)

        with self.store.transaction(identity):
            record = self.store.get_record(identity)
            if record is None:
                raise ComplianceError(ErrorKind.USER_NOT_REGISTERED)
            if not record.age_verified:
                raise ComplianceError(ErrorKind.AGE_NOT_VERIFIED)
            if record.on_cooldown(now):
                raise ComplianceError(ErrorKind.ON_COOLDOWN, f"cooldown until {record.cooldown_until}")
            if self.store.is_excluded(identity):
                raise ComplianceError(ErrorKind.SELF_EXCLUDED)

            windows = roll_windows(record, now)

            new_daily = windows.daily_spent + amount
            new_monthly = windows.monthly_spent + amount

            if new_daily > record.daily_limit:
                raise ComplianceError(
                    ErrorKind.DAILY_LIMIT_EXCEEDED,
                    f"{new_daily} would exceed daily limit {record.daily_limit}"
                )
            if new_monthly > record.monthly_limit:
                raise ComplianceError(
                    ErrorKind.MONTHLY_LIMIT_EXCEEDED,
                    f"{new_monthly} would exceed monthly limit {record.monthly_limit}"
                )

            record.daily_spent = new_daily
            record.monthly_spent = new_monthly
            record.last_reset_day = windows.last_reset_day
            record.last_reset_month = windows.last_reset_month
            record.platforms_used.add(platform_id)

            self.store.put_record(record)

        return SpendReceipt(
            identity=identity,
            amount=amount,
            platform_id=platform_id,
            recorded_at=now,
            daily_spent=new_daily,
            monthly_spent=new_monthly,
            remaining_daily=record.daily_limit - new_daily,
            remaining_monthly=record.monthly_limit - new_monthly,
        )
