"""
SafeStake Limit Manager

Participants (or platforms on their behalf) declare daily and monthly spending
limits. Limits may be staged before age verification; such a record stays
ineligible to transact until registration completes.
"""

from typing import Tuple

from .errors import ComplianceError, ErrorKind
from .identity import AccountId, identity_key
from .records import ComplianceRecord, validate_amount
from .store import ComplianceStore
from .windows import validate_timestamp


class LimitManager:
    """Validates and applies limit configuration."""

    def __init__(self, store: ComplianceStore):
        self.store = store

    def set_limits(
        self,
        caller: AccountId,
        daily_limit: int,
        monthly_limit: int,
        now: int
    ) -> Tuple[ComplianceRecord, bool]:
        """
        Set the caller's daily and monthly limits.

        Only the two limits change on an existing record. A missing record is
        created unverified, with zero spend.

        Returns:
            Tuple of (record snapshot, created)

        Raises:
            ComplianceError(INVALID_LIMITS) if daily_limit > monthly_limit
        """
        daily_limit = validate_amount(daily_limit, "daily_limit")
        monthly_limit = validate_amount(monthly_limit, "monthly_limit")
        now = validate_timestamp(now)

        if daily_limit > monthly_limit:
            raise ComplianceError(
                ErrorKind.INVALID_LIMITS,
                f"daily limit {daily_limit} exceeds monthly limit {monthly_limit}"
            )

        identity = identity_key(caller)

        with self.store.transaction(identity):
            record = self.store.get_record(identity)
            created = record is None

            if created:
                exclusion = self.store.get_exclusion(identity)
                record = ComplianceRecord.create(
                    identity,
                    now,
                    age_verified=False,
                    daily_limit=daily_limit,
                    monthly_limit=monthly_limit,
                    cooldown_until=exclusion.cooldown_until if exclusion else None,
                )
            else:
                record.daily_limit = daily_limit
                record.monthly_limit = monthly_limit

            self.store.put_record(record)

        return record.copy(), created
