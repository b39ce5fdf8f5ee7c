"""
SafeStake Self-Exclusion

Self-exclusion is monotonic: identities are added to the exclusion set and
never removed, and a repeated exclusion never shortens an existing cooldown.
"""

from typing import Tuple

from .errors import ComplianceError, ErrorKind
from .identity import AccountId, identity_key
from .records import ExclusionEntry
from .store import ComplianceStore
from .windows import add_days, validate_timestamp


class SelfExclusion:
    """Applies self-exclusion requests."""

    def __init__(self, store: ComplianceStore):
        self.store = store

    def self_exclude(self, caller: AccountId, duration_days: int, now: int) -> Tuple[ExclusionEntry, bool]:
        """
        Exclude the caller for `duration_days` days starting at `now`.

        The identity joins the exclusion set even if it has no record yet.

        Returns:
            Tuple of (exclusion entry, whether a record was updated)

        Raises:
            ComplianceError(OVERFLOW) if the cooldown end is not representable
        """
        if isinstance(duration_days, bool) or not isinstance(duration_days, int) or duration_days < 0:
            raise ComplianceError(ErrorKind.PARSE_PARAMS, f"duration_days must be a non-negative integer: {duration_days!r}")
        now = validate_timestamp(now)

        cooldown_until = add_days(now, duration_days)
        identity = identity_key(caller)

        with self.store.transaction(identity):
            previous = self.store.get_exclusion(identity)
            if previous is not None:
                cooldown_until = max(cooldown_until, previous.cooldown_until)

            record = self.store.get_record(identity)
            if record is not None and record.cooldown_until is not None:
                cooldown_until = max(cooldown_until, record.cooldown_until)

            entry = ExclusionEntry(
                identity=identity,
                cooldown_until=cooldown_until,
                excluded_at=previous.excluded_at if previous else now,
            )
            self.store.put_exclusion(entry)

            if record is not None:
                record.cooldown_until = cooldown_until
                self.store.put_record(record)

        return entry, record is not None
