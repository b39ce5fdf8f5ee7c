"""
SafeStake Compliance Records

Per-identity state held by the compliance store:
- ComplianceRecord: limits, spend counters, windows, cooldown, verification flag
- ExclusionEntry: membership of the self-exclusion set
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Set

from .errors import ComplianceError, ErrorKind
from .identity import identity_hex, parse_identity_hex

# Amounts are micro-units held in an unsigned 64-bit range.
MAX_AMOUNT = 2 ** 64 - 1


def validate_amount(value, name: str = "amount") -> int:
    """Reject anything that is not a non-negative integer amount."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ComplianceError(ErrorKind.PARSE_PARAMS, f"{name} must be an integer, got {type(value).__name__}")
    if value < 0 or value > MAX_AMOUNT:
        raise ComplianceError(ErrorKind.PARSE_PARAMS, f"{name} out of range: {value}")
    return value


@dataclass
class ComplianceRecord:
    """
    Compliance state for one identity.

    Invariants maintained by the engine:
    - daily_limit <= monthly_limit after every write
    - spend counters only grow inside a window and return to zero on rollover
    - age_verified is never cleared once set
    """
    identity: bytes
    daily_limit: int = 0
    monthly_limit: int = 0
    daily_spent: int = 0
    monthly_spent: int = 0
    last_reset_day: int = 0
    last_reset_month: int = 0
    cooldown_until: Optional[int] = None
    platforms_used: Set[str] = field(default_factory=set)
    age_verified: bool = False

    @classmethod
    def create(
        cls,
        identity: bytes,
        now: int,
        age_verified: bool,
        daily_limit: int = 0,
        monthly_limit: int = 0,
        cooldown_until: Optional[int] = None
    ) -> "ComplianceRecord":
        """Fresh record with zero spend and both windows starting at `now`."""
        return cls(
            identity=identity,
            daily_limit=daily_limit,
            monthly_limit=monthly_limit,
            last_reset_day=now,
            last_reset_month=now,
            cooldown_until=cooldown_until,
            age_verified=age_verified,
        )

    def copy(self) -> "ComplianceRecord":
        return replace(self, platforms_used=set(self.platforms_used))

    def on_cooldown(self, now: int) -> bool:
        return self.cooldown_until is not None and now < self.cooldown_until

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identity": identity_hex(self.identity),
            "daily_limit": self.daily_limit,
            "monthly_limit": self.monthly_limit,
            "daily_spent": self.daily_spent,
            "monthly_spent": self.monthly_spent,
            "last_reset_day": self.last_reset_day,
            "last_reset_month": self.last_reset_month,
            "cooldown_until": self.cooldown_until,
            "platforms_used": sorted(self.platforms_used),
            "age_verified": self.age_verified,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComplianceRecord":
        return cls(
            identity=parse_identity_hex(data["identity"]),
            daily_limit=int(data.get("daily_limit", 0)),
            monthly_limit=int(data.get("monthly_limit", 0)),
            daily_spent=int(data.get("daily_spent", 0)),
            monthly_spent=int(data.get("monthly_spent", 0)),
            last_reset_day=int(data.get("last_reset_day", 0)),
            last_reset_month=int(data.get("last_reset_month", 0)),
            cooldown_until=data.get("cooldown_until"),
            platforms_used=set(data.get("platforms_used", [])),
            age_verified=bool(data.get("age_verified", False)),
        )


@dataclass(frozen=True)
class ExclusionEntry:
    """
    An identity that invoked self-exclusion.

    Entries are never removed. The cooldown end is kept on the entry so that a
    record created after the exclusion still carries it.
    """
    identity: bytes
    cooldown_until: int
    excluded_at: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identity": identity_hex(self.identity),
            "cooldown_until": self.cooldown_until,
            "excluded_at": self.excluded_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExclusionEntry":
        return cls(
            identity=parse_identity_hex(data["identity"]),
            cooldown_until=int(data["cooldown_until"]),
            excluded_at=int(data["excluded_at"]),
        )
