"""
SafeStake Error Kinds

Every rejected operation reports exactly one ErrorKind. The values match the
names used by the registry contract and the operator SDK so they can be passed
through unchanged to integrators.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Closed set of rejection reasons."""
    PARSE_PARAMS = "ParseParams"
    USER_NOT_REGISTERED = "UserNotRegistered"
    DAILY_LIMIT_EXCEEDED = "DailyLimitExceeded"
    MONTHLY_LIMIT_EXCEEDED = "MonthlyLimitExceeded"
    SELF_EXCLUDED = "SelfExcluded"
    ON_COOLDOWN = "OnCooldown"
    INVALID_LIMITS = "InvalidLimits"
    INVALID_SIGNATURE = "InvalidSignature"
    AGE_NOT_VERIFIED = "AgeNotVerified"
    OVERFLOW = "Overflow"


# Rejections caused by the shape of the call itself; the rest reflect
# the current state of the account.
INPUT_ERRORS = frozenset({
    ErrorKind.PARSE_PARAMS,
    ErrorKind.INVALID_LIMITS,
    ErrorKind.INVALID_SIGNATURE,
    ErrorKind.OVERFLOW,
})


class ComplianceError(Exception):
    """Raised when an operation is rejected. No state change has been applied."""

    def __init__(self, kind: ErrorKind, detail: Optional[str] = None):
        self.kind = kind
        self.detail = detail
        message = kind.value if not detail else f"{kind.value}: {detail}"
        super().__init__(message)

    def is_input_error(self) -> bool:
        return self.kind in INPUT_ERRORS

    def to_dict(self):
        d = {"error": self.kind.value}
        if self.detail:
            d["detail"] = self.detail
        return d
