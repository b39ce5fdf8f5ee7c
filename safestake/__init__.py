"""
SafeStake Registry

Version: 1.0.0
License: Apache 2.0

Responsible-gambling compliance engine. Consulted before every wager to answer
one question: is this participant currently eligible to place this bet?

- Registration is gated by an Ed25519 attestation from an off-line age verifier
- Daily and monthly spend limits with calendar-aligned (UTC) windows
- Monotonic self-exclusion with cooldown periods
- A read-only eligibility decision that mirrors the spend ledger's checks

Usage:
    from safestake import ComplianceEngine, EligibilityStatus

    engine = ComplianceEngine(verifier_public_key)
    engine.register(account, signature, now)
    engine.set_limits(account, 1_000_000_000, 5_000_000_000, now)

    status = engine.check_eligibility(account, 300_000_000, now)
    if status == EligibilityStatus.ELIGIBLE:
        engine.record_transaction(account, 300_000_000, "platform_1", now)
"""

__version__ = "1.0.0"
__license__ = "Apache-2.0"

# Identity
from .identity import (
    IDENTITY_KEY_LENGTH,
    account_bytes,
    identity_key,
    identity_hex,
)

# Errors
from .errors import ErrorKind, ComplianceError

# Time windows
from .windows import (
    MS_PER_DAY,
    MAX_TIMESTAMP,
    SpendWindows,
    roll_windows,
    now_timestamp,
    to_timestamp,
    from_timestamp,
)

# Records and storage
from .records import ComplianceRecord, ExclusionEntry, MAX_AMOUNT
from .store import ComplianceStore, InMemoryComplianceStore

# Signing
from .signing import (
    SignatureVerifier,
    AttestationSigner,
    KeyPair,
    generate_signing_key,
)

# Components
from .registration import Registration, ReregistrationPolicy
from .limits import LimitManager
from .exclusion import SelfExclusion
from .ledger import SpendLedger, SpendReceipt
from .eligibility import (
    EligibilityEvaluator,
    EligibilityReport,
    EligibilityStatus,
)

# Engine
from .engine import ComplianceEngine


__all__ = [
    "__version__",

    # Identity
    "IDENTITY_KEY_LENGTH",
    "account_bytes",
    "identity_key",
    "identity_hex",

    # Errors
    "ErrorKind",
    "ComplianceError",

    # Time windows
    "MS_PER_DAY",
    "MAX_TIMESTAMP",
    "SpendWindows",
    "roll_windows",
    "now_timestamp",
    "to_timestamp",
    "from_timestamp",

    # Records and storage
    "ComplianceRecord",
    "ExclusionEntry",
    "MAX_AMOUNT",
    "ComplianceStore",
    "InMemoryComplianceStore",

    # Signing
    "SignatureVerifier",
    "AttestationSigner",
    "KeyPair",
    "generate_signing_key",

    # Components
    "Registration",
    "ReregistrationPolicy",
    "LimitManager",
    "SelfExclusion",
    "SpendLedger",
    "SpendReceipt",
    "EligibilityEvaluator",
    "EligibilityReport",
    "EligibilityStatus",

    # Engine
    "ComplianceEngine",
]
