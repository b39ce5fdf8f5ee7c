"""
Configuration module for the SafeStake service.

Centralizes all configuration with environment variable support and validation.
"""

import os
from pathlib import Path
from typing import Dict

# ============================================================
# Environment Configuration
# ============================================================

ENV = os.getenv("SAFESTAKE_ENV", "dev")  # dev|stage|prod

# Verifier backend public key (hex or base64). Required.
VERIFIER_PUBLIC_KEY = os.getenv("SAFESTAKE_VERIFIER_PUBLIC_KEY", "")

# Storage
DB_PATH = os.getenv("SAFESTAKE_DB_PATH", "data/safestake.db")

# reset|preserve
REREGISTRATION_POLICY = os.getenv("SAFESTAKE_REREGISTRATION", "reset").lower()

# Rate limit for mutating endpoints (requests per minute per caller)
MUTATIONS_RPM = int(os.getenv("SAFESTAKE_MUTATIONS_RPM", "120"))

# Logging
LOG_LEVEL = os.getenv("SAFESTAKE_LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("SAFESTAKE_LOG_JSON", "1").lower() in ("1", "true", "yes")


# ============================================================
# Validation
# ============================================================

def validate_config() -> Dict[str, bool]:
    """
    Validate the configuration.
    Returns dict of check name -> passed.
    """
    from safestake.signing import decode_key_material

    try:
        decode_key_material(VERIFIER_PUBLIC_KEY)
        key_ok = True
    except ValueError:
        key_ok = False

    return {
        "verifier_public_key": key_ok,
        "reregistration_policy": REREGISTRATION_POLICY in ("reset", "preserve"),
        "db_directory": Path(DB_PATH).parent.exists() or not is_production(),
        "log_level": LOG_LEVEL.upper() in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
    }


# ============================================================
# Feature Flags
# ============================================================

def is_production() -> bool:
    """Check if running in production mode."""
    return ENV == "prod"


def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("SAFESTAKE_DEBUG", "").lower() in ("1", "true", "yes")
