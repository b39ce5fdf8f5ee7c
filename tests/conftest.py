import os
import sys
import tempfile

import pytest

# Ensure the packages are importable without an install
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from safestake import AttestationSigner

# Test verifier key, deterministic so service tests can sign attestations
TEST_SIGNER = AttestationSigner.from_seed(b"\x01", key_id="test-verifier")

# Service configuration is read at import time
_DATA_DIR = tempfile.mkdtemp(prefix="safestake-tests-")
os.environ["SAFESTAKE_VERIFIER_PUBLIC_KEY"] = TEST_SIGNER.public_key.hex()
os.environ["SAFESTAKE_DB_PATH"] = os.path.join(_DATA_DIR, "safestake.db")
os.environ["SAFESTAKE_MUTATIONS_RPM"] = "10000"
os.environ["SAFESTAKE_LOG_JSON"] = "0"
os.environ["SAFESTAKE_LOG_LEVEL"] = "WARNING"

# Initialize app at module load time
from safestake_service import main as service

service._startup()


# Reset database and rate limiter before each test for isolation
@pytest.fixture(autouse=True)
def _reset_service():
    service.STORE.reset()
    service.limiter.reset()
    yield
