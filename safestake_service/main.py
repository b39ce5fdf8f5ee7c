import logging
from typing import Optional

from fastapi import FastAPI, Header, HTTPException, Query, Request

from safestake import ComplianceEngine, ComplianceError, ErrorKind, ReregistrationPolicy, now_timestamp
from safestake.identity import identity_hex, identity_key
from safestake.logging_config import audit_log, configure_logging, set_request_id
from safestake.records import MAX_AMOUNT

from .config import (
    DB_PATH,
    LOG_JSON,
    LOG_LEVEL,
    MUTATIONS_RPM,
    REREGISTRATION_POLICY,
    VERIFIER_PUBLIC_KEY,
    is_debug,
    validate_config,
)
from .db import SqliteComplianceStore
from .models import (
    ComplianceRecordView,
    RecordTransactionRequest,
    RegisterRequest,
    SelfExcludeRequest,
    SetLimitsRequest,
)
from .rate_limit import RateLimiter

logger = logging.getLogger(__name__)

app = FastAPI(title="SafeStake Registry")

# ErrorKind -> HTTP status
ERROR_STATUS = {
    ErrorKind.PARSE_PARAMS: 400,
    ErrorKind.INVALID_LIMITS: 400,
    ErrorKind.OVERFLOW: 400,
    ErrorKind.INVALID_SIGNATURE: 401,
    ErrorKind.USER_NOT_REGISTERED: 404,
    ErrorKind.AGE_NOT_VERIFIED: 403,
    ErrorKind.SELF_EXCLUDED: 403,
    ErrorKind.ON_COOLDOWN: 403,
    ErrorKind.DAILY_LIMIT_EXCEEDED: 403,
    ErrorKind.MONTHLY_LIMIT_EXCEEDED: 403,
}

limiter = RateLimiter(MUTATIONS_RPM)
STORE: Optional[SqliteComplianceStore] = None
ENGINE: Optional[ComplianceEngine] = None


@app.on_event("startup")
def _startup():
    global STORE, ENGINE
    configure_logging(level="DEBUG" if is_debug() else LOG_LEVEL, json_format=LOG_JSON)
    problems = [name for name, ok in validate_config().items() if not ok]
    if problems:
        logger.warning("Configuration checks failed: %s", ", ".join(problems))
    STORE = SqliteComplianceStore(DB_PATH)
    ENGINE = ComplianceEngine(
        VERIFIER_PUBLIC_KEY,
        store=STORE,
        reregistration=ReregistrationPolicy(REREGISTRATION_POLICY),
    )


@app.middleware("http")
async def _request_id(request: Request, call_next):
    rid = set_request_id(request.headers.get("X-Request-ID"))
    response = await call_next(request)
    response.headers["X-Request-ID"] = rid
    return response


def _reject(e: ComplianceError) -> HTTPException:
    # Policy rejections are already in the audit trail; malformed calls are not.
    if e.is_input_error():
        logger.info("Rejected malformed request: %s", e)
    return HTTPException(ERROR_STATUS.get(e.kind, 400), e.kind.value)


def _throttle(account: str) -> None:
    try:
        key = identity_hex(identity_key(account))
    except ComplianceError as e:
        raise _reject(e)
    if not limiter.allow(key):
        audit_log.security_event("rate_limit_exceeded", severity="low", identity=key)
        raise HTTPException(429, "RATE_LIMIT")


@app.get("/health")
def health():
    return {
        "status": "healthy",
        "service": "safestake-registry",
        "rate_limited_keys": limiter.tracked_keys(),
        **STORE.stats(),
    }


@app.get("/verifier_key")
def verifier_key():
    return {"public_key": ENGINE.verifier_key_hex, "algorithm": "Ed25519"}


@app.post("/register")
def register(req: RegisterRequest):
    _throttle(req.account)
    try:
        record = ENGINE.register(req.account, bytes.fromhex(req.signature_hex), now_timestamp())
    except ComplianceError as e:
        raise _reject(e)
    return {"status": "REGISTERED", "identity": identity_hex(record.identity)}


@app.post("/limits")
def set_limits(req: SetLimitsRequest, x_account: str = Header(...)):
    _throttle(x_account)
    try:
        record = ENGINE.set_limits(x_account, req.daily_limit, req.monthly_limit, now_timestamp())
    except ComplianceError as e:
        raise _reject(e)
    return {
        "status": "LIMITS_SET",
        "identity": identity_hex(record.identity),
        "daily_limit": record.daily_limit,
        "monthly_limit": record.monthly_limit,
    }


@app.post("/self_exclude")
def self_exclude(req: SelfExcludeRequest, x_account: str = Header(...)):
    _throttle(x_account)
    try:
        entry = ENGINE.self_exclude(x_account, req.duration_days, now_timestamp())
    except ComplianceError as e:
        raise _reject(e)
    return {"status": "EXCLUDED", **entry.to_dict()}


@app.post("/transactions")
def record_transaction(req: RecordTransactionRequest):
    _throttle(req.user_account)
    try:
        receipt = ENGINE.record_transaction(req.user_account, req.amount, req.platform_id, now_timestamp())
    except ComplianceError as e:
        raise _reject(e)
    return {"status": "RECORDED", **receipt.to_dict()}


@app.get("/eligibility")
def eligibility(account: str = Query(..., min_length=1), amount: int = Query(..., ge=0, le=MAX_AMOUNT)):
    try:
        report = ENGINE.eligibility_report(account, amount, now_timestamp())
    except ComplianceError as e:
        raise _reject(e)
    return report.to_dict()


@app.get("/records/{account}", response_model=ComplianceRecordView)
def get_record(account: str):
    try:
        record = ENGINE.get_record(account)
    except ComplianceError as e:
        raise _reject(e)
    if record is None:
        raise HTTPException(404, ErrorKind.USER_NOT_REGISTERED.value)
    return ComplianceRecordView(**record.to_dict(), self_excluded=ENGINE.is_excluded(account))
