from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from safestake.records import MAX_AMOUNT
from safestake.signing import SIGNATURE_LENGTH


class RegisterRequest(BaseModel):
    account: str = Field(min_length=1)
    signature_hex: str

    @field_validator("signature_hex")
    @classmethod
    def _hex_signature(cls, v: str) -> str:
        v = v.strip().lower()
        if v.startswith("0x"):
            v = v[2:]
        if len(v) != SIGNATURE_LENGTH * 2:
            raise ValueError(f"signature must be {SIGNATURE_LENGTH * 2} hex characters")
        bytes.fromhex(v)
        return v


class SetLimitsRequest(BaseModel):
    daily_limit: int = Field(ge=0, le=MAX_AMOUNT)
    monthly_limit: int = Field(ge=0, le=MAX_AMOUNT)


class SelfExcludeRequest(BaseModel):
    duration_days: int = Field(ge=0)


class RecordTransactionRequest(BaseModel):
    user_account: str = Field(min_length=1)
    amount: int = Field(ge=0, le=MAX_AMOUNT)
    platform_id: str = Field(min_length=1, max_length=256)


class ComplianceRecordView(BaseModel):
    identity: str
    daily_limit: int
    monthly_limit: int
    daily_spent: int
    monthly_spent: int
    last_reset_day: int
    last_reset_month: int
    cooldown_until: Optional[int] = None
    platforms_used: List[str] = Field(default_factory=list)
    age_verified: bool
    self_excluded: bool = False
