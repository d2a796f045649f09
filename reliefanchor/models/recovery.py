"""
reliefanchor/models/recovery.py

Recovery token claims and redemption outcome.

Tokens are never stored; they are minted from the current record on demand
and consumed on redemption.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict

from reliefanchor.models.entitlement import EntitlementRecord, PlanType


class RejectionReason(str, Enum):
    MALFORMED = "MALFORMED"
    MALFORMED_STRUCTURE = "MALFORMED_STRUCTURE"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    EXPIRED = "EXPIRED"


class RecoveryClaims(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner_id: str
    premium_until: str
    plan_type: Optional[PlanType] = None


class RedemptionResult(BaseModel):
    """Outcome of redeeming a recovery token. Rejections never raise."""
    model_config = ConfigDict(frozen=True)

    ok: bool
    message: str
    reason: Optional[RejectionReason] = None
    record: Optional[EntitlementRecord] = None
    claims: Optional[RecoveryClaims] = None
    cross_profile: bool = False
