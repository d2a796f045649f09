"""
reliefanchor/models/entitlement.py

Signed per-profile entitlement record.

One record exists per profile namespace. It carries premium status, expiry,
plan, the payment reference and the free-tier usage counter. The signature
binds the security-relevant subset together so a direct edit of stored bytes
is detected on the next read.
"""

from enum import Enum
from typing import Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field


class Region(str, Enum):
    """Market segment; drives currency, pricing and helpline selection."""
    GLOBAL = "GLOBAL"
    INDIA = "INDIA"


class PlanType(str, Enum):
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class RepairAction(str, Enum):
    """Self-healing steps applied while loading a record."""
    CREATED = "CREATED"
    RECREATED_CORRUPT = "RECREATED_CORRUPT"
    TAMPER_DOWNGRADE = "TAMPER_DOWNGRADE"
    EXPIRED_DOWNGRADE = "EXPIRED_DOWNGRADE"
    DAILY_RESET = "DAILY_RESET"


# Fields a caller may change through update_record (by python or wire name)
UPDATABLE_FIELDS = (
    "region",
    "is_premium",
    "premium_until",
    "plan_type",
    "payment_reference",
    "message_count",
    "last_counted_date",
)


class EntitlementRecord(BaseModel):
    """
    Stored wire shape (camelCase):

        {ownerId, region, isPremium, premiumUntil, planType,
         paymentReference?, messageCount, lastCountedDate, signature}
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, use_enum_values=False)

    owner_id: str = Field(alias="ownerId")
    region: Region = Region.GLOBAL
    is_premium: bool = Field(default=False, alias="isPremium")
    premium_until: Optional[str] = Field(default=None, alias="premiumUntil")
    plan_type: Optional[PlanType] = Field(default=None, alias="planType")
    payment_reference: Optional[str] = Field(default=None, alias="paymentReference")
    message_count: int = Field(default=0, ge=0, alias="messageCount")
    last_counted_date: str = Field(alias="lastCountedDate")
    signature: str = ""

    def signed_fields(self) -> Tuple[object, ...]:
        """Security-relevant tuple, in signing order."""
        return (
            self.owner_id,
            self.is_premium,
            self.premium_until,
            self.region,
            self.payment_reference,
            self.plan_type,
        )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=False)


class RecordLoad(BaseModel):
    """A verified record plus the repairs applied to produce it."""
    model_config = ConfigDict(frozen=True)

    record: EntitlementRecord
    repairs: Tuple[RepairAction, ...] = ()

    @property
    def repaired(self) -> bool:
        return any(
            action in (RepairAction.TAMPER_DOWNGRADE, RepairAction.EXPIRED_DOWNGRADE)
            for action in self.repairs
        )
