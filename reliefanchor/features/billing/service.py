"""
Payment confirmation and regional pricing.

The checkout itself is an opaque UI flow. This module only handles the
one-shot "payment confirmed" callback it produces, turning it into premium
fields on the active profile's record.
"""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Optional, Union

from reliefanchor.core.clock import Clock, iso_day
from reliefanchor.core.config import settings
from reliefanchor.core.errors import ValidationError
from reliefanchor.features.entitlements.service import EntitlementStore
from reliefanchor.models.entitlement import EntitlementRecord, PlanType, Region
from reliefanchor.models.session import SessionContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Pricing:
    currency: str
    amount: int  # minor units (paise, cents)
    label: str
    symbol: str


PRICING: Dict[Region, Pricing] = {
    Region.INDIA: Pricing(currency="INR", amount=49900, label="₹499", symbol="₹"),
    Region.GLOBAL: Pricing(currency="USD", amount=999, label="$9.99", symbol="$"),
}

PLAN_DURATION_DAYS = {
    PlanType.MONTHLY: 30,
    PlanType.YEARLY: 365,
}


def pricing_for_region(region: Union[Region, str]) -> Pricing:
    try:
        return PRICING[Region(region)]
    except ValueError:
        return PRICING[Region.GLOBAL]


def premium_until_for_plan(plan_type: Optional[PlanType], today: str) -> str:
    """Inclusive expiry for a purchase made today; no plan means lifetime."""
    if plan_type is None:
        return settings.LIFETIME_PREMIUM_UNTIL
    days = PLAN_DURATION_DAYS[PlanType(plan_type)]
    return iso_day(date.fromisoformat(today) + timedelta(days=days))


class BillingService:
    def __init__(self, entitlements: EntitlementStore, clock: Clock):
        self._entitlements = entitlements
        self._clock = clock

    def pricing(self, ctx: SessionContext) -> Pricing:
        return pricing_for_region(self._entitlements.get_record(ctx).region)

    def confirm_payment(
        self,
        ctx: SessionContext,
        payment_reference: str,
        plan_type: Optional[PlanType] = None,
    ) -> EntitlementRecord:
        """
        Apply a confirmed checkout to the active profile.

        Args:
            ctx: Active profile
            payment_reference: Opaque id from the payment widget
            plan_type: MONTHLY, YEARLY, or None for a one-time lifetime purchase

        Raises:
            ValidationError: Missing payment reference
        """
        if not payment_reference or not payment_reference.strip():
            raise ValidationError("Payment reference is required")

        premium_until = premium_until_for_plan(plan_type, self._clock.today())
        record = self._entitlements.update_record(
            ctx,
            {
                "is_premium": True,
                "premium_until": premium_until,
                "plan_type": plan_type,
                "payment_reference": payment_reference.strip(),
            },
        )
        logger.info(
            "[billing] payment confirmed",
            extra={"owner_id": ctx.owner_id, "event_type": "billing.confirmed"},
        )
        return record
