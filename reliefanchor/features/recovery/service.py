"""
reliefanchor/features/recovery/service.py

Portable recovery tokens: move a paid entitlement to another device or
profile with no server round-trip.

Wire format: base64("<ownerId>|<premiumUntil>|<planType>|<tokenSignature>").
The token signature covers the claims under a RECOVERY label, so it can
never be confused with a record signature.
"""

import base64
import binascii
import logging
from typing import Optional

from reliefanchor.core.clock import Clock, is_iso_day
from reliefanchor.core.config import settings
from reliefanchor.core.logging import log_event
from reliefanchor.features.checksum.service import FIELD_DELIMITER, canonical_field, sign, signatures_match
from reliefanchor.features.entitlements.service import EntitlementStore
from reliefanchor.models.entitlement import EntitlementRecord, PlanType
from reliefanchor.models.recovery import RecoveryClaims, RedemptionResult, RejectionReason
from reliefanchor.models.session import SessionContext

TOKEN_LABEL = "RECOVERY"
TOKEN_FIELD_COUNT = 4

logger = logging.getLogger(__name__)


class TokenDecodeError(ValueError):
    def __init__(self, reason: RejectionReason, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message


def claims_signature(owner_id: str, premium_until: str, plan_type: Optional[PlanType], secret: str) -> str:
    return sign((TOKEN_LABEL, owner_id, premium_until, plan_type), secret)


def encode_token(claims: RecoveryClaims, secret: str) -> str:
    signature = claims_signature(claims.owner_id, claims.premium_until, claims.plan_type, secret)
    body = FIELD_DELIMITER.join(
        [claims.owner_id, claims.premium_until, canonical_field(claims.plan_type), signature]
    )
    return base64.b64encode(body.encode("utf-8")).decode("ascii")


def decode_claims(token_text: str, secret: str) -> RecoveryClaims:
    """
    Decode and verify a token. Does not check expiry.

    Raises:
        TokenDecodeError: Undecodable, wrong field count, bad signature or
                          impossible claim values
    """
    text = "".join((token_text or "").split())
    if not text:
        raise TokenDecodeError(RejectionReason.MALFORMED, "Invalid code format. Please check and try again.")
    try:
        body = base64.b64decode(text, validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        raise TokenDecodeError(RejectionReason.MALFORMED, "Invalid code format. Please check and try again.")

    parts = body.split(FIELD_DELIMITER)
    if len(parts) != TOKEN_FIELD_COUNT:
        raise TokenDecodeError(RejectionReason.MALFORMED_STRUCTURE, "Invalid code structure.")
    owner_id, premium_until, plan_raw, embedded = parts

    expected = claims_signature(owner_id, premium_until, plan_raw or None, secret)
    if not signatures_match(embedded, expected):
        raise TokenDecodeError(
            RejectionReason.INVALID_SIGNATURE,
            "This recovery code is not valid. Check for typos and try again.",
        )

    if not owner_id or not is_iso_day(premium_until):
        raise TokenDecodeError(RejectionReason.MALFORMED_STRUCTURE, "Invalid code structure.")
    try:
        plan_type = PlanType(plan_raw) if plan_raw else None
    except ValueError:
        raise TokenDecodeError(RejectionReason.MALFORMED_STRUCTURE, "Invalid code structure.")

    return RecoveryClaims(owner_id=owner_id, premium_until=premium_until, plan_type=plan_type)


class RecoveryService:
    def __init__(self, entitlements: EntitlementStore, clock: Clock, *, secret: Optional[str] = None):
        self._entitlements = entitlements
        self._clock = clock
        self._secret = secret if secret is not None else settings.SECURITY_SALT

    def mint_from_record(self, record: EntitlementRecord) -> Optional[str]:
        if not record.is_premium or not record.premium_until:
            return None
        claims = RecoveryClaims(
            owner_id=record.owner_id,
            premium_until=record.premium_until,
            plan_type=record.plan_type,
        )
        return encode_token(claims, self._secret)

    def mint(self, ctx: SessionContext) -> Optional[str]:
        """Token for the active profile's verified record; None unless premium."""
        return self.mint_from_record(self._entitlements.get_record(ctx))

    def redeem(self, ctx: SessionContext, token_text: str) -> RedemptionResult:
        """Verify a token and copy its premium claims onto the active profile."""
        try:
            claims = decode_claims(token_text, self._secret)
        except TokenDecodeError as exc:
            logger.warning(
                "[recovery] token rejected",
                extra={"owner_id": ctx.owner_id, "event_type": "recovery.rejected", "reason": exc.reason.value},
            )
            return RedemptionResult(ok=False, message=exc.message, reason=exc.reason)

        today = self._clock.today()
        if claims.premium_until < today:
            logger.warning(
                "[recovery] token expired",
                extra={"owner_id": ctx.owner_id, "event_type": "recovery.rejected", "reason": RejectionReason.EXPIRED.value},
            )
            return RedemptionResult(
                ok=False,
                message=f"This subscription expired on {claims.premium_until}.",
                reason=RejectionReason.EXPIRED,
                claims=claims,
            )

        cross_profile = claims.owner_id != ctx.owner_id
        if cross_profile:
            # No central authority to dispute a transfer, so it is allowed
            log_event(
                "info",
                "[recovery] cross-profile transfer",
                owner_id=ctx.owner_id,
                event_type="recovery.cross_profile",
                extra={"token_owner": claims.owner_id},
                logger=logger,
            )

        record = self._entitlements.update_record(
            ctx,
            {
                "is_premium": True,
                "premium_until": claims.premium_until,
                "plan_type": claims.plan_type,
            },
        )
        return RedemptionResult(
            ok=True,
            message=f"Premium restored. Valid until {claims.premium_until}.",
            record=record,
            claims=claims,
            cross_profile=cross_profile,
        )
