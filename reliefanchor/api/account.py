"""
Session, account, billing and recovery endpoints.

Everything here reads the entitlement record through the store, so each
response reflects a verified (and, if needed, repaired) record. Signatures
are never returned and never accepted.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from reliefanchor.api.deps import AppServices, get_services, get_session_context
from reliefanchor.core.errors import RecoveryRejectedError
from reliefanchor.models.entitlement import EntitlementRecord, PlanType, Region
from reliefanchor.models.session import SessionContext

router = APIRouter()


class LoginRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    owner_id: str = Field(..., min_length=1, alias="ownerId")


class AccountUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    region: Region


class PaymentConfirmation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    payment_reference: str = Field(..., min_length=1, alias="paymentReference")
    plan_type: Optional[PlanType] = Field(default=None, alias="planType")


class RestoreRequest(BaseModel):
    token: str


def account_view(record: EntitlementRecord, services: AppServices, ctx: SessionContext) -> dict:
    view = record.to_wire()
    view.pop("signature", None)
    view["messagesRemaining"] = services.entitlements.messages_remaining(ctx)
    return view


@router.post("/v1/session/login")
def login(body: LoginRequest, services: AppServices = Depends(get_services)):
    ctx = services.sessions.login(body.owner_id)
    return {"ownerId": ctx.owner_id, "active": True}


@router.post("/v1/session/logout")
def logout(services: AppServices = Depends(get_services)):
    services.sessions.logout()
    return {"active": False}


@router.get("/v1/session")
def get_session(services: AppServices = Depends(get_services)):
    owner_id = services.sessions.active_owner_id()
    return {"ownerId": owner_id, "active": owner_id is not None}


@router.get("/v1/account")
def get_account(
    services: AppServices = Depends(get_services),
    ctx: SessionContext = Depends(get_session_context),
):
    load = services.entitlements.load_record(ctx)
    view = account_view(load.record, services, ctx)
    view["repairs"] = [action.value for action in load.repairs]
    return view


@router.patch("/v1/account")
def update_account(
    body: AccountUpdate,
    services: AppServices = Depends(get_services),
    ctx: SessionContext = Depends(get_session_context),
):
    record = services.entitlements.update_record(ctx, {"region": body.region})
    return account_view(record, services, ctx)


@router.post("/v1/account/cancel-premium")
def cancel_premium(
    services: AppServices = Depends(get_services),
    ctx: SessionContext = Depends(get_session_context),
):
    record = services.entitlements.cancel_premium(ctx)
    return account_view(record, services, ctx)


@router.get("/v1/account/recovery-token")
def get_recovery_token(
    services: AppServices = Depends(get_services),
    ctx: SessionContext = Depends(get_session_context),
):
    return {"token": services.recovery.mint(ctx)}


@router.post("/v1/account/restore")
def restore_premium(
    body: RestoreRequest,
    services: AppServices = Depends(get_services),
    ctx: SessionContext = Depends(get_session_context),
):
    result = services.recovery.redeem(ctx, body.token)
    if not result.ok:
        raise RecoveryRejectedError(result.message, reason=result.reason.value)
    return {
        "message": result.message,
        "crossProfile": result.cross_profile,
        "account": account_view(result.record, services, ctx),
    }


@router.get("/v1/billing/pricing")
def get_pricing(
    services: AppServices = Depends(get_services),
    ctx: SessionContext = Depends(get_session_context),
):
    pricing = services.billing.pricing(ctx)
    return {
        "currency": pricing.currency,
        "amount": pricing.amount,
        "label": pricing.label,
        "symbol": pricing.symbol,
    }


@router.post("/v1/billing/confirm")
def confirm_payment(
    body: PaymentConfirmation,
    services: AppServices = Depends(get_services),
    ctx: SessionContext = Depends(get_session_context),
):
    record = services.billing.confirm_payment(ctx, body.payment_reference, body.plan_type)
    return account_view(record, services, ctx)
