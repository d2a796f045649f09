"""
Service wiring shared by the HTTP routers.

One AppServices bundle is built per app and kept on app.state, so tests can
build an app over in-memory storage and a fixed clock.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request

from reliefanchor.core.clock import Clock, SystemClock
from reliefanchor.features.billing.service import BillingService
from reliefanchor.features.chat.provider import ChatProvider, default_chat_provider
from reliefanchor.features.chat.service import ChatService
from reliefanchor.features.entitlements.service import EntitlementStore
from reliefanchor.features.recovery.service import RecoveryService
from reliefanchor.features.sessions.service import SessionManager
from reliefanchor.features.storage.service import KeyValueStore, SqlKeyValueStore
from reliefanchor.features.wellness.service import WellnessService
from reliefanchor.models.session import SessionContext


@dataclass
class AppServices:
    storage: KeyValueStore
    clock: Clock
    entitlements: EntitlementStore
    sessions: SessionManager
    recovery: RecoveryService
    billing: BillingService
    wellness: WellnessService
    chat: ChatService


def build_services(
    storage: Optional[KeyValueStore] = None,
    clock: Optional[Clock] = None,
    chat_provider: Optional[ChatProvider] = None,
) -> AppServices:
    storage = storage if storage is not None else SqlKeyValueStore()
    clock = clock or SystemClock()
    entitlements = EntitlementStore(storage, clock)
    wellness = WellnessService(storage, clock)
    return AppServices(
        storage=storage,
        clock=clock,
        entitlements=entitlements,
        sessions=SessionManager(storage, entitlements),
        recovery=RecoveryService(entitlements, clock),
        billing=BillingService(entitlements, clock),
        wellness=wellness,
        chat=ChatService(entitlements, wellness, chat_provider or default_chat_provider(), clock),
    )


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def get_session_context(services: AppServices = Depends(get_services)) -> SessionContext:
    """Active profile; raises NoActiveSessionError (401) when logged out."""
    return services.sessions.current()
