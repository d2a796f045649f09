"""
reliefanchor/features/sessions/service.py

Which profile is active on this device.

The pointer is persisted in device storage so it survives an app restart.
Core operations never read it directly; they take the SessionContext that
current() or login() hands out.
"""

import logging
from typing import Optional

from reliefanchor.core.errors import NoActiveSessionError, ValidationError
from reliefanchor.features.entitlements.service import EntitlementStore
from reliefanchor.features.profiles.service import derive_keys, normalize_owner_id
from reliefanchor.features.storage.service import KeyValueStore
from reliefanchor.models.session import SessionContext

SESSION_KEY = "relief_anchor_session"

logger = logging.getLogger(__name__)


def context_for(owner_id: str) -> SessionContext:
    """Build a context for an owner id without touching the session pointer."""
    normalized = normalize_owner_id(owner_id)
    return SessionContext(owner_id=normalized, keys=derive_keys(normalized))


class SessionManager:
    def __init__(self, storage: KeyValueStore, entitlements: EntitlementStore):
        self._storage = storage
        self._entitlements = entitlements

    def login(self, owner_id: str) -> SessionContext:
        """Activate a profile and initialize (or self-heal) its record."""
        if not owner_id or not owner_id.strip():
            raise ValidationError("Owner id is required")
        ctx = context_for(owner_id)
        self._storage.set(SESSION_KEY, ctx.owner_id)
        self._entitlements.get_record(ctx)
        logger.info("[sessions] login", extra={"owner_id": ctx.owner_id, "event_type": "session.login"})
        return ctx

    def logout(self) -> None:
        owner = self.active_owner_id()
        self._storage.remove(SESSION_KEY)
        if owner:
            logger.info("[sessions] logout", extra={"owner_id": owner, "event_type": "session.logout"})

    def active_owner_id(self) -> Optional[str]:
        stored = self._storage.get(SESSION_KEY)
        if stored is None or not stored.strip():
            return None
        return stored

    def is_active(self) -> bool:
        return self.active_owner_id() is not None

    def current(self) -> SessionContext:
        """
        Context for the logged-in profile.

        Raises:
            NoActiveSessionError: Nobody is logged in
        """
        owner = self.active_owner_id()
        if owner is None:
            raise NoActiveSessionError("No active profile; log in first")
        return context_for(owner)
