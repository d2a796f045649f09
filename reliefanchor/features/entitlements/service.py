"""
reliefanchor/features/entitlements/service.py

Signed entitlement record store.

Handles:
- Lazy creation of one record per profile namespace
- Tamper detection (signature mismatch -> downgrade, never upgrade)
- Premium expiry and daily free-tier counter rollover
- Read-verify-merge-sign-write updates
- Structured logs for every self-healing step

Check order on every read is fixed: signature first, then expiry, then the
daily counter. update_record always runs a full read before merging, so a
forged premium flag can never ride along with a legitimate update.
"""

import json
import logging
import threading
import weakref
from typing import Any, Callable, Dict, List, Mapping, Optional

import pydantic

from reliefanchor.core.clock import Clock, is_iso_day
from reliefanchor.core.config import settings
from reliefanchor.core.errors import ValidationError
from reliefanchor.core.logging import log_event
from reliefanchor.features.checksum.service import sign, signatures_match
from reliefanchor.features.profiles.service import namespace_suffix
from reliefanchor.features.storage.service import KeyValueStore
from reliefanchor.models.entitlement import (
    UPDATABLE_FIELDS,
    EntitlementRecord,
    RecordLoad,
    Region,
    RepairAction,
)
from reliefanchor.models.session import SessionContext


logger = logging.getLogger(__name__)

RepairListener = Callable[[str, RecordLoad], None]

# Fields cleared on downgrade (tamper or expiry)
_PREMIUM_CLEARED = {"is_premium": False, "premium_until": None, "plan_type": None}

# Wire name -> field name for partial updates
_ALIASES = {
    "isPremium": "is_premium",
    "premiumUntil": "premium_until",
    "planType": "plan_type",
    "paymentReference": "payment_reference",
    "messageCount": "message_count",
    "lastCountedDate": "last_counted_date",
}
_IGNORED_UPDATE_KEYS = {"signature", "owner_id", "ownerId"}


def premium_window_open(premium_until: Optional[str], today: str) -> bool:
    """Inclusive expiry; plain string order is valid for fixed-width YYYY-MM-DD."""
    if not is_iso_day(premium_until):
        return False
    return premium_until >= today


class EntitlementStore:
    """Per-profile signed record persistence over a KeyValueStore."""

    def __init__(
        self,
        storage: KeyValueStore,
        clock: Clock,
        *,
        secret: Optional[str] = None,
        max_free_messages: Optional[int] = None,
    ):
        self._storage = storage
        self._clock = clock
        self._secret = secret if secret is not None else settings.SECURITY_SALT
        self._max_free_messages = (
            max_free_messages if max_free_messages is not None else settings.MAX_FREE_MESSAGES
        )
        self._locks: "weakref.WeakValueDictionary[str, threading.RLock]" = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()
        self._listeners: List[RepairListener] = []

    @property
    def max_free_messages(self) -> int:
        return self._max_free_messages

    def add_repair_listener(self, listener: RepairListener) -> None:
        self._listeners.append(listener)

    # Signing ---------------------------------------------------------
    def signature_for(self, record: EntitlementRecord) -> str:
        return sign(record.signed_fields(), self._secret)

    def _signed(self, record: EntitlementRecord) -> EntitlementRecord:
        return record.model_copy(update={"signature": self.signature_for(record)})

    def verify(self, record: EntitlementRecord) -> bool:
        return signatures_match(record.signature, self.signature_for(record))

    # Reads -----------------------------------------------------------
    def load_record(self, ctx: SessionContext) -> RecordLoad:
        """Load, verify and self-heal the profile's record."""
        key = ctx.keys.record
        today = self._clock.today()
        with self._lock_for(key):
            raw = self._storage.get(key)
            if raw is None:
                record = self._fresh(ctx.owner_id, today)
                self._persist(key, record)
                return self._finish(ctx, RecordLoad(record=record, repairs=(RepairAction.CREATED,)))

            record = self._parse(raw)
            if record is None:
                logger.warning(
                    "[entitlements] unparsable record, recreating defaults",
                    extra={"owner_id": ctx.owner_id, "event_type": "record.corrupt"},
                )
                record = self._fresh(ctx.owner_id, today)
                self._persist(key, record)
                return self._finish(ctx, RecordLoad(record=record, repairs=(RepairAction.RECREATED_CORRUPT,)))

            if not self.verify(record) or not self._belongs_to(record, ctx):
                logger.warning(
                    "[entitlements] tamper detected, reverting to safe state",
                    extra={"owner_id": ctx.owner_id, "event_type": "record.tamper"},
                )
                update = dict(_PREMIUM_CLEARED, payment_reference=None, owner_id=ctx.owner_id)
                sanitized = self._signed(record.model_copy(update=update))
                self._persist(key, sanitized)
                return self._finish(ctx, RecordLoad(record=sanitized, repairs=(RepairAction.TAMPER_DOWNGRADE,)))

            repairs = []
            if record.is_premium and not premium_window_open(record.premium_until, today):
                logger.info(
                    "[entitlements] premium expired",
                    extra={"owner_id": ctx.owner_id, "event_type": "record.expired"},
                )
                record = record.model_copy(update=_PREMIUM_CLEARED)
                repairs.append(RepairAction.EXPIRED_DOWNGRADE)

            if record.last_counted_date != today:
                record = record.model_copy(update={"message_count": 0, "last_counted_date": today})
                repairs.append(RepairAction.DAILY_RESET)

            if repairs:
                record = self._signed(record)
                self._persist(key, record)
            return self._finish(ctx, RecordLoad(record=record, repairs=tuple(repairs)))

    def get_record(self, ctx: SessionContext) -> EntitlementRecord:
        return self.load_record(ctx).record

    # Writes ----------------------------------------------------------
    def update_record(self, ctx: SessionContext, partial: Mapping[str, Any]) -> EntitlementRecord:
        """
        Merge partial fields over the verified current record and re-sign.

        Args:
            ctx: Active profile
            partial: Field changes, by python or wire (camelCase) name.
                     Any signature or ownerId supplied is ignored.

        Returns:
            The merged, signed and persisted record

        Raises:
            ValidationError: Unknown field, invalid value, or premium without
                             a premium_until on or after today
        """
        changes = self._normalize_partial(partial)
        with self._lock_for(ctx.keys.record):
            current = self.get_record(ctx)
            data = current.model_dump()
            data.update(changes)
            data["signature"] = ""
            try:
                merged = EntitlementRecord.model_validate(data)
            except pydantic.ValidationError as exc:
                raise ValidationError(f"Invalid entitlement update: {exc.errors()[0].get('msg')}")
            if merged.is_premium and not premium_window_open(merged.premium_until, self._clock.today()):
                raise ValidationError("Premium requires a premium_until date on or after today")
            merged = self._signed(merged)
            self._persist(ctx.keys.record, merged)
            return merged

    def cancel_premium(self, ctx: SessionContext) -> EntitlementRecord:
        """Drop premium access; the payment reference stays for support."""
        logger.info(
            "[entitlements] premium cancelled by user",
            extra={"owner_id": ctx.owner_id, "event_type": "premium.cancelled"},
        )
        return self.update_record(ctx, _PREMIUM_CLEARED)

    # Free tier -------------------------------------------------------
    def messages_remaining(self, ctx: SessionContext) -> Optional[int]:
        """None means unlimited (premium)."""
        record = self.get_record(ctx)
        if record.is_premium:
            return None
        return max(0, self._max_free_messages - record.message_count)

    def can_send_message(self, ctx: SessionContext) -> bool:
        remaining = self.messages_remaining(ctx)
        return remaining is None or remaining > 0

    def record_message(self, ctx: SessionContext) -> EntitlementRecord:
        with self._lock_for(ctx.keys.record):
            current = self.get_record(ctx)
            return self.update_record(ctx, {"message_count": current.message_count + 1})

    def try_consume_message(self, ctx: SessionContext) -> Optional[EntitlementRecord]:
        """Check the allowance and count one message as a single step; None when exhausted."""
        with self._lock_for(ctx.keys.record):
            if not self.can_send_message(ctx):
                return None
            return self.record_message(ctx)

    # Internal helpers ------------------------------------------------
    def _lock_for(self, key: str) -> threading.RLock:
        # Entries drop out once no caller holds the lock
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    def _fresh(self, owner_id: str, today: str) -> EntitlementRecord:
        record = EntitlementRecord(
            owner_id=owner_id,
            region=Region.GLOBAL,
            is_premium=False,
            message_count=0,
            last_counted_date=today,
        )
        return self._signed(record)

    @staticmethod
    def _parse(raw: str) -> Optional[EntitlementRecord]:
        try:
            return EntitlementRecord.model_validate(json.loads(raw))
        except (ValueError, TypeError):
            # json and pydantic errors are both ValueErrors
            return None

    @staticmethod
    def _belongs_to(record: EntitlementRecord, ctx: SessionContext) -> bool:
        try:
            return namespace_suffix(record.owner_id) == namespace_suffix(ctx.owner_id)
        except ValidationError:
            return False

    def _persist(self, key: str, record: EntitlementRecord) -> None:
        self._storage.set(key, json.dumps(record.to_wire()))

    def _finish(self, ctx: SessionContext, load: RecordLoad) -> RecordLoad:
        if load.repairs:
            log_event(
                "info",
                "[entitlements] record repaired",
                owner_id=ctx.owner_id,
                event_type="record.repaired",
                extra={"repairs": [action.value for action in load.repairs]},
                logger=logger,
            )
            for listener in self._listeners:
                listener(ctx.owner_id, load)
        return load

    @staticmethod
    def _normalize_partial(partial: Mapping[str, Any]) -> Dict[str, Any]:
        changes: Dict[str, Any] = {}
        for raw_key, value in partial.items():
            if raw_key in _IGNORED_UPDATE_KEYS:
                continue
            key = _ALIASES.get(raw_key, raw_key)
            if key not in UPDATABLE_FIELDS:
                raise ValidationError(f"Unknown entitlement field: {raw_key}")
            changes[key] = value

        for date_field in ("premium_until", "last_counted_date"):
            if date_field in changes and changes[date_field] is not None and not is_iso_day(changes[date_field]):
                raise ValidationError(f"{date_field} must be a YYYY-MM-DD date")
        if "last_counted_date" in changes and changes["last_counted_date"] is None:
            raise ValidationError("last_counted_date cannot be cleared")
        return changes
