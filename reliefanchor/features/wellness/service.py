"""
reliefanchor/features/wellness/service.py

Per-profile wellness lists kept on the device.

- Mood logs (append, oldest first)
- Companion chat history (overwritten wholesale)
- Journal entries (prepend, newest first)

Unreadable blobs read as empty lists. The entitlement record is never
touched here, so clearing private data keeps paid access intact.
"""

import json
import logging
from typing import List, Optional, Sequence, Type, TypeVar
from uuid import uuid4

from pydantic import BaseModel

from reliefanchor.core.clock import Clock
from reliefanchor.core.errors import ValidationError
from reliefanchor.features.storage.service import KeyValueStore
from reliefanchor.models.session import SessionContext
from reliefanchor.models.wellness import ChatMessage, JournalEntry, MoodLog

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class WellnessService:
    def __init__(self, storage: KeyValueStore, clock: Clock):
        self._storage = storage
        self._clock = clock

    # Moods -----------------------------------------------------------
    def get_moods(self, ctx: SessionContext) -> List[MoodLog]:
        return self._read_list(ctx, ctx.keys.moods, MoodLog)

    def add_mood(self, ctx: SessionContext, score: int, note: Optional[str] = None) -> MoodLog:
        if isinstance(score, bool) or not isinstance(score, int) or not 1 <= score <= 5:
            raise ValidationError("Mood score must be between 1 and 5")
        mood = MoodLog(id=str(uuid4()), timestamp=self._clock.now_ms(), score=score, note=note)
        moods = self.get_moods(ctx)
        moods.append(mood)
        self._write_list(ctx.keys.moods, moods)
        return mood

    # Chat history ----------------------------------------------------
    def get_chat_history(self, ctx: SessionContext) -> List[ChatMessage]:
        return self._read_list(ctx, ctx.keys.chat, ChatMessage)

    def save_chat_history(self, ctx: SessionContext, messages: Sequence[ChatMessage]) -> None:
        self._write_list(ctx.keys.chat, list(messages))

    def append_chat_message(self, ctx: SessionContext, message: ChatMessage) -> List[ChatMessage]:
        history = self.get_chat_history(ctx)
        history.append(message)
        self.save_chat_history(ctx, history)
        return history

    def clear_chat(self, ctx: SessionContext) -> None:
        self._storage.remove(ctx.keys.chat)

    # Journal ---------------------------------------------------------
    def get_journal_entries(self, ctx: SessionContext) -> List[JournalEntry]:
        return self._read_list(ctx, ctx.keys.journal, JournalEntry)

    def add_journal_entry(self, ctx: SessionContext, text: str) -> JournalEntry:
        if not text or not text.strip():
            raise ValidationError("Journal entry cannot be empty")
        entry = JournalEntry(id=str(uuid4()), text=text, timestamp=self._clock.now_ms())
        entries = self.get_journal_entries(ctx)
        self._write_list(ctx.keys.journal, [entry] + entries)
        return entry

    # Wipes -----------------------------------------------------------
    def clear_private_data(self, ctx: SessionContext) -> None:
        """Remove chats, moods and journal; the entitlement record stays."""
        for key in (ctx.keys.chat, ctx.keys.moods, ctx.keys.journal):
            self._storage.remove(key)
        logger.info(
            "[wellness] private data cleared",
            extra={"owner_id": ctx.owner_id, "event_type": "wellness.cleared"},
        )

    def wipe_device(self) -> None:
        """Remove every profile's data and the session pointer."""
        self._storage.clear()
        logger.warning("[wellness] device storage wiped", extra={"event_type": "device.wiped"})

    # Internal helpers ------------------------------------------------
    def _read_list(self, ctx: SessionContext, key: str, model: Type[T]) -> List[T]:
        raw = self._storage.get(key)
        if raw is None:
            return []
        try:
            items = json.loads(raw)
            if not isinstance(items, list):
                raise ValueError("expected a list")
            return [model.model_validate(item) for item in items]
        except (ValueError, TypeError):
            logger.warning(
                "[wellness] unreadable list, treating as empty",
                extra={"owner_id": ctx.owner_id, "event_type": "wellness.corrupt", "storage_key": key},
            )
            return []

    def _write_list(self, key: str, items: List[BaseModel]) -> None:
        self._storage.set(key, json.dumps([item.model_dump(mode="json") for item in items]))
