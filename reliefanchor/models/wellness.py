"""
reliefanchor/models/wellness.py

Per-profile wellness data kept on the device: mood logs, companion chat
history and journal entries. Timestamps are epoch milliseconds.
"""

from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

ChatRole = Literal["user", "model"]


class MoodLog(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: int
    score: int = Field(ge=1, le=5)
    note: Optional[str] = None


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    role: ChatRole
    text: str
    timestamp: int


class JournalEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    timestamp: int


class ChatTurn(BaseModel):
    """Result of one companion exchange."""
    model_config = ConfigDict(frozen=True)

    user_message: ChatMessage
    reply: ChatMessage
    delivered: bool
    messages_remaining: Optional[int] = None
