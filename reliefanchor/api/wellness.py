from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from reliefanchor.api.deps import AppServices, get_services, get_session_context
from reliefanchor.models.session import SessionContext

router = APIRouter()


class MoodCreate(BaseModel):
    score: int = Field(..., ge=1, le=5)
    note: Optional[str] = None


class JournalCreate(BaseModel):
    text: str = Field(..., min_length=1)


class ChatMessageCreate(BaseModel):
    text: str = Field(..., min_length=1)


@router.get("/v1/moods")
def list_moods(
    services: AppServices = Depends(get_services),
    ctx: SessionContext = Depends(get_session_context),
):
    return {"moods": [m.model_dump() for m in services.wellness.get_moods(ctx)]}


@router.post("/v1/moods")
def add_mood(
    body: MoodCreate,
    services: AppServices = Depends(get_services),
    ctx: SessionContext = Depends(get_session_context),
):
    return services.wellness.add_mood(ctx, body.score, body.note).model_dump()


@router.get("/v1/journal")
def list_journal(
    services: AppServices = Depends(get_services),
    ctx: SessionContext = Depends(get_session_context),
):
    return {"entries": [e.model_dump() for e in services.wellness.get_journal_entries(ctx)]}


@router.post("/v1/journal")
def add_journal_entry(
    body: JournalCreate,
    services: AppServices = Depends(get_services),
    ctx: SessionContext = Depends(get_session_context),
):
    return services.wellness.add_journal_entry(ctx, body.text).model_dump()


@router.get("/v1/chat/history")
def get_chat_history(
    services: AppServices = Depends(get_services),
    ctx: SessionContext = Depends(get_session_context),
):
    return {"messages": [m.model_dump() for m in services.wellness.get_chat_history(ctx)]}


@router.delete("/v1/chat/history")
def clear_chat_history(
    services: AppServices = Depends(get_services),
    ctx: SessionContext = Depends(get_session_context),
):
    services.wellness.clear_chat(ctx)
    return {"ack": True}


@router.post("/v1/chat/messages")
def send_chat_message(
    body: ChatMessageCreate,
    services: AppServices = Depends(get_services),
    ctx: SessionContext = Depends(get_session_context),
):
    """Send one message to the companion; 403 once the free allowance is spent."""
    turn = services.chat.send_message(ctx, body.text)
    return turn.model_dump()


@router.post("/v1/data/clear")
def clear_private_data(
    services: AppServices = Depends(get_services),
    ctx: SessionContext = Depends(get_session_context),
):
    """Erase chats, moods and journal. Paid access is kept."""
    services.wellness.clear_private_data(ctx)
    return {"ack": True}
