"""Companion chat with free-tier gating.

The model is reached through a ChatProvider. Each accepted user message
counts against the daily free allowance before the provider is called.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Union
from uuid import uuid4

from reliefanchor.core.clock import Clock
from reliefanchor.core.errors import QuotaExceededError, ValidationError
from reliefanchor.features.chat.provider import ChatProvider, ChatProviderError
from reliefanchor.features.entitlements.service import EntitlementStore
from reliefanchor.features.wellness.service import WellnessService
from reliefanchor.models.entitlement import Region
from reliefanchor.models.session import SessionContext
from reliefanchor.models.wellness import ChatMessage, ChatTurn

logger = logging.getLogger(__name__)

COMPANION_NAME = "Anya"
EMPTY_REPLY = "I'm listening..."
FALLBACK_REPLY = "I'm having trouble connecting right now. Please check your internet connection."


@dataclass(frozen=True)
class Helpline:
    name: str
    number: str


HELPLINES: Dict[Region, Helpline] = {
    Region.INDIA: Helpline(name="Kiran (Mental Health Rehab)", number="1800-599-0019"),
    Region.GLOBAL: Helpline(name="Universal Emergency", number="911 / 112"),
}


def helpline_for_region(region: Union[Region, str]) -> Helpline:
    try:
        return HELPLINES[Region(region)]
    except ValueError:
        return HELPLINES[Region.GLOBAL]


def build_system_instruction(region: Union[Region, str]) -> str:
    helpline = helpline_for_region(region)
    return (
        f"You are {COMPANION_NAME}, a supportive, empathetic mental health companion for the ReliefAnchor app.\n"
        "Your goal is to provide a safe space for users to express themselves.\n"
        "\n"
        "Guidelines:\n"
        "1. Be concise, warm, and non-judgmental.\n"
        "2. Do NOT diagnose or offer medical advice.\n"
        "3. Use 4-5 sentences max per response.\n"
        "4. If the user mentions self-harm, suicide, or severe distress, immediately provide this helpline: "
        f"{helpline.name} at {helpline.number} and urge them to seek professional help.\n"
        "5. Speak in a calm, soothing tone."
    )


class ChatService:
    def __init__(
        self,
        entitlements: EntitlementStore,
        wellness: WellnessService,
        provider: ChatProvider,
        clock: Clock,
    ):
        self._entitlements = entitlements
        self._wellness = wellness
        self._provider = provider
        self._clock = clock

    def send_message(self, ctx: SessionContext, text: str) -> ChatTurn:
        """
        Send one message to the companion.

        Raises:
            ValidationError: Blank message
            QuotaExceededError: Free allowance used up for today
        """
        if not text or not text.strip():
            raise ValidationError("Message cannot be empty")
        record = self._entitlements.try_consume_message(ctx)
        if record is None:
            raise QuotaExceededError(
                f"Daily limit of {self._entitlements.max_free_messages} free messages reached"
            )

        user_message = ChatMessage(id=str(uuid4()), role="user", text=text, timestamp=self._clock.now_ms())
        self._wellness.append_chat_message(ctx, user_message)
        remaining = None
        if not record.is_premium:
            remaining = max(0, self._entitlements.max_free_messages - record.message_count)

        try:
            reply_text = self._provider.send(text, build_system_instruction(record.region))
        except ChatProviderError:
            logger.error(
                "[chat] provider failed",
                exc_info=True,
                extra={"owner_id": ctx.owner_id, "event_type": "chat.provider_failed"},
            )
            # Shown to the user but not persisted
            reply = ChatMessage(id=str(uuid4()), role="model", text=FALLBACK_REPLY, timestamp=self._clock.now_ms())
            return ChatTurn(user_message=user_message, reply=reply, delivered=False, messages_remaining=remaining)

        reply = ChatMessage(
            id=str(uuid4()),
            role="model",
            text=reply_text or EMPTY_REPLY,
            timestamp=self._clock.now_ms(),
        )
        self._wellness.append_chat_message(ctx, reply)
        return ChatTurn(user_message=user_message, reply=reply, delivered=True, messages_remaining=remaining)
