import groq
import pytest

from reliefanchor.core.errors import QuotaExceededError, ValidationError
from reliefanchor.features.chat.provider import (
    ChatProviderError,
    GroqChatProvider,
    OfflineChatProvider,
    default_chat_provider,
)
from reliefanchor.features.chat.service import (
    EMPTY_REPLY,
    FALLBACK_REPLY,
    build_system_instruction,
    helpline_for_region,
)
from reliefanchor.models.entitlement import Region
from reliefanchor.tests.mocks import FakeGroq


def test_send_message_persists_exchange(chat, chat_provider, wellness, entitlements, ctx):
    turn = chat.send_message(ctx, "I feel anxious")

    assert turn.delivered
    assert turn.reply.text == chat_provider.reply
    assert turn.messages_remaining == 4
    assert [m.text for m in wellness.get_chat_history(ctx)] == ["I feel anxious", chat_provider.reply]
    assert entitlements.get_record(ctx).message_count == 1


def test_system_instruction_uses_regional_helpline(chat, chat_provider, entitlements, ctx):
    entitlements.update_record(ctx, {"region": "INDIA"})
    chat.send_message(ctx, "hello")

    _, instruction = chat_provider.calls[0]
    assert "1800-599-0019" in instruction
    assert "Anya" in instruction


def test_free_tier_blocks_after_daily_limit(chat, chat_provider, ctx):
    for _ in range(5):
        chat.send_message(ctx, "hi")

    with pytest.raises(QuotaExceededError):
        chat.send_message(ctx, "one more")
    assert len(chat_provider.calls) == 5


def test_limit_resets_next_day(chat, ctx, clock):
    for _ in range(5):
        chat.send_message(ctx, "hi")

    clock.advance(1)
    assert chat.send_message(ctx, "morning").messages_remaining == 4


def test_premium_has_no_limit(chat, entitlements, ctx):
    entitlements.update_record(ctx, {"isPremium": True, "premiumUntil": "2099-12-31"})
    for _ in range(7):
        turn = chat.send_message(ctx, "hi")
    assert turn.messages_remaining is None


def test_provider_failure_returns_unsaved_fallback(chat, chat_provider, wellness, entitlements, ctx):
    chat_provider.fail = True

    turn = chat.send_message(ctx, "hello?")

    assert not turn.delivered
    assert turn.reply.text == FALLBACK_REPLY
    assert [m.role for m in wellness.get_chat_history(ctx)] == ["user"]
    # The attempt still counts
    assert entitlements.get_record(ctx).message_count == 1


def test_empty_reply_is_replaced(chat, chat_provider, ctx):
    chat_provider.reply = ""
    assert chat.send_message(ctx, "hi").reply.text == EMPTY_REPLY


def test_blank_message_rejected(chat, chat_provider, entitlements, ctx):
    with pytest.raises(ValidationError):
        chat.send_message(ctx, "   ")
    assert chat_provider.calls == []
    assert entitlements.get_record(ctx).message_count == 0


def test_helpline_fallback():
    assert helpline_for_region("MARS") == helpline_for_region(Region.GLOBAL)
    assert "911 / 112" in build_system_instruction(Region.GLOBAL)


def test_groq_provider_sends_system_and_user_messages():
    client = FakeGroq(content="Take a slow breath.")
    provider = GroqChatProvider(model="test-model", temperature=0.2, client=client)

    assert provider.send("hi", "be kind") == "Take a slow breath."
    kwargs = client.chat.completions.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["temperature"] == 0.2
    assert kwargs["messages"] == [
        {"role": "system", "content": "be kind"},
        {"role": "user", "content": "hi"},
    ]


def test_groq_errors_are_wrapped():
    provider = GroqChatProvider(client=FakeGroq(error=groq.GroqError("boom")))
    with pytest.raises(ChatProviderError):
        provider.send("hi", "be kind")


def test_groq_provider_requires_key(monkeypatch):
    from reliefanchor.core.config import settings

    monkeypatch.setattr(settings, "GROQ_API_KEY", None)
    with pytest.raises(ChatProviderError):
        GroqChatProvider()
    assert isinstance(default_chat_provider(), OfflineChatProvider)


def test_offline_provider_always_fails():
    with pytest.raises(ChatProviderError):
        OfflineChatProvider().send("hi", "be kind")
