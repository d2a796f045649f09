import pytest

from reliefanchor.core.errors import ValidationError
from reliefanchor.features.sessions.service import SESSION_KEY, context_for
from reliefanchor.models.wellness import ChatMessage


def test_moods_append_in_order(wellness, ctx, clock):
    first = wellness.add_mood(ctx, 2, "tired")
    clock.advance(1)
    second = wellness.add_mood(ctx, 4)

    moods = wellness.get_moods(ctx)
    assert [m.id for m in moods] == [first.id, second.id]
    assert moods[0].note == "tired"
    assert moods[1].timestamp > moods[0].timestamp


@pytest.mark.parametrize("score", [0, 6, True, "3"])
def test_mood_score_validated(wellness, ctx, score):
    with pytest.raises(ValidationError):
        wellness.add_mood(ctx, score)
    assert wellness.get_moods(ctx) == []


def test_journal_is_newest_first(wellness, ctx):
    wellness.add_journal_entry(ctx, "first")
    wellness.add_journal_entry(ctx, "second")

    assert [e.text for e in wellness.get_journal_entries(ctx)] == ["second", "first"]


def test_blank_journal_entry_rejected(wellness, ctx):
    with pytest.raises(ValidationError):
        wellness.add_journal_entry(ctx, "  ")


def test_chat_history_append_and_clear(wellness, ctx):
    wellness.append_chat_message(ctx, ChatMessage(id="1", role="user", text="hi", timestamp=1))
    wellness.append_chat_message(ctx, ChatMessage(id="2", role="model", text="hello", timestamp=2))
    assert [m.role for m in wellness.get_chat_history(ctx)] == ["user", "model"]

    wellness.clear_chat(ctx)
    assert wellness.get_chat_history(ctx) == []


def test_clear_private_data_keeps_entitlement(wellness, entitlements, ctx):
    entitlements.update_record(ctx, {"isPremium": True, "premiumUntil": "2099-12-31"})
    wellness.add_mood(ctx, 3)
    wellness.add_journal_entry(ctx, "note")
    wellness.append_chat_message(ctx, ChatMessage(id="1", role="user", text="hi", timestamp=1))

    wellness.clear_private_data(ctx)

    assert wellness.get_moods(ctx) == []
    assert wellness.get_journal_entries(ctx) == []
    assert wellness.get_chat_history(ctx) == []
    assert entitlements.get_record(ctx).is_premium is True


def test_profiles_do_not_share_lists(wellness):
    a = context_for("a@x.com")
    b = context_for("b@y.com")
    wellness.add_mood(a, 5)

    assert len(wellness.get_moods(a)) == 1
    assert wellness.get_moods(b) == []


@pytest.mark.parametrize("raw", ["{broken", '{"not": "a list"}', '[{"id": 1}]'])
def test_unreadable_lists_read_as_empty(wellness, storage, ctx, raw):
    storage.set(ctx.keys.moods, raw)
    assert wellness.get_moods(ctx) == []


def test_wipe_device_removes_everything(wellness, storage, ctx):
    wellness.add_mood(ctx, 3)

    wellness.wipe_device()

    assert storage.keys() == []
    assert storage.get(SESSION_KEY) is None
