"""Tests for structured logging and request_id propagation."""

import json
import logging

from reliefanchor.core.logging import JsonFormatter, PrettyFormatter, RequestIdFilter, request_id_ctx_var


def _record(**extra):
    record = logging.LogRecord("reliefanchor.test", logging.WARNING, __file__, 1, "tamper", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_event_fields():
    record = _record(request_id="rid-1", owner_id="a@x.com", event_type="record.tamper")

    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "tamper"
    assert payload["request_id"] == "rid-1"
    assert payload["owner_id"] == "a@x.com"
    assert payload["event_type"] == "record.tamper"
    assert "reason" not in payload


def test_pretty_formatter_shows_owner():
    line = PrettyFormatter().format(_record(request_id="rid-1", owner_id="a@x.com"))
    assert "[rid=rid-1]" in line
    assert "[owner=a@x.com]" in line


def test_filter_injects_context_request_id():
    token = request_id_ctx_var.set("ctx-rid")
    try:
        record = _record()
        RequestIdFilter().filter(record)
        assert record.request_id == "ctx-rid"
    finally:
        request_id_ctx_var.reset(token)


def test_request_id_in_response_and_logs(client, caplog):
    with caplog.at_level(logging.INFO, logger="reliefanchor"):
        response = client.get("/healthz")
    rid = response.headers.get("x-request-id")
    assert rid
    records = [r for r in caplog.records if getattr(r, "request_id", None) == rid]
    assert records, "Expected logs to contain request_id from response"


def test_tamper_is_logged_with_owner(entitlements, ctx, storage, caplog):
    data = json.loads(storage.get(ctx.keys.record))
    data["isPremium"] = True
    storage.set(ctx.keys.record, json.dumps(data))

    with caplog.at_level(logging.WARNING, logger="reliefanchor"):
        entitlements.get_record(ctx)

    tamper = [r for r in caplog.records if getattr(r, "event_type", None) == "record.tamper"]
    assert tamper
    assert tamper[0].owner_id == ctx.owner_id


def test_cross_profile_redemption_is_logged(recovery, entitlements, sessions, caplog):
    source = sessions.login("a@x.com")
    entitlements.update_record(source, {"isPremium": True, "premiumUntil": "2030-01-01"})
    token = recovery.mint(source)
    target = sessions.login("b@y.com")

    with caplog.at_level(logging.INFO, logger="reliefanchor"):
        assert recovery.redeem(target, token).ok

    events = [r for r in caplog.records if getattr(r, "event_type", None) == "recovery.cross_profile"]
    assert events
    assert events[0].owner_id == "b@y.com"
    assert events[0].token_owner == "a@x.com"


def test_repairs_logged_as_structured_event(entitlements, ctx, clock, caplog):
    clock.advance(1)

    with caplog.at_level(logging.INFO, logger="reliefanchor"):
        entitlements.get_record(ctx)

    repaired = [r for r in caplog.records if getattr(r, "event_type", None) == "record.repaired"]
    assert repaired
    assert repaired[0].repairs == ["DAILY_RESET"]
    payload = json.loads(JsonFormatter().format(repaired[0]))
    assert payload["repairs"] == ["DAILY_RESET"]
