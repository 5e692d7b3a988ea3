from __future__ import annotations

from pymixpanel._redact import redact_payload


def test_redact_payload_masks_track_identity() -> None:
    payload = {
        "event": "opened",
        "properties": {"token": "tok", "distinct_id": "u1", "client_id": "dev", "a": 1},
    }

    redacted = redact_payload(payload)

    assert redacted == {
        "event": "opened",
        "properties": {"token": "<redacted>", "distinct_id": "<redacted>", "client_id": "<redacted>", "a": 1},
    }
    assert payload["properties"]["token"] == "tok"


def test_redact_payload_masks_engage_envelope() -> None:
    payload = {"$token": "tok", "$distinct_id": "u1", "$set": {"plan": "pro"}}

    assert redact_payload(payload) == {"$token": "<redacted>", "$distinct_id": "<redacted>", "$set": {"plan": "pro"}}


def test_redact_payload_truncates_long_strings() -> None:
    redacted = redact_payload({"event": "e" * 40, "properties": {"note": "x" * 600}}, max_string=10)

    assert redacted["event"] == "e" * 10 + "…<truncated>"
    assert redacted["properties"]["note"].startswith("x" * 10)
    assert "<truncated>" in redacted["properties"]["note"]


def test_redact_payload_leaves_nested_values_alone() -> None:
    payload = {"event": "e", "properties": {"meta": {"token": "inner"}}}

    assert redact_payload(payload)["properties"]["meta"] == {"token": "inner"}
