"""Tests for event/profile payload assembly and wire encoding."""

from __future__ import annotations

import base64
import json
from urllib.parse import parse_qs, urlsplit

import pytest

from pymixpanel._api._envelope import build_data_url, decode_payload, encode_payload
from pymixpanel._api.engage import build_profile_update
from pymixpanel._api.track import build_event_payload, merge_properties
from pymixpanel.models.event import Event
from pymixpanel.models.identity import IdentityState
from pymixpanel.models.profile import ProfileUpdate


class TestEventPayload:
    def test_precedence_constants_event_super_identity(self) -> None:
        payload = build_event_payload(
            Event(name="x", properties={"platform": "y", "a": 1}),
            token="tok",
            constants={"platform": "x", "os_version": "17.0"},
            super_properties={"a": 2, "b": 3},
            identity=IdentityState(client_id="dev", user_id="u1"),
            platform="ios",
            model="iPhone",
        )

        assert payload == {
            "event": "x",
            "properties": {
                "platform": "ios",
                "os_version": "17.0",
                "a": 2,
                "b": 3,
                "distinct_id": "u1",
                "token": "tok",
                "client_id": "dev",
                "model": "iPhone",
            },
        }

    def test_identity_field_without_value_removes_key(self) -> None:
        payload = build_event_payload(
            Event(name="x", properties={"model": "user-supplied", "platform": "web"}),
            token="tok",
            constants={},
            super_properties={},
            identity=IdentityState(client_id="dev"),
        )

        props = payload["properties"]
        assert "model" not in props
        assert "platform" not in props
        assert "distinct_id" not in props
        assert props["token"] == "tok"

    def test_distinct_id_overrides_super_property(self) -> None:
        payload = build_event_payload(
            Event(name="x"),
            token="tok",
            constants={},
            super_properties={"distinct_id": "spoofed", "token": "other"},
            identity=IdentityState(client_id="dev", user_id="u1"),
        )

        assert payload["properties"]["distinct_id"] == "u1"
        assert payload["properties"]["token"] == "tok"

    def test_merge_properties_later_layers_win(self) -> None:
        assert merge_properties({"a": 1, "b": 1}, {"b": 2}, {"c": 3}) == {"a": 1, "b": 2, "c": 3}


class TestProfileUpdate:
    def test_dropped_without_user(self) -> None:
        assert build_profile_update(IdentityState(client_id="dev"), "set", {"a": 1}) is None

    def test_payload_shape(self) -> None:
        update = build_profile_update(IdentityState(client_id="dev", user_id="u1"), "set", {"a": 1})

        assert update is not None
        assert update.to_payload("tok") == {"$token": "tok", "$distinct_id": "u1", "$set": {"a": 1}}

    def test_operation_dollar_prefix_is_normalised(self) -> None:
        update = ProfileUpdate(distinct_id="u1", operation="$set_once", properties={})

        assert update.operation == "set_once"

    def test_empty_operation_rejected(self) -> None:
        with pytest.raises(ValueError):
            ProfileUpdate(distinct_id="u1", operation=" ", properties={})


class TestEnvelope:
    def test_encoding_is_base64_of_compact_json(self) -> None:
        encoded = encode_payload({"event": "x", "properties": {"a": 1}})

        assert base64.b64decode(encoded) == b'{"event":"x","properties":{"a":1}}'

    def test_non_ascii_text_kept_as_utf8(self) -> None:
        encoded = encode_payload({"city": "Zürich"})

        assert base64.b64decode(encoded).decode("utf-8") == '{"city":"Zürich"}'
        assert decode_payload(encoded) == {"city": "Zürich"}

    def test_data_url(self) -> None:
        payload = {"event": "x?", "properties": {"long": "~" * 40}}

        url = build_data_url("https://api.mixpanel.com", "/track/", payload)

        parts = urlsplit(url)
        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://api.mixpanel.com/track/"
        [data] = parse_qs(parts.query)["data"]
        assert json.loads(base64.b64decode(data)) == payload
        assert "+" not in parts.query
