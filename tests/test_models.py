"""Tests for the pydantic data models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from pymixpanel.models.event import Event
from pymixpanel.models.identity import IdentityState


class TestEvent:
    def test_properties_default_to_empty(self) -> None:
        assert Event(name="x", properties=None).properties == {}

    def test_sent_defaults_false(self) -> None:
        assert Event(name="x").sent is False

    def test_properties_keep_insertion_order(self) -> None:
        event = Event(name="x", properties={"z": 1, "a": 2, "m": 3})

        assert list(event.properties) == ["z", "a", "m"]


class TestIdentityState:
    def test_client_id_is_frozen(self) -> None:
        identity = IdentityState(client_id="dev")

        with pytest.raises(ValidationError):
            identity.client_id = "other"  # type: ignore[misc]

    def test_user_id_is_mutable(self) -> None:
        identity = IdentityState(client_id="dev")
        identity.user_id = "u1"

        assert identity.distinct_id == "u1"

    @pytest.mark.parametrize("user_id", [None, ""])
    def test_unset_user_has_no_distinct_id(self, user_id: str | None) -> None:
        assert IdentityState(client_id="dev", user_id=user_id).distinct_id is None
