"""Tracked event model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Event(BaseModel):
    """A usage event waiting in the queue.

    ``sent`` flips to ``True`` once the network call has been issued,
    not once a response arrives.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    name: str
    properties: dict[str, Any] = Field(default_factory=dict)
    sent: bool = False

    @field_validator("properties", mode="before")
    @classmethod
    def _default_properties(cls, value: Any) -> Any:
        if value is None:
            return {}
        return value
