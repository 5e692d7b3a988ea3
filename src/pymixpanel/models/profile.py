"""People (profile) update model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProfileUpdate(BaseModel):
    """A single ``$<operation>`` applied to a user profile.

    Built on demand by the ``people_*`` calls and dispatched immediately.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    distinct_id: str
    operation: str
    properties: Any = Field(default_factory=dict)

    @field_validator("operation")
    @classmethod
    def _strip_operation(cls, value: str) -> str:
        operation = value.strip().lstrip("$")
        if not operation:
            raise ValueError("operation must be non-empty")
        return operation

    def to_payload(self, token: str) -> dict[str, Any]:
        """Return the engage payload for this update."""
        return {
            "$token": token,
            "$distinct_id": self.distinct_id,
            f"${self.operation}": self.properties,
        }
