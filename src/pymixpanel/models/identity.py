"""Identity state attached to outgoing payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class IdentityState(BaseModel):
    """Who the payloads are attributed to.

    Parameters
    ----------
    client_id : str
        Stable per-device identifier. Frozen after construction.
    user_id : str or None
        Current user identity. Set by ``identify`` and put back to
        ``client_id`` by ``reset``.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    client_id: str = Field(frozen=True)
    user_id: str | None = None

    @property
    def distinct_id(self) -> str | None:
        """The user id when one is set, else ``None`` (empty string counts as unset)."""
        return self.user_id or None
