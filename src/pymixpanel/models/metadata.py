"""Device metadata resolved after startup."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class DeviceMetadata(BaseModel):
    """Facts only available once the deferred metadata lookup completes.

    Every field is optional; a failed lookup yields an empty instance.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    screen_width: int | None = None
    screen_height: int | None = None
    user_agent: str | None = None
    platform: str | None = None
    brand: str | None = None
    model: str | None = None

    def to_constants(self) -> dict[str, Any]:
        """Return the screen and user-agent facts merged into every event."""
        constants: dict[str, Any] = {
            "screen_height": self.screen_height,
            "screen_width": self.screen_width,
            "user_agent": self.user_agent,
        }
        if self.screen_width is not None and self.screen_height is not None:
            constants["screen_size"] = f"{self.screen_width}x{self.screen_height}"
        return {key: value for key, value in constants.items() if value is not None}
