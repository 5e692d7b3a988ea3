"""Client configuration for pymixpanel."""

from __future__ import annotations

import dataclasses
import os
from enum import StrEnum
from typing import Any

from pymixpanel._constants import API_URL, DEFAULT_STORAGE_KEY
from pymixpanel.exceptions import MixpanelConfigError


class DrainOrder(StrEnum):
    """Order in which the event queue is drained on flush."""

    TAIL_FIRST = "tail_first"
    HEAD_FIRST = "head_first"


@dataclasses.dataclass(frozen=True)
class MixpanelConfig:
    """Client configuration.

    Parameters
    ----------
    token : str
        Mixpanel project token. Sent with every event and profile update.
    storage_key : str
        Key under which super properties are persisted.
    api_url : str
        Collector base URL. Defaults to ``https://api.mixpanel.com``.
    client_id : str or None
        Stable per-device identifier. When ``None`` the metadata
        provider supplies one.
    request_timeout : float
        Total timeout in seconds for a single HTTP dispatch.
    drain_order : DrainOrder
        ``TAIL_FIRST`` sends the most recently tracked event first when
        the queue is flushed. ``HEAD_FIRST`` sends in call order.
    """

    token: str
    storage_key: str = DEFAULT_STORAGE_KEY
    api_url: str = API_URL
    client_id: str | None = None
    request_timeout: float = 10.0
    drain_order: DrainOrder = DrainOrder.TAIL_FIRST

    def __post_init__(self) -> None:
        if not isinstance(self.token, str) or not self.token.strip():
            raise MixpanelConfigError("token must be a non-empty string")
        if not self.storage_key:
            raise MixpanelConfigError("storage_key must be non-empty")
        if self.request_timeout <= 0:
            raise MixpanelConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        try:
            object.__setattr__(self, "drain_order", DrainOrder(self.drain_order))
        except ValueError as exc:
            raise MixpanelConfigError(f"unknown drain_order {self.drain_order!r}") from exc
        object.__setattr__(self, "api_url", self.api_url.rstrip("/"))

    @classmethod
    def from_env(cls, **overrides: Any) -> MixpanelConfig:
        """Create configuration from environment variables.

        Reads ``MIXPANEL_TOKEN`` and optional ``MIXPANEL_*`` variables.
        Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        MixpanelConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "MIXPANEL_TOKEN": "token",
            "MIXPANEL_STORAGE_KEY": "storage_key",
            "MIXPANEL_API_URL": "api_url",
            "MIXPANEL_CLIENT_ID": "client_id",
            "MIXPANEL_DRAIN_ORDER": "drain_order",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        timeout_env = env.get("MIXPANEL_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            try:
                config_kwargs["request_timeout"] = float(timeout_env)
            except ValueError as exc:
                raise MixpanelConfigError(f"MIXPANEL_REQUEST_TIMEOUT is not a number: {timeout_env!r}") from exc

        config_kwargs.update(overrides)
        if "token" not in config_kwargs:
            raise MixpanelConfigError("MIXPANEL_TOKEN is not set")

        return cls(**config_kwargs)
