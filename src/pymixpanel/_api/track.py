"""Event payload assembly and delivery.

Endpoint:
  - /track/
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pymixpanel._api._envelope import build_data_url
from pymixpanel._constants import TRACK_ENDPOINT
from pymixpanel._redact import redact_payload
from pymixpanel._transport import Transport
from pymixpanel.config import MixpanelConfig
from pymixpanel.models.event import Event
from pymixpanel.models.identity import IdentityState

_logger = logging.getLogger(__name__)


def merge_properties(*layers: Mapping[str, Any]) -> dict[str, Any]:
    """Overwrite key by key, later layers winning on collision."""
    merged: dict[str, Any] = {}
    for layer in layers:
        merged.update(layer)
    return merged


def build_event_payload(
    event: Event,
    *,
    token: str,
    constants: Mapping[str, Any],
    super_properties: Mapping[str, Any],
    identity: IdentityState,
    platform: str | None = None,
    model: str | None = None,
) -> dict[str, Any]:
    """Assemble the ``/track/`` payload for *event*.

    Precedence, lowest first: constants, event properties, super
    properties, identity fields. Identity fields always overwrite; one
    whose value is ``None`` removes the key instead. ``distinct_id`` is
    only written when a user id is set.
    """
    properties = merge_properties(constants, event.properties, super_properties)

    identity_fields: dict[str, Any] = {}
    if identity.distinct_id is not None:
        identity_fields["distinct_id"] = identity.distinct_id
    identity_fields["token"] = token
    identity_fields["client_id"] = identity.client_id
    identity_fields["platform"] = platform
    identity_fields["model"] = model

    for key, value in identity_fields.items():
        if value is None:
            properties.pop(key, None)
        else:
            properties[key] = value

    return {"event": event.name, "properties": properties}


async def send_event(
    config: MixpanelConfig,
    transport: Transport,
    payload: Mapping[str, Any],
) -> int:
    """Deliver an assembled event payload."""
    _logger.debug("Track payload=%s", redact_payload(payload))
    url = build_data_url(config.api_url, TRACK_ENDPOINT, payload)
    return await transport.get(TRACK_ENDPOINT, url)
