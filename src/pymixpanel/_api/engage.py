"""People profile updates.

Endpoint:
  - /engage/
"""

from __future__ import annotations

import logging
from typing import Any

from pymixpanel._api._envelope import build_data_url
from pymixpanel._constants import ENGAGE_ENDPOINT
from pymixpanel._redact import redact_payload
from pymixpanel._transport import Transport
from pymixpanel.config import MixpanelConfig
from pymixpanel.models.identity import IdentityState
from pymixpanel.models.profile import ProfileUpdate

_logger = logging.getLogger(__name__)


def build_profile_update(identity: IdentityState, operation: str, properties: Any) -> ProfileUpdate | None:
    """Return the update for the current user, or ``None`` when no user is identified."""
    distinct_id = identity.distinct_id
    if distinct_id is None:
        _logger.debug("Dropping $%s profile update: no user identified", operation)
        return None
    return ProfileUpdate(distinct_id=distinct_id, operation=operation, properties=properties)


async def send_profile_update(
    config: MixpanelConfig,
    transport: Transport,
    update: ProfileUpdate,
) -> int:
    """Deliver a profile update."""
    payload = update.to_payload(config.token)
    _logger.debug("Engage payload=%s", redact_payload(payload))
    url = build_data_url(config.api_url, ENGAGE_ENDPOINT, payload)
    return await transport.get(ENGAGE_ENDPOINT, url)
