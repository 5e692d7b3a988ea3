"""Masking of identifiers in outgoing payloads for DEBUG logs.

Track payloads carry the project token and user ids inside
``properties``; engage payloads carry them as ``$token`` and
``$distinct_id`` next to the operation.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_MASK = "<redacted>"

_ENVELOPE_KEYS: frozenset[str] = frozenset({"$token", "$distinct_id"})
_PROPERTY_KEYS: frozenset[str] = frozenset({"token", "distinct_id", "client_id"})


def _shorten(value: Any, limit: int) -> Any:
    if isinstance(value, str) and len(value) > limit:
        return f"{value[:limit]}…<truncated>"
    return value


def redact_payload(payload: Mapping[str, Any], *, max_string: int = 256) -> dict[str, Any]:
    """Return a copy of a track or engage payload with identifiers masked.

    Only the top level and the event ``properties`` are inspected. Long
    strings found there are cut to *max_string* characters; nested values
    are left as they are.
    """
    redacted: dict[str, Any] = {}
    for key, value in payload.items():
        if key in _ENVELOPE_KEYS:
            redacted[key] = _MASK
        elif key == "properties" and isinstance(value, Mapping):
            redacted[key] = {
                name: _MASK if name in _PROPERTY_KEYS else _shorten(item, max_string)
                for name, item in value.items()
            }
        else:
            redacted[key] = _shorten(value, max_string)
    return redacted
