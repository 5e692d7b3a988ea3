"""Wire encoding shared by the track and engage endpoints.

A payload travels as compact JSON, UTF-8 encoded, base64 encoded and
URL-quoted into a single ``data`` query parameter.
"""

from __future__ import annotations

import base64
import json
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote


def encode_payload(payload: Mapping[str, Any]) -> str:
    """Return the base64 text of the compact JSON form of *payload*."""
    text = json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_payload(data: str) -> Any:
    """Inverse of :func:`encode_payload`."""
    return json.loads(base64.b64decode(data).decode("utf-8"))


def build_data_url(api_url: str, endpoint: str, payload: Mapping[str, Any]) -> str:
    """Build ``{api_url}{endpoint}?data=<encoded payload>``."""
    return f"{api_url}{endpoint}?data={quote(encode_payload(payload), safe='')}"
