"""Super properties: custom properties merged into every event.

The in-memory mapping is authoritative. It is mirrored to the property
storage as JSON text on every replacement and read back once at startup.
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Mapping
from typing import Any

from pymixpanel.storage import PropertyStorage

_logger = logging.getLogger(__name__)


def _parse_properties(raw: str | None) -> dict[str, Any]:
    """Parse persisted JSON text; anything but a JSON object yields ``{}``."""
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        _logger.debug("Persisted super properties are not valid JSON; starting empty")
        return {}
    if not isinstance(value, dict):
        _logger.debug("Persisted super properties are %s, not an object; starting empty", type(value).__name__)
        return {}
    return value


class SuperPropertyStore:
    """In-memory super properties kept in step with a :class:`PropertyStorage`."""

    def __init__(self, storage: PropertyStorage, storage_key: str) -> None:
        self._storage = storage
        self._key = storage_key
        self._properties: dict[str, Any] = {}
        self._loaded = False
        # Set when register/reset runs before load() has completed.
        self._replaced_before_load = False

    @property
    def storage_key(self) -> str:
        return self._key

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def properties(self) -> dict[str, Any]:
        return copy.deepcopy(self._properties)

    def register(self, props: Mapping[str, Any] | None) -> None:
        """Replace the whole mapping with *props* and persist it.

        Anything other than a mapping (or ``None``) is ignored.
        """
        if props is None:
            props = {}
        elif not isinstance(props, Mapping):
            _logger.debug("Ignoring super properties of type %s", type(props).__name__)
            return
        self._properties = dict(props)
        if not self._loaded:
            self._replaced_before_load = True
        self._persist()

    def reset(self) -> None:
        """Clear the mapping and persist the empty mapping."""
        self.register({})

    async def load(self) -> None:
        """Read persisted properties. Never raises.

        A read error, a missing value or unparseable data leaves the
        mapping empty. A ``register``/``reset`` issued while the read was
        pending wins over the loaded value.
        """
        try:
            raw = await self._storage.get_item(self._key)
        except Exception:
            _logger.debug("Reading super properties failed", exc_info=True)
            raw = None

        loaded = _parse_properties(raw)
        self._loaded = True
        if self._replaced_before_load:
            _logger.debug("Super properties replaced during load; keeping in-memory value")
            return
        self._properties = loaded
        _logger.debug("Loaded %d super properties", len(loaded))

    def _persist(self) -> None:
        try:
            text = json.dumps(self._properties, separators=(",", ":"), default=str)
            self._storage.set_item(self._key, text)
        except Exception:
            _logger.debug("Persisting super properties failed", exc_info=True)
