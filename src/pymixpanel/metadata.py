"""Device and application metadata providers.

Metadata arrives in two waves. :meth:`MetadataProvider.app_constants` and
:meth:`MetadataProvider.client_id` are read synchronously when the client
is constructed; :meth:`MetadataProvider.resolve` is awaited once during
startup and may be slow or fail.
"""

from __future__ import annotations

import asyncio
import logging
import platform
import shutil
import sys
import uuid
from typing import Any, Protocol

from pymixpanel.models.metadata import DeviceMetadata

_logger = logging.getLogger(__name__)

# Namespace for deriving a stable client id from the host identity.
_CLIENT_ID_NAMESPACE = uuid.UUID("6f1c6a0e-52d4-4b8e-9a55-2f0d8d6c1b7e")


class MetadataProvider(Protocol):
    """Structural interface for device/app metadata sources."""

    def client_id(self) -> str:
        ...

    def app_constants(self) -> dict[str, Any]:
        ...

    async def resolve(self) -> DeviceMetadata:
        ...


class StaticMetadataProvider:
    """Metadata provider returning fixed values.

    Useful when the host application already knows its facts, and in
    tests.
    """

    def __init__(
        self,
        *,
        client_id: str,
        app_constants: dict[str, Any] | None = None,
        device: DeviceMetadata | None = None,
    ) -> None:
        self._client_id = client_id
        self._app_constants = dict(app_constants or {})
        self._device = device or DeviceMetadata()

    def client_id(self) -> str:
        return self._client_id

    def app_constants(self) -> dict[str, Any]:
        return dict(self._app_constants)

    async def resolve(self) -> DeviceMetadata:
        return self._device


class PlatformMetadataProvider:
    """Metadata for the running Python host, built on :mod:`platform`.

    Parameters
    ----------
    app_name : str or None
        Application name reported as ``app_name``.
    app_id : str or None
        Application slug reported as ``app_id``.
    app_version : str or None
        Reported as ``app_version_string``.
    app_build_number : str or None
        Reported as ``app_build_number``.
    """

    def __init__(
        self,
        *,
        app_name: str | None = None,
        app_id: str | None = None,
        app_version: str | None = None,
        app_build_number: str | None = None,
    ) -> None:
        self._app_name = app_name
        self._app_id = app_id
        self._app_version = app_version
        self._app_build_number = app_build_number

    def client_id(self) -> str:
        """Stable id derived from the host name and hardware address."""
        seed = f"{platform.node()}:{uuid.getnode():012x}"
        return str(uuid.uuid5(_CLIENT_ID_NAMESPACE, seed))

    def app_constants(self) -> dict[str, Any]:
        constants: dict[str, Any] = {
            "app_build_number": self._app_build_number,
            "app_id": self._app_id,
            "app_name": self._app_name,
            "app_version_string": self._app_version,
            "device_name": platform.node() or None,
            "os_version": platform.release() or None,
        }
        return {key: value for key, value in constants.items() if value is not None}

    async def resolve(self) -> DeviceMetadata:
        return await asyncio.to_thread(self._collect)

    def _collect(self) -> DeviceMetadata:
        width, height = _terminal_size()
        system = platform.system()
        python = f"{platform.python_implementation()}/{platform.python_version()}"
        user_agent = f"{python} ({system} {platform.release()}; {platform.machine()})"
        _logger.debug("Resolved host metadata system=%s machine=%s", system, platform.machine())
        return DeviceMetadata(
            screen_width=width,
            screen_height=height,
            user_agent=user_agent,
            platform=_platform_os(system),
            brand=None,
            model=platform.machine() or None,
        )


def _platform_os(system: str) -> str:
    names = {"Darwin": "macos", "Windows": "windows", "Linux": "linux"}
    return names.get(system, system.lower() or sys.platform)


def _terminal_size() -> tuple[int | None, int | None]:
    """Best-effort display size; the terminal grid stands in for a screen."""
    size = shutil.get_terminal_size(fallback=(0, 0))
    if size.columns <= 0 or size.lines <= 0:
        return None, None
    return size.columns, size.lines
