from __future__ import annotations

import asyncio
from collections.abc import Iterator
from typing import Any
from urllib.parse import parse_qs, urlsplit

import pytest

from pymixpanel._api._envelope import decode_payload
from pymixpanel.client import MixpanelClient
from pymixpanel.exceptions import MixpanelStorageError, MixpanelTransportError
from pymixpanel.models.metadata import DeviceMetadata


class RecordingTransport:
    """Records every GET; optionally fails them."""

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.requests: list[tuple[str, str]] = []

    async def get(self, endpoint: str, url: str) -> int:
        self.requests.append((endpoint, url))
        if self.fail:
            raise MixpanelTransportError("collector down", status_code=503, endpoint=endpoint)
        return 200

    def payloads(self, endpoint: str | None = None) -> list[Any]:
        result = []
        for sent_endpoint, url in self.requests:
            if endpoint is not None and sent_endpoint != endpoint:
                continue
            data = parse_qs(urlsplit(url).query)["data"][0]
            result.append(decode_payload(data))
        return result

    def event_names(self) -> list[str]:
        return [payload["event"] for payload in self.payloads("/track/")]


class GatedMetadataProvider:
    """Metadata provider whose deferred lookup waits for ``release()``."""

    def __init__(
        self,
        *,
        client_id: str = "device-1",
        app_constants: dict[str, Any] | None = None,
        device: DeviceMetadata | None = None,
        error: Exception | None = None,
    ) -> None:
        self._client_id = client_id
        self._app_constants = app_constants or {}
        self._device = device or DeviceMetadata(platform="ios", model="iPhone15,2", brand="Apple")
        self._error = error
        self._released = asyncio.Event()
        self.resolve_calls = 0

    def release(self) -> None:
        self._released.set()

    def client_id(self) -> str:
        return self._client_id

    def app_constants(self) -> dict[str, Any]:
        return dict(self._app_constants)

    async def resolve(self) -> DeviceMetadata:
        self.resolve_calls += 1
        await self._released.wait()
        if self._error is not None:
            raise self._error
        return self._device


class FailingStorage:
    """Storage where every read and write fails."""

    async def get_item(self, key: str) -> str | None:
        raise MixpanelStorageError("read failed", key=key)

    def set_item(self, key: str, value: str) -> None:
        raise MixpanelStorageError("write failed", key=key)


class BrokenStorage:
    """Storage whose backend raises errors outside the storage error type."""

    def __init__(self, error: Exception | None = None) -> None:
        self._error = error or RuntimeError("backend unavailable")

    async def get_item(self, key: str) -> str | None:
        raise self._error

    def set_item(self, key: str, value: str) -> None:
        raise self._error


@pytest.fixture(autouse=True)
def _isolated_instances() -> Iterator[None]:
    MixpanelClient.clear_instances()
    yield
    MixpanelClient.clear_instances()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def metadata() -> GatedMetadataProvider:
    return GatedMetadataProvider()
