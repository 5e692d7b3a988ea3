"""HttpTransport against a local aiohttp server."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp import test_utils

from pymixpanel._api._envelope import decode_payload
from pymixpanel._api.engage import send_profile_update
from pymixpanel._api.track import send_event
from pymixpanel._transport import HttpTransport
from pymixpanel.config import MixpanelConfig
from pymixpanel.exceptions import MixpanelTransportError
from pymixpanel.models.profile import ProfileUpdate


class _Collector:
    def __init__(self) -> None:
        self.received: list[tuple[str, Any]] = []
        self.status = 200

    async def handle(self, request: web.Request) -> web.Response:
        self.received.append((request.path, decode_payload(request.query["data"])))
        return web.Response(text="1", status=self.status)


@pytest_asyncio.fixture
async def collector() -> AsyncIterator[tuple[_Collector, str]]:
    state = _Collector()
    app = web.Application()
    app.router.add_get("/track/", state.handle)
    app.router.add_get("/engage/", state.handle)
    async with test_utils.TestServer(app) as server:
        yield state, str(server.make_url("")).rstrip("/")


@pytest.mark.asyncio
async def test_event_delivered_as_data_query_parameter(collector: tuple[_Collector, str]) -> None:
    state, base_url = collector
    config = MixpanelConfig(token="tok", api_url=base_url)
    payload = {"event": "opened", "properties": {"token": "tok", "note": "a+b/c=d"}}

    async with aiohttp.ClientSession() as session:
        status = await send_event(config, HttpTransport(config, session), payload)

    assert status == 200
    assert state.received == [("/track/", payload)]


@pytest.mark.asyncio
async def test_profile_update_delivered_to_engage(collector: tuple[_Collector, str]) -> None:
    state, base_url = collector
    config = MixpanelConfig(token="tok", api_url=base_url)
    update = ProfileUpdate(distinct_id="u1", operation="set", properties={"plan": "pro"})

    async with aiohttp.ClientSession() as session:
        await send_profile_update(config, HttpTransport(config, session), update)

    assert state.received == [("/engage/", {"$token": "tok", "$distinct_id": "u1", "$set": {"plan": "pro"}})]


@pytest.mark.asyncio
async def test_error_status_raises_transport_error(collector: tuple[_Collector, str]) -> None:
    state, base_url = collector
    state.status = 500
    config = MixpanelConfig(token="tok", api_url=base_url)

    async with aiohttp.ClientSession() as session:
        with pytest.raises(MixpanelTransportError) as exc_info:
            await send_event(config, HttpTransport(config, session), {"event": "x", "properties": {}})

    assert exc_info.value.status_code == 500
    assert exc_info.value.endpoint == "/track/"


@pytest.mark.asyncio
async def test_connection_error_raises_transport_error(unused_tcp_port: int) -> None:
    config = MixpanelConfig(token="tok", api_url=f"http://127.0.0.1:{unused_tcp_port}", request_timeout=2.0)

    async with aiohttp.ClientSession() as session:
        with pytest.raises(MixpanelTransportError) as exc_info:
            await HttpTransport(config, session).get("/track/", f"{config.api_url}/track/?data=e30%3D")

    assert exc_info.value.status_code is None
