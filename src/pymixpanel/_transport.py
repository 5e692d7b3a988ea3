"""HTTP transport for collector GET requests."""

from __future__ import annotations

import logging
from typing import Protocol

import aiohttp

from pymixpanel._constants import USER_AGENT
from pymixpanel.config import MixpanelConfig
from pymixpanel.exceptions import MixpanelTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the dispatch functions.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def get(self, endpoint: str, url: str) -> int:
        ...


class HttpTransport:
    """Sends collector requests over a shared ``aiohttp`` session."""

    def __init__(
        self,
        config: MixpanelConfig,
        http_session: aiohttp.ClientSession,
    ) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def get(self, endpoint: str, url: str) -> int:
        """Issue a GET and return the HTTP status.

        The body is read and discarded. Non-2xx statuses and client errors
        raise :class:`MixpanelTransportError`.
        """
        headers = {"user-agent": USER_AGENT, "accept": "text/plain"}

        _logger.debug("GET %s%s (%d bytes)", self._config.api_url, endpoint, len(url))

        try:
            async with self._http.get(url, headers=headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise MixpanelTransportError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
                return resp.status
        except MixpanelTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise MixpanelTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc
