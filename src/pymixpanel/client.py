"""High-level async analytics client."""

from __future__ import annotations

import asyncio
import contextlib
import copy
import logging
import uuid
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, ClassVar

import aiohttp
from pydantic import ValidationError

from pymixpanel._api.engage import build_profile_update, send_profile_update
from pymixpanel._api.track import build_event_payload, send_event
from pymixpanel._transport import HttpTransport, Transport
from pymixpanel.config import MixpanelConfig
from pymixpanel.exceptions import MixpanelError
from pymixpanel.metadata import MetadataProvider, PlatformMetadataProvider
from pymixpanel.models.event import Event
from pymixpanel.models.identity import IdentityState
from pymixpanel.models.metadata import DeviceMetadata
from pymixpanel.models.profile import ProfileUpdate
from pymixpanel.state.queue import EventQueue
from pymixpanel.state.readiness import LifecycleState, ReadinessGate
from pymixpanel.state.super_props import SuperPropertyStore
from pymixpanel.storage import MemoryStorage, PropertyStorage

_logger = logging.getLogger(__name__)


class MixpanelClient:
    """Async client that queues analytics events and ships them to Mixpanel.

    Nothing is sent until device metadata and persisted super properties
    have been loaded. Calls made before that only update local state.

    Usage::

        async with MixpanelClient(MixpanelConfig(token="...")) as mixpanel:
            mixpanel.identify("user-42")
            mixpanel.track("Signed In", {"method": "password"})

    None of the public operations raise: delivery is best effort and
    failures are logged at DEBUG level.
    """

    _instances: ClassVar[dict[str, MixpanelClient]] = {}

    def __init__(
        self,
        config: MixpanelConfig,
        *,
        metadata: MetadataProvider | None = None,
        storage: PropertyStorage | None = None,
        transport: Transport | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._metadata = metadata if metadata is not None else PlatformMetadataProvider()
        self._storage = storage if storage is not None else MemoryStorage()
        self._transport = transport
        self._external_session = session is not None
        self._http_session = session
        self._loop: asyncio.AbstractEventLoop | None = None
        self._init_task: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[None]] = set()

        self._gate = ReadinessGate()
        self._super_props = SuperPropertyStore(self._storage, config.storage_key)
        self._queue = EventQueue(self._gate, self._dispatch_event, drain_order=config.drain_order)
        self._gate.add_listener(self._queue.flush)

        self._device = DeviceMetadata()
        self._constants: dict[str, Any] = self._capture_constants()
        self._identity = IdentityState(client_id=config.client_id or self._capture_client_id())

    # ------------------------------------------------------------------
    # Shared instances
    # ------------------------------------------------------------------

    @classmethod
    def get_instance(
        cls,
        token: str,
        storage_key: str | None = None,
        **kwargs: Any,
    ) -> MixpanelClient:
        """Return the shared client for *token*, creating it on first use.

        One instance exists per token. A later call with the same token
        returns the existing instance unchanged, ignoring *storage_key*
        and *kwargs*. The instance is started when called with a running
        event loop; otherwise call :meth:`start` (or ``async with``) later.
        """
        instance = cls._instances.get(token)
        if instance is None:
            config_kwargs: dict[str, Any] = {"token": token}
            if storage_key is not None:
                config_kwargs["storage_key"] = storage_key
            instance = cls(MixpanelConfig(**config_kwargs), **kwargs)
            cls._instances[token] = instance
        elif storage_key is not None and storage_key != instance.config.storage_key:
            _logger.debug(
                "Shared client already uses storage key %r; ignoring %r",
                instance.config.storage_key,
                storage_key,
            )

        with contextlib.suppress(RuntimeError):
            instance.start()
        return instance

    @classmethod
    def clear_instances(cls) -> None:
        """Forget all shared instances (does not close them)."""
        cls._instances.clear()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> MixpanelClient:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    def start(self) -> asyncio.Task[None]:
        """Schedule startup on the running loop. Idempotent.

        Startup cancelled by :meth:`aclose` is scheduled again.

        Raises :class:`RuntimeError` when no event loop is running.
        """
        if self._init_task is not None and not self._init_task.cancelled():
            if self._transport is None:
                # Reopened after aclose().
                self._open_transport()
            return self._init_task

        loop = asyncio.get_running_loop()
        self._loop = loop
        if self._transport is None:
            self._open_transport()

        self._gate.begin()
        self._init_task = loop.create_task(self._initialize())
        return self._init_task

    async def wait_ready(self) -> None:
        """Start if needed and wait until queued events have been flushed."""
        await asyncio.shield(self.start())

    async def join(self) -> None:
        """Wait until every dispatched request has finished."""
        while True:
            pending = [task for task in self._in_flight if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def aclose(self) -> None:
        """Wait for in-flight requests, then release the HTTP session.

        A shared instance is dropped from the registry, so the next
        :meth:`get_instance` call for its token builds a fresh client.
        """
        if self._init_task is not None and not self._init_task.done():
            self._init_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._init_task
        await self.join()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            self._transport = None
        if self._instances.get(self._config.token) is self:
            del self._instances[self._config.token]

    def _open_transport(self) -> None:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(self._config, self._http_session)

    async def _initialize(self) -> None:
        try:
            await self._resolve_metadata()
            self._gate.metadata_resolved()
            await self._super_props.load()
        except Exception:
            _logger.debug("Startup step failed; marking ready anyway", exc_info=True)
            self._gate.metadata_resolved()
        self._gate.mark_ready()

    def _capture_constants(self) -> dict[str, Any]:
        try:
            constants = dict(self._metadata.app_constants())
        except Exception:
            _logger.debug("Reading app constants failed", exc_info=True)
            return {}
        return {key: value for key, value in constants.items() if value is not None}

    def _capture_client_id(self) -> str:
        try:
            client_id = self._metadata.client_id()
        except Exception:
            _logger.debug("Reading client id failed", exc_info=True)
            client_id = ""
        if not client_id:
            client_id = str(uuid.uuid4())
            _logger.debug("No client id available; using random id for this process")
        return str(client_id)

    async def _resolve_metadata(self) -> None:
        """Second-wave metadata. Failure leaves the device facts empty."""
        try:
            device = await self._metadata.resolve()
        except Exception:
            _logger.debug("Metadata resolution failed; continuing without device facts", exc_info=True)
            device = None
        if isinstance(device, DeviceMetadata):
            self._device = device
            self._constants.update(device.to_constants())

    # ------------------------------------------------------------------
    # Readiness
    # ------------------------------------------------------------------

    @property
    def ready(self) -> bool:
        return self._gate.ready

    @property
    def state(self) -> LifecycleState:
        return self._gate.state

    def add_ready_listener(self, callback: Callable[[], None]) -> None:
        """Run *callback* once the client is ready (immediately if it already is)."""
        self._gate.add_listener(callback)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def config(self) -> MixpanelConfig:
        return self._config

    @property
    def client_id(self) -> str:
        return self._identity.client_id

    @property
    def user_id(self) -> str | None:
        return self._identity.user_id

    @property
    def device(self) -> DeviceMetadata:
        return self._device

    @property
    def constants(self) -> dict[str, Any]:
        return copy.deepcopy(self._constants)

    @property
    def super_properties(self) -> dict[str, Any]:
        return self._super_props.properties

    @property
    def pending_events(self) -> list[Event]:
        return self._queue.pending

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def track(self, name: str, props: Mapping[str, Any] | None = None) -> None:
        """Queue an event; it is sent as soon as the client is ready."""
        try:
            event = Event(name=name, properties=dict(props or {}))
        except (ValidationError, TypeError, ValueError):
            _logger.debug("Dropping malformed event %r", name, exc_info=True)
            return
        self._queue.enqueue(event)

    def identify(self, user_id: str | None = None) -> None:
        """Attribute subsequent payloads to *user_id* (``None`` clears it)."""
        self._identity.user_id = None if user_id is None else str(user_id)

    def register(self, props: Mapping[str, Any] | None) -> None:
        """Replace all super properties with *props* and persist them."""
        self._super_props.register(props)

    def reset(self) -> None:
        """Fall back to the device identity and clear super properties."""
        self._identity.user_id = self._identity.client_id
        self._super_props.reset()

    def flush(self) -> int:
        """Dispatch queued events now if ready; return how many were sent."""
        return self._queue.flush()

    def people(self, operation: str, props: Any) -> None:
        """Apply ``$<operation>`` to the identified user's profile.

        Silently dropped when no user is identified. Updates issued before
        the client is ready are sent once it becomes ready.
        """
        self._people(operation, lambda: props)

    def people_set(self, props: Mapping[str, Any]) -> None:
        self._people("set", lambda: dict(props))

    def people_set_once(self, props: Mapping[str, Any]) -> None:
        self._people("set_once", lambda: dict(props))

    def people_increment(self, props: Mapping[str, int | float]) -> None:
        self._people("add", lambda: dict(props))

    def people_append(self, props: Mapping[str, Any]) -> None:
        self._people("append", lambda: dict(props))

    def people_unset(self, names: Sequence[str]) -> None:
        self._people("unset", lambda: [names] if isinstance(names, str) else list(names))

    def people_delete_user(self) -> None:
        self._people("delete", lambda: "")

    def _people(self, operation: str, props: Callable[[], Any]) -> None:
        try:
            update = build_profile_update(self._identity, operation, props())
        except (ValidationError, TypeError, ValueError):
            _logger.debug("Dropping malformed profile update $%s", operation, exc_info=True)
            return
        if update is None:
            return
        self._gate.add_listener(lambda: self._dispatch_profile(update))

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise MixpanelError("Client not started. Use 'async with MixpanelClient(...)' or call start()")
        return self._transport

    def _dispatch_event(self, event: Event) -> None:
        payload = build_event_payload(
            event,
            token=self._config.token,
            constants=self._constants,
            super_properties=self._super_props.properties,
            identity=self._identity,
            platform=self._device.platform,
            model=self._device.model,
        )
        transport = self._require_transport()
        self._spawn(send_event(self._config, transport, payload), f"event {event.name!r}")

    def _dispatch_profile(self, update: ProfileUpdate) -> None:
        transport = self._require_transport()
        self._spawn(send_profile_update(self._config, transport, update), f"profile ${update.operation}")

    def _spawn(self, send: Awaitable[int], label: str) -> None:
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self._deliver(send, label))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    @staticmethod
    async def _deliver(send: Awaitable[int], label: str) -> None:
        # Delivery is fire-and-forget: the outcome is only logged.
        try:
            status = await send
        except Exception:
            _logger.debug("Sending %s failed", label, exc_info=True)
            return
        _logger.debug("Sent %s status=%s", label, status)
