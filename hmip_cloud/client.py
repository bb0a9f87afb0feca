"""
HomematicClient — entry point of the library.

Responsibilities:
- Own the Config, the shared aiohttp session and the HandlerRegistry.
- Resolve endpoints and keep them current on the Config.
- Fetch and decode full-state snapshots.
- Run the EventStream with the standard authenticated websocket headers.
"""
from __future__ import annotations

import logging

import aiohttp

from .api.auth import get_standard_headers
from .api.hosts import Endpoints, lookup_endpoints
from .api.state import fetch_current_state
from .config import Config, load_config
from .const import WEBSOCKET_HEARTBEAT
from .decoder import decode_state
from .dispatcher import HandlerRegistration, HandlerRegistry
from .errors import HmipError
from .models import EventHandler
from .state import State
from .stream import EventStream, StreamState

_LOGGER = logging.getLogger(__name__)


class HomematicClient:
    """Client for one HomematicIP installation."""

    def __init__(self, config: Config, session: aiohttp.ClientSession | None = None) -> None:
        self.config = config
        self._session = session
        self._owns_session = session is None
        self._registry = HandlerRegistry()
        self._stream = EventStream(
            self._registry,
            resolve=self.resolve_endpoints,
            connect=self._open_websocket,
        )

    async def __aenter__(self) -> "HomematicClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Endpoints & state
    # ------------------------------------------------------------------

    async def resolve_endpoints(self) -> Endpoints:
        """Look up the current endpoints and store them on the config."""
        endpoints = await lookup_endpoints(self.config, session=self._get_session())
        self.config.rest_endpoint = endpoints.rest
        self.config.websocket_endpoint = endpoints.websocket
        return endpoints

    async def load_current_state(self) -> State:
        """
        Fetch and decode a full snapshot of the installation.

        Failed requests are retried once after re-resolving the endpoints;
        the last error is raised after that.
        """
        raw_json = await fetch_current_state(
            self.config, self.resolve_endpoints, session=self._get_session()
        )
        return decode_state(raw_json)

    # ------------------------------------------------------------------
    # Event stream
    # ------------------------------------------------------------------

    def register_event_handler(self, handler: EventHandler, *event_types: str) -> HandlerRegistration:
        """Call handler(event, origin) for events of the given types (all, if none)."""
        return self._registry.register(handler, *event_types)

    async def listen_for_events(self) -> None:
        """Run the event stream until stop_event_listening() is called."""
        self._stream.endpoint = self.config.websocket_endpoint or None
        await self._stream.listen()

    async def stop_event_listening(self) -> None:
        await self._stream.stop()

    def stop_event_listening_threadsafe(self):
        return self._stream.stop_threadsafe()

    @property
    def last_stream_error(self) -> HmipError | None:
        return self._stream.last_error

    @property
    def stream_state(self) -> StreamState:
        return self._stream.state

    async def _open_websocket(self, url: str) -> aiohttp.ClientWebSocketResponse:
        return await self._get_session().ws_connect(
            url,
            headers=get_standard_headers(self.config),
            heartbeat=WEBSOCKET_HEARTBEAT,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Stop the event stream and release the HTTP session if we created it."""
        await self._stream.stop()
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


async def create_client(
    config: Config | None = None, session: aiohttp.ClientSession | None = None
) -> HomematicClient:
    """
    Build a client and resolve its endpoints.

    The configuration is loaded from the environment when none is given.
    Raises ResolutionError when the endpoints cannot be looked up.
    """
    if config is None:
        config = load_config()
    client = HomematicClient(config, session=session)
    try:
        await client.resolve_endpoints()
    except HmipError:
        await client.close()
        raise
    return client
