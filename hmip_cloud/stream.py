"""
EventStream — resilient websocket push-event client.

Responsibilities:
- Own the websocket connection for the lifetime of a listen() call.
- Decode every inbound frame into a PushMessage and hand it to the
  HandlerRegistry before reading the next frame.
- Drive the reconnect state machine:

    IDLE → CONNECTING → LISTENING ─(read failure)→ ERROR → RECONNECTING
                ↑                                              │
                └──── endpoint changed: at once / otherwise after RECONNECT_DELAY

  Any state ends in STOPPED once stop() is called. Retries are unbounded.
- Stop promptly from any task (or thread) by closing the websocket, which
  is what unblocks the pending receive().
"""
from __future__ import annotations

import asyncio
import concurrent.futures
import contextlib
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

import aiohttp

from .api.hosts import Endpoints
from .const import RECONNECT_DELAY
from .decoder import decode_push_message
from .dispatcher import HandlerRegistry
from .errors import AlreadyRunningError, DecodeError, HmipError, ResolutionError, TransportError

_LOGGER = logging.getLogger(__name__)


class StreamState(str, Enum):
    """Lifecycle states of an EventStream."""

    IDLE = "idle"
    CONNECTING = "connecting"
    LISTENING = "listening"
    ERROR = "error"
    RECONNECTING = "reconnecting"
    STOPPED = "stopped"


_RUNNING_STATES = frozenset(
    {StreamState.CONNECTING, StreamState.LISTENING, StreamState.ERROR, StreamState.RECONNECTING}
)

_DATA_FRAMES = frozenset({aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY})
_CLOSE_FRAMES = frozenset(
    {aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED}
)


class EventStream:
    """
    Push-event stream of one HomematicIP installation.

    ``resolve`` looks up fresh endpoints and ``connect`` opens an aiohttp
    websocket (or anything with the same receive/close/closed/exception
    surface) for a URL. A stopped stream may be started again.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        resolve: Callable[[], Awaitable[Endpoints]],
        connect: Callable[[str], Awaitable[Any]],
        endpoint: str | None = None,
        reconnect_delay: float = RECONNECT_DELAY,
    ) -> None:
        self._registry = registry
        self._resolve = resolve
        self._connect = connect
        self.endpoint = endpoint or None
        self.reconnect_delay = reconnect_delay

        self._state = StreamState.IDLE
        self._last_error: HmipError | None = None
        self._attempted_endpoint: str | None = None

        # Shared with stop(): the open websocket and the stop signal
        self._ws = None
        self._stopping = False
        self._stop_event: asyncio.Event | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def last_error(self) -> HmipError | None:
        """Most recent transient error of the loop, or None."""
        return self._last_error

    @property
    def is_running(self) -> bool:
        return self._state in _RUNNING_STATES

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    async def listen(self) -> None:
        """
        Connect and dispatch push events until stop() is called.

        Blocks for the lifetime of the stream; run it as its own task.
        Transport, lookup and decode failures never escape: they are logged,
        exposed via last_error and healed by reconnecting.
        """
        if self.is_running:
            raise AlreadyRunningError("Event loop already running")

        self._state = StreamState.CONNECTING
        self._stopping = False
        self._stop_event = asyncio.Event()
        self._loop = asyncio.get_running_loop()
        self._last_error = None

        try:
            while not self._stopping:
                try:
                    await self._connect_and_listen()
                except (TransportError, ResolutionError) as e:
                    if self._stopping:
                        break
                    self._last_error = e
                    self._state = StreamState.ERROR
                    _LOGGER.warning("Error in event loop: %s", e)
                    await self._prepare_reconnect()
        finally:
            await self._close_websocket()
            self._state = StreamState.STOPPED
            _LOGGER.info("Event loop stopped")

    async def stop(self) -> None:
        """
        Request the stream to stop and close the websocket.

        Idempotent: calling it on an idle, stopping or stopped stream is a
        no-op.
        """
        if not self.is_running or self._stopping:
            return
        self._stopping = True
        self._stop_event.set()
        await self._close_websocket()

    def stop_threadsafe(self) -> concurrent.futures.Future | None:
        """Schedule stop() on the stream's event loop from another thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return None
        coro = self.stop()
        try:
            return asyncio.run_coroutine_threadsafe(coro, loop)
        except RuntimeError:
            # Loop closed after the check above
            coro.close()
            return None

    # ------------------------------------------------------------------
    # Connecting / Listening
    # ------------------------------------------------------------------

    async def _connect_and_listen(self) -> None:
        """One connection attempt; returns normally only after a stop request."""
        self._state = StreamState.CONNECTING
        self._last_error = None

        if not self.endpoint:
            await self._resolve_endpoint()
            if self._stopping:
                return

        endpoint = self.endpoint
        self._attempted_endpoint = endpoint
        try:
            ws = await self._connect(endpoint)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise TransportError(f"Failed to connect to {endpoint}: {e}") from e

        if self._stopping:
            # stop() arrived while the connection was being opened
            await ws.close()
            return

        self._ws = ws
        self._state = StreamState.LISTENING
        _LOGGER.info("Established connection to %s", endpoint)
        try:
            await self._read_loop(ws)
        finally:
            self._ws = None
            if not ws.closed:
                await ws.close()
            _LOGGER.info("Closing connection to %s", endpoint)

    async def _read_loop(self, ws) -> None:
        while True:
            try:
                msg = await ws.receive()
            except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
                if self._stopping:
                    return
                raise TransportError(f"Reading from websocket failed: {e}") from e

            if msg.type in _DATA_FRAMES:
                await self._handle_frame(msg.data)
                continue

            if self._stopping:
                # Closed by stop(); not an error
                return
            if msg.type == aiohttp.WSMsgType.ERROR:
                raise TransportError(f"websocket error: {ws.exception()}")
            if msg.type in _CLOSE_FRAMES:
                raise TransportError("websocket closed")

    async def _handle_frame(self, data: str | bytes) -> None:
        try:
            message = decode_push_message(data)
        except DecodeError as e:
            self._last_error = e
            _LOGGER.warning("Skipping undecodable push message: %s", e)
            return
        await self._registry.dispatch(message)

    # ------------------------------------------------------------------
    # Reconnecting
    # ------------------------------------------------------------------

    async def _resolve_endpoint(self) -> None:
        endpoints = await self._resolve()
        self.endpoint = endpoints.websocket

    async def _prepare_reconnect(self) -> None:
        """
        Re-resolve endpoints; return at once when the websocket endpoint has
        moved, otherwise wait reconnect_delay (or until stop()).
        """
        self._state = StreamState.RECONNECTING
        _LOGGER.info("Looking up endpoints again")
        try:
            await self._resolve_endpoint()
        except ResolutionError as e:
            self._last_error = e
            _LOGGER.warning("Error during host lookup: %s", e)
        else:
            if self.endpoint != self._attempted_endpoint:
                _LOGGER.info(
                    "Switching websocket endpoint to %s, restarting event loop", self.endpoint
                )
                return

        if self._stopping:
            return
        _LOGGER.warning("Restarting event loop in %s seconds", self.reconnect_delay)
        await self._wait_before_retry(self.reconnect_delay)

    async def _wait_before_retry(self, delay: float) -> None:
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)

    async def _close_websocket(self) -> None:
        ws = self._ws
        if ws is not None and not ws.closed:
            await ws.close()
