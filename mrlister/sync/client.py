"""
Inventory Sync Client
=====================
Reconnecting consumer of the inventory sync socket.

Usage:
    client = SyncClient("ws://localhost:8000/ws")
    client.subscribe(lambda event: refresh_inventory())
    await client.connect()
    await client.send({"action": "update", "itemId": 12})
    ...
    await client.close()

Only the most recent update is kept (last_inventory_update). Consecutive
events for the same (action, item) collapse into one slot carrying the newest
timestamp; a repeat with the same or an older timestamp is dropped without
notifying subscribers. Subscribers should re-fetch inventory rather than apply
event.data, which is display-only.

Transport failures never raise out of send(); they show up as state changes
and trigger a reconnect with bounded exponential backoff.
"""

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import websockets
from websockets.exceptions import WebSocketException

from ..config import Config
from ..errors import ChannelTransportError, MalformedEnvelopeError
from .protocol import (
    CONNECTION,
    INVENTORY_UPDATE,
    ConnectionState,
    InventoryMutationEvent,
    event_from_envelope,
    inventory_update_envelope,
    parse_envelope,
)

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[InventoryMutationEvent], None]
StateCallback = Callable[[ConnectionState], None]
Connector = Callable[[str], Awaitable[Any]]

_TRANSPORT_ERRORS = (OSError, asyncio.TimeoutError, WebSocketException)

# 2**16 × base is already far past any sane max delay
_MAX_BACKOFF_EXPONENT = 16


class SyncClient:
    """
    One sync connection with explicit connect()/close() lifecycle.

    Args:
        url: Sync socket URL (defaults to Config.SYNC_URL)
        connector: Coroutine opening a socket for a URL; defaults to websockets.connect.
            The socket must support send(str), close() and async iteration over frames.
        auto_reconnect: Reconnect after the socket closes
        base_delay: First reconnect delay in seconds
        max_delay: Upper bound for the reconnect delay
    """

    def __init__(
        self,
        url: Optional[str] = None,
        connector: Optional[Connector] = None,
        auto_reconnect: bool = True,
        base_delay: Optional[float] = None,
        max_delay: Optional[float] = None,
    ):
        self.url = url or Config.SYNC_URL
        self.connector = connector or websockets.connect
        self.auto_reconnect = auto_reconnect
        self.base_delay = Config.SYNC_RECONNECT_BASE_DELAY if base_delay is None else base_delay
        self.max_delay = Config.SYNC_RECONNECT_MAX_DELAY if max_delay is None else max_delay

        self.state = ConnectionState.CLOSED
        self.last_inventory_update: Optional[InventoryMutationEvent] = None
        self.reconnect_attempts = 0

        self._subscribers: List[UpdateCallback] = []
        self._state_listeners: List[StateCallback] = []
        self._socket: Any = None
        self._task: Optional[asyncio.Task] = None
        self._closing = False
        self._opened = asyncio.Event()

    @property
    def is_connected(self) -> bool:
        return self.state == ConnectionState.OPEN

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, callback: UpdateCallback) -> Callable[[], None]:
        """Call `callback` for every accepted inventory update; returns an unsubscribe function"""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def add_state_listener(self, callback: StateCallback):
        self._state_listeners.append(callback)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self, timeout: Optional[float] = None) -> bool:
        """
        Start the connection loop.

        Args:
            timeout: If given, wait up to this many seconds for the socket to open

        Returns:
            Whether the client is connected when this returns
        """
        if self._task is None or self._task.done():
            self._closing = False
            self._task = asyncio.create_task(self._run())

        if timeout is not None:
            return await self.wait_connected(timeout)
        return self.is_connected

    async def wait_connected(self, timeout: Optional[float] = None) -> bool:
        try:
            await asyncio.wait_for(self._opened.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def close(self):
        """Stop reconnecting and close the socket"""
        self._closing = True

        if self._socket is not None:
            try:
                await self._socket.close()
            except _TRANSPORT_ERRORS as e:
                logger.debug("Error while closing sync socket: %s", e)

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        self._set_state(ConnectionState.CLOSED)

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send(self, update: Union[InventoryMutationEvent, Dict[str, Any]]) -> bool:
        """
        Announce a local mutation to the other clients.

        Args:
            update: Event, or a payload dict like {"action": "add", "itemId": 3}

        Returns:
            False if the client is not connected or the send failed
        """
        event = update if isinstance(update, InventoryMutationEvent) else InventoryMutationEvent.from_payload(update)

        socket = self._socket
        if not self.is_connected or socket is None:
            logger.warning("Cannot send inventory update, sync socket is not connected")
            return False

        try:
            await socket.send(inventory_update_envelope(event))
        except _TRANSPORT_ERRORS as e:
            logger.warning("Sending inventory update failed: %s", e)
            return False
        return True

    # ------------------------------------------------------------------
    # Receiving
    # ------------------------------------------------------------------

    def handle_message(self, raw: Any) -> Optional[InventoryMutationEvent]:
        """
        Process one inbound frame.

        Returns:
            The accepted event, or None if the frame was not a new inventory update
        """
        try:
            envelope = parse_envelope(raw)
            if envelope["type"] == CONNECTION:
                logger.info("Sync server: %s", envelope.get("message", ""))
                return None
            if envelope["type"] != INVENTORY_UPDATE:
                logger.debug("Unhandled sync message type: %s", envelope["type"])
                return None
            event = event_from_envelope(envelope)
        except MalformedEnvelopeError as e:
            logger.warning("Ignoring sync message: %s", e)
            return None

        if not self._accept(event):
            return None

        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception("Inventory update subscriber failed")
        return event

    def _accept(self, event: InventoryMutationEvent) -> bool:
        last = self.last_inventory_update
        if last is not None and last.key == event.key:
            if (event.timestamp or 0) <= (last.timestamp or 0):
                return False
        self.last_inventory_update = event
        return True

    # ------------------------------------------------------------------
    # Connection loop
    # ------------------------------------------------------------------

    def backoff_delay(self, attempt: int) -> float:
        """Exponential delay for the given reconnect attempt, capped and jittered"""
        delay = min(self.max_delay, self.base_delay * (2 ** min(attempt, _MAX_BACKOFF_EXPONENT)))
        return delay * random.uniform(0.5, 1.0)

    async def _open_socket(self):
        try:
            return await self.connector(self.url)
        except _TRANSPORT_ERRORS as e:
            raise ChannelTransportError(f"Could not connect to {self.url}: {e}") from e

    async def _receive(self, socket):
        try:
            async for raw in socket:
                self.handle_message(raw)
        except _TRANSPORT_ERRORS as e:
            raise ChannelTransportError(f"Sync socket failed: {e}") from e

    async def _run(self):
        attempt = 0
        while not self._closing:
            self._set_state(ConnectionState.CONNECTING)
            try:
                self._socket = await self._open_socket()
                self._set_state(ConnectionState.OPEN)
                attempt = 0
                await self._receive(self._socket)
            except ChannelTransportError as e:
                logger.warning("%s", e)
            finally:
                self._socket = None
                self._set_state(ConnectionState.CLOSED)

            if self._closing or not self.auto_reconnect:
                break

            delay = self.backoff_delay(attempt)
            attempt += 1
            self.reconnect_attempts += 1
            logger.info("Reconnecting to sync server in %.1fs (attempt %d)", delay, attempt)
            await asyncio.sleep(delay)

    def _set_state(self, state: ConnectionState):
        if state == self.state:
            return
        self.state = state
        if state == ConnectionState.OPEN:
            self._opened.set()
        else:
            self._opened.clear()

        for listener in list(self._state_listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Sync state listener failed")
