"""
Inventory Sync Channel
======================
Server side of the real-time inventory sync socket.

Every client holds one connection. When a client announces a mutation, the hub
stamps it and forwards it to every *other* open connection in this process.

Key properties:
- Per-connection outbound queue drained by its own sender task, so one slow
  client never holds up delivery to the rest and send order is preserved
- A full queue drops the event for that client only (at-most-once delivery;
  clients re-fetch inventory anyway)
- Fan-out iterates a snapshot of the registry; only serve() adds or removes
  connections
- Bad frames are dropped and logged, never close the socket
"""

import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional

from ..config import Config
from ..errors import MalformedEnvelopeError
from .protocol import (
    INVENTORY_UPDATE,
    ConnectionState,
    InventoryAction,
    InventoryMutationEvent,
    connection_envelope,
    event_from_envelope,
    inventory_update_envelope,
    parse_envelope,
)

logger = logging.getLogger(__name__)


class SyncConnection:
    """
    One live client socket.

    websocket only needs an async send_text(str); serve() feeds inbound frames.
    """

    def __init__(self, websocket: Any, queue_size: int):
        self.connection_id = uuid.uuid4().hex[:8]
        self.websocket = websocket
        self.state = ConnectionState.CONNECTING
        self.last_event: Optional[InventoryMutationEvent] = None
        self._outbound: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._sender: Optional[asyncio.Task] = None

    @property
    def is_open(self) -> bool:
        return self.state == ConnectionState.OPEN

    def open(self):
        """Handshake done: start draining the outbound queue"""
        self.state = ConnectionState.OPEN
        self._sender = asyncio.create_task(self._drain())

    def enqueue(self, message: str) -> bool:
        """Queue a frame for delivery; False when closed or backed up"""
        if not self.is_open:
            return False
        try:
            self._outbound.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning("Sync connection %s is backed up; dropping event", self.connection_id)
            return False
        return True

    async def _drain(self):
        while True:
            message = await self._outbound.get()
            try:
                await self.websocket.send_text(message)
            except Exception as e:
                # Transport is gone; serve() will see the disconnect and unregister us
                logger.info("Sync connection %s send failed: %s", self.connection_id, e)
                self.state = ConnectionState.CLOSED
                return

    async def close(self):
        self.state = ConnectionState.CLOSED
        if self._sender is not None:
            self._sender.cancel()
            try:
                await self._sender
            except asyncio.CancelledError:
                pass
            self._sender = None


class SyncHub:
    """
    Registry of live connections plus fan-out.

    One hub per server process (the FastAPI app creates it).
    """

    def __init__(self, queue_size: Optional[int] = None):
        self.queue_size = queue_size or Config.SYNC_OUTBOUND_QUEUE_SIZE
        self._connections: Dict[str, SyncConnection] = {}

    @property
    def connections(self) -> List[SyncConnection]:
        """Snapshot of registered connections"""
        return list(self._connections.values())

    def open_connections(self) -> List[SyncConnection]:
        return [conn for conn in self.connections if conn.is_open]

    async def serve(self, websocket: Any):
        """
        Run one Starlette/FastAPI WebSocket until it disconnects.

        Sends the connection acknowledgement, then relays inbound mutations.
        """
        conn = SyncConnection(websocket, self.queue_size)
        await websocket.accept()

        conn.open()
        self._connections[conn.connection_id] = conn
        conn.enqueue(connection_envelope())
        logger.info("Sync client %s connected (%d open)", conn.connection_id, len(self._connections))

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes")
                self.handle_message(conn, raw)
        finally:
            self._connections.pop(conn.connection_id, None)
            await conn.close()
            logger.info("Sync client %s disconnected (%d open)", conn.connection_id, len(self._connections))

    def handle_message(self, sender: SyncConnection, raw: Any) -> Optional[InventoryMutationEvent]:
        """
        Validate one inbound frame and fan it out.

        Returns:
            The stamped event that was broadcast, or None if the frame was dropped
        """
        try:
            envelope = parse_envelope(raw)
            if envelope["type"] != INVENTORY_UPDATE:
                logger.debug("Ignoring %r envelope from %s", envelope["type"], sender.connection_id)
                return None
            event = event_from_envelope(envelope).with_timestamp()
        except MalformedEnvelopeError as e:
            logger.warning("Dropping frame from %s: %s", sender.connection_id, e)
            return None

        self.broadcast(event, exclude=sender)
        return event

    def broadcast(self, event: InventoryMutationEvent, exclude: Optional[SyncConnection] = None) -> int:
        """
        Queue an event on every open connection except `exclude`.

        Returns:
            Number of connections the event was queued on
        """
        event = event.with_timestamp()
        message = inventory_update_envelope(event)
        delivered = 0

        for conn in self.connections:
            if conn is exclude or not conn.is_open:
                continue
            if conn.enqueue(message):
                conn.last_event = event
                delivered += 1

        logger.debug("Broadcast %s item=%s to %d client(s)", event.action.value, event.item_id, delivered)
        return delivered

    def announce(
        self,
        action: InventoryAction,
        item_id: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> int:
        """Broadcast a server-side mutation to every open connection"""
        return self.broadcast(InventoryMutationEvent(InventoryAction(action), item_id, data))
