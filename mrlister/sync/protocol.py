"""
Sync Wire Protocol
==================
Typed JSON envelopes exchanged over the inventory sync socket.

Server → client:
    {"type": "connection", "message": "..."}              once, right after accept
    {"type": "inventory_update", "payload": {...}}         fan-out of a mutation

Client → server:
    {"type": "inventory_update", "payload": {"action": "add"|"update"|"delete",
                                             "itemId": 12, "data": {...},
                                             "timestamp": 1718000000000}}

itemId, data and timestamp are optional inbound. The server fills a missing
timestamp with the receipt time (milliseconds since epoch) before fan-out, so
every rebroadcast event carries one. Events are invalidation signals only:
receivers re-fetch inventory instead of applying data.
"""

import json
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..errors import MalformedEnvelopeError


CONNECTION = "connection"
INVENTORY_UPDATE = "inventory_update"

CONNECTION_MESSAGE = "Connected to MrLister sync server"


class InventoryAction(Enum):
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"


class ConnectionState(Enum):
    """connecting → open → closed"""
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class InventoryMutationEvent:
    """A "something changed, re-fetch" signal for one inventory item"""

    action: InventoryAction
    item_id: Optional[int] = None
    data: Optional[Dict[str, Any]] = None
    timestamp: Optional[float] = None

    @property
    def key(self):
        """Identity used for client-side coalescing"""
        return (self.action, self.item_id)

    def with_timestamp(self, timestamp: Optional[float] = None) -> "InventoryMutationEvent":
        """Copy stamped with timestamp (receipt time by default) unless one is already set"""
        if self.timestamp is not None:
            return self
        return InventoryMutationEvent(
            action=self.action,
            item_id=self.item_id,
            data=self.data,
            timestamp=timestamp if timestamp is not None else now_ms(),
        )

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"action": self.action.value}
        if self.item_id is not None:
            payload["itemId"] = self.item_id
        if self.data is not None:
            payload["data"] = self.data
        if self.timestamp is not None:
            payload["timestamp"] = self.timestamp
        return payload

    @classmethod
    def from_payload(cls, payload: Any) -> "InventoryMutationEvent":
        """
        Raises:
            MalformedEnvelopeError: If the payload is not a valid mutation
        """
        if not isinstance(payload, dict):
            raise MalformedEnvelopeError("inventory_update payload must be an object")

        try:
            action = InventoryAction(payload.get("action"))
        except ValueError:
            raise MalformedEnvelopeError(f"Unknown inventory action: {payload.get('action')!r}")

        item_id = payload.get("itemId")
        if item_id is not None and (isinstance(item_id, bool) or not isinstance(item_id, int)):
            raise MalformedEnvelopeError(f"itemId must be an integer, got {item_id!r}")

        data = payload.get("data")
        if data is not None and not isinstance(data, dict):
            raise MalformedEnvelopeError("data must be an object")

        timestamp = payload.get("timestamp")
        if timestamp is not None and (
            isinstance(timestamp, bool)
            or not isinstance(timestamp, (int, float))
            or not math.isfinite(timestamp)
        ):
            raise MalformedEnvelopeError(f"timestamp must be a finite number, got {timestamp!r}")

        return cls(action=action, item_id=item_id, data=data, timestamp=timestamp)


def _reject_constant(name: str):
    # NaN, Infinity and -Infinity are not valid JSON
    raise ValueError(f"Non-standard JSON constant: {name}")


def parse_envelope(raw: Any) -> Dict[str, Any]:
    """
    Decode one inbound frame into an envelope dict with a string "type".

    Raises:
        MalformedEnvelopeError: Not JSON, not an object, or no type
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            raise MalformedEnvelopeError("Frame is not valid UTF-8")

    try:
        envelope = json.loads(raw, parse_constant=_reject_constant)
    except (TypeError, ValueError):
        raise MalformedEnvelopeError("Frame is not valid JSON")

    if not isinstance(envelope, dict):
        raise MalformedEnvelopeError("Envelope must be a JSON object")

    if not isinstance(envelope.get("type"), str) or not envelope["type"]:
        raise MalformedEnvelopeError("Envelope is missing its type")

    return envelope


def event_from_envelope(envelope: Dict[str, Any]) -> InventoryMutationEvent:
    """
    Extract the mutation from an inventory_update envelope.

    Older web clients sent the mutation under "data" instead of
    "payload"; both are accepted.
    """
    payload = envelope.get("payload")
    if payload is None:
        payload = envelope.get("data")
    return InventoryMutationEvent.from_payload(payload)


def inventory_update_envelope(event: InventoryMutationEvent) -> str:
    return json.dumps({"type": INVENTORY_UPDATE, "payload": event.to_payload()})


def connection_envelope(message: str = CONNECTION_MESSAGE) -> str:
    return json.dumps({"type": CONNECTION, "message": message})
