import asyncio
import json

import pytest

from mrlister.sync.client import SyncClient
from mrlister.sync.protocol import ConnectionState, InventoryAction, InventoryMutationEvent


class FakeSocket:
    """In-memory stand-in for a websockets client connection"""

    def __init__(self):
        self.incoming = asyncio.Queue()
        self.sent = []
        self.closed = False

    def push(self, message):
        self.incoming.put_nowait(message if isinstance(message, str) else json.dumps(message))

    def hang_up(self):
        self.incoming.put_nowait(None)

    async def send(self, message):
        if self.closed:
            raise ConnectionResetError("socket closed")
        self.sent.append(json.loads(message))

    async def close(self):
        self.closed = True
        self.incoming.put_nowait(None)

    def __aiter__(self):
        return self

    async def __anext__(self):
        message = await self.incoming.get()
        if message is None:
            raise StopAsyncIteration
        return message


class FakeConnector:
    def __init__(self, failures=0):
        self.failures = failures
        self.sockets = []
        self.calls = 0

    async def __call__(self, url):
        self.calls += 1
        if self.failures:
            self.failures -= 1
            raise ConnectionRefusedError("server down")
        socket = FakeSocket()
        self.sockets.append(socket)
        return socket


def update(action="update", item_id=1, timestamp=1000):
    return {"type": "inventory_update", "payload": {"action": action, "itemId": item_id, "timestamp": timestamp}}


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


def test_receives_updates_and_notifies_subscribers():
    async def scenario():
        connector = FakeConnector()
        client = SyncClient("ws://test/ws", connector=connector, base_delay=0, max_delay=0)
        seen = []
        client.subscribe(seen.append)

        assert await client.connect(timeout=1)
        assert client.is_connected

        socket = connector.sockets[0]
        socket.push({"type": "connection", "message": "hi"})
        socket.push(update("add", 5, 1000))
        await settle()

        await client.close()
        return client, seen

    client, seen = asyncio.run(scenario())
    assert [e.item_id for e in seen] == [5]
    assert client.last_inventory_update.action is InventoryAction.ADD
    assert client.state is ConnectionState.CLOSED


def test_consecutive_duplicates_are_coalesced():
    client = SyncClient("ws://test/ws", connector=FakeConnector())
    seen = []
    client.subscribe(seen.append)

    assert client.handle_message(json.dumps(update("update", 1, 1000))) is not None
    assert client.handle_message(json.dumps(update("update", 1, 1000))) is None
    assert client.handle_message(json.dumps(update("update", 1, 900))) is None
    assert client.handle_message(json.dumps(update("update", 1, 2000))) is not None
    assert client.handle_message(json.dumps(update("delete", 1, 1500))) is not None

    assert [e.timestamp for e in seen] == [1000, 2000, 1500]
    assert client.last_inventory_update.action is InventoryAction.DELETE


def test_bad_frames_and_failing_subscribers_do_not_break_client():
    client = SyncClient("ws://test/ws", connector=FakeConnector())

    def boom(event):
        raise RuntimeError("subscriber bug")

    seen = []
    client.subscribe(boom)
    client.subscribe(seen.append)

    assert client.handle_message("garbage") is None
    assert client.handle_message(json.dumps({"type": "mystery"})) is None
    assert client.handle_message(json.dumps(update())) is not None
    assert len(seen) == 1


def test_unsubscribe_stops_notifications():
    client = SyncClient("ws://test/ws", connector=FakeConnector())
    seen = []
    unsubscribe = client.subscribe(seen.append)
    unsubscribe()
    client.handle_message(json.dumps(update()))
    assert seen == []
    assert client.last_inventory_update is not None


def test_send_wraps_payload_in_envelope():
    async def scenario():
        connector = FakeConnector()
        client = SyncClient("ws://test/ws", connector=connector)
        await client.connect(timeout=1)
        sent_dict = await client.send({"action": "add", "itemId": 3})
        sent_event = await client.send(InventoryMutationEvent(InventoryAction.DELETE, 4, timestamp=55))
        await client.close()
        return connector.sockets[0].sent, sent_dict, sent_event

    sent, sent_dict, sent_event = asyncio.run(scenario())
    assert sent_dict and sent_event
    assert sent == [
        {"type": "inventory_update", "payload": {"action": "add", "itemId": 3}},
        {"type": "inventory_update", "payload": {"action": "delete", "itemId": 4, "timestamp": 55}},
    ]


def test_send_while_disconnected_returns_false():
    async def scenario():
        client = SyncClient("ws://test/ws", connector=FakeConnector())
        return await client.send({"action": "add"})

    assert asyncio.run(scenario()) is False


def test_reconnects_after_server_hangs_up():
    async def scenario():
        connector = FakeConnector()
        client = SyncClient("ws://test/ws", connector=connector, base_delay=0, max_delay=0)
        states = []
        client.add_state_listener(states.append)

        await client.connect(timeout=1)
        connector.sockets[0].hang_up()
        await settle()
        assert await client.wait_connected(1)

        connector.sockets[1].push(update("add", 9, 10))
        await settle()
        await client.close()
        return client, connector, states

    client, connector, states = asyncio.run(scenario())
    assert connector.calls == 2
    assert client.reconnect_attempts == 1
    assert client.last_inventory_update.item_id == 9
    assert states[:4] == [
        ConnectionState.CONNECTING,
        ConnectionState.OPEN,
        ConnectionState.CLOSED,
        ConnectionState.CONNECTING,
    ]


def test_connect_failures_are_retried():
    async def scenario():
        connector = FakeConnector(failures=2)
        client = SyncClient("ws://test/ws", connector=connector, base_delay=0, max_delay=0)
        connected = await client.connect(timeout=1)
        await client.close()
        return connected, connector

    connected, connector = asyncio.run(scenario())
    assert connected
    assert connector.calls == 3


def test_no_reconnect_when_disabled():
    async def scenario():
        connector = FakeConnector()
        client = SyncClient("ws://test/ws", connector=connector, auto_reconnect=False)
        await client.connect(timeout=1)
        connector.sockets[0].hang_up()
        await settle()
        state = client.state
        await client.close()
        return state, connector

    state, connector = asyncio.run(scenario())
    assert state is ConnectionState.CLOSED
    assert connector.calls == 1


@pytest.mark.parametrize("attempt", [0, 1, 5, 50, 10_000])
def test_backoff_is_bounded(attempt):
    client = SyncClient("ws://test/ws", connector=FakeConnector(), base_delay=0.5, max_delay=30)
    delay = client.backoff_delay(attempt)
    assert 0 <= delay <= 30
    assert delay >= min(30, 0.5 * 2 ** min(attempt, 16)) * 0.5
