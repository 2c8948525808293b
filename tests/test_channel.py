import asyncio
import gc

from tornado.websocket import WebSocketClosedError

from runna.channel import ClientRegistry, ReloadSocketHandler


class FakeConnection:
    def __init__(self, is_open=True):
        self.is_open = is_open
        self.sent = []

    def send(self, message):
        self.sent.append(message)


def test_broadcast_reaches_open_connections_only():
    registry = ClientRegistry()
    open_clients = [FakeConnection() for _ in range(3)]
    closed = FakeConnection(is_open=False)
    for conn in open_clients + [closed]:
        registry.add(conn)

    assert registry.broadcast("reload") == 3
    assert all(conn.sent == ["reload"] for conn in open_clients)
    assert closed.sent == []


def test_broadcast_without_clients_is_noop():
    assert ClientRegistry().broadcast("reload") == 0


def test_ids_are_unique_and_discard_removes():
    registry = ClientRegistry()
    first = registry.add(FakeConnection())
    second = registry.add(FakeConnection())

    assert first != second
    registry.discard(first)
    registry.discard(first)
    assert len(registry) == 1


def test_connection_removed_during_broadcast():
    registry = ClientRegistry()

    class ClosingConnection(FakeConnection):
        def send(self, message):
            super().send(message)
            registry.discard(self.client_id)

    conns = [ClosingConnection(), ClosingConnection()]
    for conn in conns:
        conn.client_id = registry.add(conn)

    assert registry.broadcast("reload") == 2
    assert len(registry) == 0


def test_write_failure_after_close_is_consumed():
    loop = asyncio.new_event_loop()
    errors = []
    loop.set_exception_handler(lambda loop, context: errors.append(context))
    try:
        future = loop.create_future()
        handler = ReloadSocketHandler.__new__(ReloadSocketHandler)
        handler.client_id = 1
        handler.write_message = lambda message: future

        handler.send("reload")
        future.set_exception(WebSocketClosedError())
        loop.run_until_complete(asyncio.sleep(0))

        del handler, future
        gc.collect()
    finally:
        loop.close()

    assert errors == []
