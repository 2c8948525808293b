"""Reload channel: WebSocket clients waiting for a reload signal"""
import itertools
import logging

from tornado.websocket import WebSocketClosedError, WebSocketHandler

logger = logging.getLogger(__name__)

RELOAD_MESSAGE = "reload"


class ClientRegistry:
    """Open client connections keyed by an opaque id.

    A connection needs an ``is_open`` attribute and a ``send(message)``
    method.
    """

    def __init__(self):
        self._clients = {}
        self._ids = itertools.count(1)

    def add(self, connection):
        client_id = next(self._ids)
        self._clients[client_id] = connection
        return client_id

    def discard(self, client_id):
        self._clients.pop(client_id, None)

    def __len__(self):
        return len(self._clients)

    def __iter__(self):
        return iter(list(self._clients.values()))

    def broadcast(self, message):
        """Send message to every open connection, return how many got it"""
        sent = 0
        for connection in self:
            if not connection.is_open:
                continue
            connection.send(message)
            sent += 1
        return sent


class ReloadSocketHandler(WebSocketHandler):
    """Browser side of the reload channel, one per open page"""

    def initialize(self, registry):
        self.registry = registry
        self.client_id = None

    def check_origin(self, origin):
        # Pages are served from the main port, one below this one.
        return True

    def open(self, *args, **kwargs):
        self.client_id = self.registry.add(self)
        logger.debug(f"[RELOAD] Client {self.client_id} connected ({len(self.registry)} open)")

    def on_message(self, message):
        pass

    def on_close(self):
        self.registry.discard(self.client_id)
        logger.debug(f"[RELOAD] Client {self.client_id} disconnected")

    @property
    def is_open(self):
        return self.ws_connection is not None and not self.ws_connection.is_closing()

    def send(self, message):
        try:
            future = self.write_message(message)
        except WebSocketClosedError:
            logger.debug(f"[RELOAD] Client {self.client_id} closed before send")
            return
        future.add_done_callback(self._write_done)

    def _write_done(self, future):
        if future.cancelled():
            return
        err = future.exception()
        if isinstance(err, WebSocketClosedError):
            logger.debug(f"[RELOAD] Client {self.client_id} closed during send")
        elif err is not None:
            logger.warning(f"[RELOAD] Send to client {self.client_id} failed: {err}")
