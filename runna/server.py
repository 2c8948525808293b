"""Development server: configuration, routing and lifecycle"""
import logging
import os
from dataclasses import dataclass
from typing import Optional

from tornado.httpserver import HTTPServer
from tornado.ioloop import IOLoop
from tornado.web import Application

from . import __version__
from .channel import RELOAD_MESSAGE, ClientRegistry, ReloadSocketHandler
from .handlers import (
    STATIC_FRAGMENT,
    STATIC_PATH,
    ContentHandler,
    ExitHandler,
    ReloadHandler,
    StaticAssetHandler,
)

logger = logging.getLogger(__name__)

DEFAULT_HOSTNAME = "localhost"
DEFAULT_PORT = 8000


@dataclass(frozen=True)
class ServerConfig:
    hostname: str = DEFAULT_HOSTNAME
    port: int = DEFAULT_PORT
    root: str = ""
    credential: Optional[str] = None

    @classmethod
    def create(cls, hostname=None, port=None, cwd=None, credential=None):
        """Build a config, resolving cwd against the current directory"""
        return cls(
            hostname=hostname or DEFAULT_HOSTNAME,
            port=DEFAULT_PORT if port is None else port,
            root=os.path.abspath(cwd or os.getcwd()),
            credential=credential or None,
        )

    @property
    def channel_port(self):
        return self.port + 1


class DevServer:
    """One running instance: main site plus its reload channel.

    Every handler gets this object as ``context``, which owns the client
    registry, so instances are independent of each other.
    """

    def __init__(self, config, template_path=None, exit_func=os._exit):
        self.config = config
        self.registry = ClientRegistry()
        self.template_path = template_path or os.path.join(STATIC_PATH, "index.html")
        self.exit_func = exit_func
        self.http_server = None
        self.channel_server = None

    def make_app(self):
        context = dict(context=self)
        return Application([
            (rf"/{STATIC_FRAGMENT}/(.*)", StaticAssetHandler, context),
            (r"/\+reload(?:/.*)?", ReloadHandler, context),
            (r"/\+exit(?:/.*)?", ExitHandler, context),
            (r"/(.*)", ContentHandler, context),
        ])

    def make_channel_app(self):
        return Application([
            (r"/.*", ReloadSocketHandler, dict(registry=self.registry)),
        ])

    def listen(self):
        """Bind both endpoints, return False if the main port is unavailable"""
        host = f"{self.config.hostname}:{self.config.port}"
        try:
            self.http_server = HTTPServer(self.make_app())
            self.http_server.listen(self.config.port, self.config.hostname)
        except OSError as e:
            logger.error(f"[SERVER] Unable to start server on port {self.config.port}. ({e})")
            self.http_server = None
            return False

        logger.info(f"[SERVER] Listening at {host} ({self.config.root})...")

        try:
            self.channel_server = HTTPServer(self.make_channel_app())
            self.channel_server.listen(self.config.channel_port, self.config.hostname)
        except OSError as e:
            logger.error(f"[SERVER] Unable to start server on port {self.config.channel_port}. ({e})")
            self.channel_server = None

        return True

    def serve(self):
        """Listen and run the IOLoop until the process exits"""
        logger.info(f"[SERVER] Runna webserver version {__version__}.")
        started = self.listen()
        IOLoop.current().start()
        return started

    def reload_clients(self):
        logger.info("[RELOAD] Reloading.")
        sent = self.registry.broadcast(RELOAD_MESSAGE)
        logger.debug(f"[RELOAD] Sent to {sent} of {len(self.registry)} clients")
        return sent

    def shutdown(self):
        """Terminate the process immediately, open connections are not drained"""
        self.exit_func(0)
