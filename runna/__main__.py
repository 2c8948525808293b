#!/usr/bin/env python3
"""
Runna development server
Usage: python -m runna [-H host] [-p port] [-w dir] [-a user:pass] [-r | -x]
"""
import argparse
import logging
import sys

import requests

from . import __version__
from .remote import trigger_exit, trigger_reload
from .server import DEFAULT_HOSTNAME, DEFAULT_PORT, DevServer, ServerConfig

logger = logging.getLogger("runna")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="runna",
        description="Serve a directory with live reload.",
    )
    parser.add_argument("-H", "--hostname", default=DEFAULT_HOSTNAME, help="host to bind or contact")
    parser.add_argument("-p", "--port", type=int, default=DEFAULT_PORT, help="main port, reload channel uses port + 1")
    parser.add_argument("-w", "--cwd", default=None, help="directory to serve (default: current directory)")
    parser.add_argument("-a", "--auth", default=None, metavar="USER:PASS", help="require this credential")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("-r", "--reload", action="store_true", help="reload the clients of a running server")
    mode.add_argument("-x", "--exit", action="store_true", help="stop a running server")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    config = ServerConfig.create(
        hostname=args.hostname,
        port=args.port,
        cwd=args.cwd,
        credential=args.auth,
    )

    if args.reload or args.exit:
        action = trigger_reload if args.reload else trigger_exit
        try:
            action(config.hostname, config.port, credential=config.credential)
        except requests.exceptions.RequestException as e:
            logger.error(f"[REMOTE] Request failed: {e}")
            return 1
        return 0

    server = DevServer(config)
    try:
        server.serve()
    except KeyboardInterrupt:
        logger.info("[SERVER] Stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
