"""Remote control of an already running server"""
import http.client
import logging
from base64 import b64encode

import requests
from urllib3.exceptions import ProtocolError

logger = logging.getLogger(__name__)

RELOAD_PATH = "/+reload"
EXIT_PATH = "/+exit"


def _auth_headers(credential):
    if not credential:
        return {}
    token = b64encode(credential.encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {token}"}


def _is_connection_reset(err):
    """True when the server dropped the connection while answering"""
    reason = err.args[0] if err.args else None
    if not isinstance(reason, ProtocolError):
        return False
    cause = reason.args[1] if len(reason.args) > 1 else None
    return isinstance(cause, (ConnectionResetError, http.client.RemoteDisconnected))


def _trigger(hostname, port, path, credential=None, timeout=10):
    url = f"http://{hostname}:{port}{path}"
    response = requests.get(url, headers=_auth_headers(credential), timeout=timeout)
    if not response.ok:
        logger.warning(f"[REMOTE] {url} answered {response.status_code}")
    return response


def trigger_reload(hostname, port, credential=None, timeout=10):
    """Ask the server at hostname:port to reload its clients"""
    logger.info(f"[REMOTE] Triggering reload to {hostname}:{port}.")
    _trigger(hostname, port, RELOAD_PATH, credential, timeout)


def trigger_exit(hostname, port, credential=None, timeout=10):
    """Ask the server at hostname:port to exit.

    The server may die before answering; a reset connection counts as
    success. Any other connection error propagates.
    """
    logger.info(f"[REMOTE] Triggering exit to {hostname}:{port}.")
    try:
        _trigger(hostname, port, EXIT_PATH, credential, timeout)
    except requests.exceptions.ConnectionError as e:
        if not _is_connection_reset(e):
            raise
        logger.debug(f"[REMOTE] Connection reset by {hostname}:{port}, server is gone")
