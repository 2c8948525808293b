"""Optional HTTP Basic style access gate"""
import binascii
import hmac
from base64 import b64decode

CHALLENGE = 'Basic realm="401"'
DENIED_MESSAGE = "Access denied."


def decode_credential(header):
    """Decode the last token of an Authorization header.

    Returns None when the token is not valid base64.
    """
    parts = (header or "").split()
    token = parts[-1] if parts else ""
    try:
        return b64decode(token, validate=True)
    except (binascii.Error, ValueError):
        return None


def credentials_match(provided, expected):
    """Constant-time comparison of two byte strings"""
    return hmac.compare_digest(provided, expected)


def authorize(header, credential):
    """Check an Authorization header against the configured credential.

    An unset or empty credential disables the gate.
    """
    if not credential:
        return True

    provided = decode_credential(header)
    if provided is None:
        return False
    return credentials_match(provided, credential.encode("utf-8"))
