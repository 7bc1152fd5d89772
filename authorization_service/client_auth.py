"""
Client credentials for the token endpoint. RFC 6749 §2.3.1.
Credentials via client_id + client_secret in the body, or Authorization: Basic base64(client_id:client_secret).
"""
import base64
import binascii
from urllib.parse import unquote

from fastapi import Request


def _parse_basic(header_value: str) -> tuple[str, str] | None:
    """Parse 'Basic <base64(client_id:client_secret)>'. Returns (client_id, client_secret) or None."""
    if not header_value or not header_value.strip().lower().startswith("basic "):
        return None
    try:
        decoded = base64.b64decode(header_value.strip()[6:].strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    if ":" not in decoded:
        return None
    client_id, _, client_secret = decoded.partition(":")
    # RFC 6749 §2.3.1: both parts are form-urlencoded before base64
    return unquote(client_id.strip()), unquote(client_secret)


def get_client_credentials(
    request: Request,
    client_id_body: str | None,
    client_secret_body: str | None,
) -> tuple[str | None, str | None]:
    """
    Get (client_id, client_secret) from the body or from Authorization Basic.
    Body takes precedence when it carries both values.
    """
    if client_id_body and client_secret_body:
        return client_id_body.strip(), client_secret_body
    auth_header = request.headers.get("Authorization")
    basic = _parse_basic(auth_header) if auth_header else None
    if basic:
        return basic
    return (client_id_body.strip() if client_id_body else None), client_secret_body
