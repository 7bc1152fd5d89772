"""
Authorization request validation (GET /auth). Pure: no writes.
Checks run in a fixed order and stop at the first violation.
"""
import logging
from dataclasses import dataclass
from urllib.parse import urlsplit

from authorization_service.config import DEV_LOOPBACK_CLIENT_IDS
from authorization_service.errors import (
    INVALID_CLIENT,
    INVALID_REQUEST,
    INVALID_STATE,
    OAuthError,
)
from authorization_service.models import Client
from authorization_service.registry import ClientRegistry

logger = logging.getLogger(__name__)

RESPONSE_TYPE_CODE = "code"
LOOPBACK_HOSTS = {"localhost", "127.0.0.1", "::1"}


@dataclass(frozen=True)
class AuthorizationRequest:
    response_type: str
    client_id: str
    redirect_uri: str
    scopes: tuple[str, ...]
    state: str

    @property
    def scope(self) -> str:
        return " ".join(self.scopes)


def parse_scope(scope: str | None) -> tuple[str, ...]:
    """Split on whitespace, keep first-seen order, drop duplicates."""
    seen: dict[str, None] = {}
    for token in (scope or "").split():
        seen.setdefault(token, None)
    return tuple(seen)


def is_acceptable_redirect_uri(
    uri: str,
    client_id: str,
    dev_loopback_clients: frozenset[str] = DEV_LOOPBACK_CLIENT_IDS,
) -> bool:
    """Absolute https URI with a host and no fragment; http only for configured loopback dev clients."""
    try:
        parts = urlsplit(uri)
        hostname = parts.hostname
        parts.port  # raises ValueError on a malformed port
    except ValueError:
        return False
    if not hostname or parts.fragment:
        return False
    if parts.scheme == "https":
        return True
    if parts.scheme == "http":
        return client_id in dev_loopback_clients and hostname in LOOPBACK_HOSTS
    return False


def validate_authorization_request(
    registry: ClientRegistry,
    *,
    response_type: str | None,
    client_id: str | None,
    redirect_uri: str | None,
    scope: str | None,
    state: str | None,
    dev_loopback_clients: frozenset[str] = DEV_LOOPBACK_CLIENT_IDS,
) -> tuple[AuthorizationRequest, Client]:
    """
    Return (request, client) for a conforming request; raise OAuthError otherwise.
    Missing state is reported as invalid_state, every other malformed field as invalid_request.
    """
    if response_type != RESPONSE_TYPE_CODE:
        raise OAuthError(INVALID_REQUEST, "response_type must be 'code'")
    if not client_id:
        raise OAuthError(INVALID_REQUEST, "client_id is required")
    if not redirect_uri or not is_acceptable_redirect_uri(redirect_uri, client_id, dev_loopback_clients):
        raise OAuthError(INVALID_REQUEST, "redirect_uri must be an absolute https URI")
    scopes = parse_scope(scope)
    if not scopes:
        raise OAuthError(INVALID_REQUEST, "scope is required")
    if not state:
        raise OAuthError(INVALID_STATE, "state is required")

    client = registry.lookup(client_id)
    if client is None:
        raise OAuthError(INVALID_CLIENT, f"unknown client_id {client_id!r}")
    if client.redirect_uri != redirect_uri:
        logger.info("redirect_uri mismatch for client_id=%s", client_id)
        raise OAuthError(INVALID_REQUEST, "redirect_uri does not match the registered URI")

    request = AuthorizationRequest(
        response_type=response_type,
        client_id=client_id,
        redirect_uri=redirect_uri,
        scopes=scopes,
        state=state,
    )
    return request, client
