"""
Consent confirmation (GET /confirm_auth).
One entry state (a live pending authorization), two terminal outcomes:
approve -> code becomes redeemable and is sent to the client; deny -> access_denied.
Both consume the pending authorization.
"""
import logging
from dataclasses import dataclass
from urllib.parse import urlencode

from authorization_service.errors import (
    ACCESS_DENIED,
    INVALID_CLIENT,
    INVALID_REQUEST,
    ClientNotFound,
    OAuthError,
    PendingAuthorizationNotFound,
)
from authorization_service.registry import ClientRegistry
from authorization_service.store import AuthorizationCodeStore

logger = logging.getLogger(__name__)

_APPROVE_VALUES = {"true", "1", "yes", "allow"}
_DENY_VALUES = {"false", "0", "no", "deny"}


@dataclass(frozen=True)
class ConsentOutcome:
    client_id: str
    approved: bool
    redirect_url: str


def parse_decision(value: str | None) -> bool:
    normalized = (value or "").strip().lower()
    if normalized in _APPROVE_VALUES:
        return True
    if normalized in _DENY_VALUES:
        return False
    raise OAuthError(INVALID_REQUEST, "authorize must be true or false")


def build_redirect(redirect_uri: str, params: dict[str, str]) -> str:
    return f"{redirect_uri}{'&' if '?' in redirect_uri else '?'}{urlencode(params)}"


def confirm_authorization(
    registry: ClientRegistry,
    store: AuthorizationCodeStore,
    *,
    session_token: str | None,
    authorize: str | None,
    client_id: str | None = None,
    state: str | None = None,
) -> ConsentOutcome:
    if not session_token:
        raise OAuthError(INVALID_REQUEST, "missing session")
    pending = store.resolve_pending(session_token)
    if pending is None:
        raise OAuthError(INVALID_REQUEST, "no live pending authorization for session")

    approved = parse_decision(authorize)
    # client_id and state are echoed by the consent page; the stored values are authoritative
    if client_id and client_id != pending.client_id:
        raise OAuthError(INVALID_REQUEST, "client_id does not match the pending authorization")
    if state and state != pending.state:
        raise OAuthError(INVALID_REQUEST, "state does not match the pending authorization")

    client = registry.lookup(pending.client_id)
    if client is None:
        raise OAuthError(INVALID_CLIENT, f"client {pending.client_id!r} no longer registered")

    try:
        code = store.finalize(session_token, approved)
    except PendingAuthorizationNotFound as e:
        raise OAuthError(INVALID_REQUEST, str(e)) from e
    except ClientNotFound as e:
        raise OAuthError(INVALID_CLIENT, f"client {e} no longer registered") from e

    if not approved:
        logger.info("Consent denied for client_id=%s", client.client_id)
        url = build_redirect(client.redirect_uri, {"error": ACCESS_DENIED, "state": pending.state})
        return ConsentOutcome(client_id=client.client_id, approved=False, redirect_url=url)

    logger.info("Consent granted for client_id=%s scope=%s", client.client_id, pending.scope)
    url = build_redirect(client.redirect_uri, {"code": code, "state": pending.state})
    return ConsentOutcome(client_id=client.client_id, approved=True, redirect_url=url)
