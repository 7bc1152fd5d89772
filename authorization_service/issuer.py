"""
Authorization code issuance: mint a random code and bind it to a pending session.
"""
import logging
import secrets

from authorization_service.errors import SERVER_ERROR, OAuthError
from authorization_service.store import AuthorizationCodeStore, PendingAuthorization
from authorization_service.validation import AuthorizationRequest

logger = logging.getLogger(__name__)

# 32 random bytes -> 256 bits of entropy, base64url
CODE_BYTES = 32


def generate_code() -> str:
    return secrets.token_urlsafe(CODE_BYTES)


def issue_pending_authorization(
    store: AuthorizationCodeStore, request: AuthorizationRequest
) -> PendingAuthorization:
    """Create the pending authorization for a validated request. Caller sets the session cookie."""
    session_token = store.create_pending(
        request.client_id,
        request.scopes,
        request.state,
        request.redirect_uri,
        code=generate_code(),
    )
    pending = store.resolve_pending(session_token)
    if pending is None:
        raise OAuthError(SERVER_ERROR, "pending authorization not readable after create", status_code=500)
    logger.debug("Pending authorization created for client_id=%s", request.client_id)
    return pending
