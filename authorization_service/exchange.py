"""
Authorization code exchange: authenticate the client, redeem its code exactly once,
mint an access token.
"""
import functools
import hmac
import logging
import secrets
from dataclasses import dataclass

import jwt

from authorization_service.config import ACCESS_TOKEN_EXPIRES
from authorization_service.errors import (
    INVALID_CLIENT,
    INVALID_GRANT,
    INVALID_REQUEST,
    SERVER_ERROR,
    UNSUPPORTED_GRANT_TYPE,
    OAuthError,
)
from authorization_service.registry import ClientRegistry
from authorization_service.seed import hash_secret, verify_secret
from authorization_service.store import AuthorizationCodeStore
from authorization_service.tokens import AccessToken, mint_access_token

logger = logging.getLogger(__name__)

GRANT_TYPE_AUTHORIZATION_CODE = "authorization_code"


@dataclass(frozen=True)
class TokenRequest:
    grant_type: str | None
    code: str | None
    redirect_uri: str | None
    client_id: str | None
    client_secret: str | None


@functools.lru_cache(maxsize=1)
def _unknown_client_hash() -> str:
    return hash_secret(secrets.token_urlsafe(32))


def _same(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def exchange_authorization_code(
    registry: ClientRegistry,
    store: AuthorizationCodeStore,
    request: TokenRequest,
    *,
    lifetime: int = ACCESS_TOKEN_EXPIRES,
) -> AccessToken:
    if request.grant_type != GRANT_TYPE_AUTHORIZATION_CODE:
        raise OAuthError(UNSUPPORTED_GRANT_TYPE, f"grant_type {request.grant_type!r} not supported")
    if not (request.client_id and request.code and request.redirect_uri and request.client_secret):
        raise OAuthError(INVALID_REQUEST, "client_id, code, redirect_uri and client_secret are required")

    client = registry.lookup(request.client_id)
    if client is None:
        # Unknown and registered ids pay the same bcrypt check
        verify_secret(request.client_secret, _unknown_client_hash())
        raise OAuthError(INVALID_CLIENT, "unknown client")
    if not verify_secret(request.client_secret, client.client_secret_hash):
        raise OAuthError(INVALID_CLIENT, "client authentication failed")

    held = store.get_code(client.client_id)
    if held is None:
        raise OAuthError(INVALID_GRANT, "client holds no live authorization code")
    if not _same(request.code, held.code):
        raise OAuthError(INVALID_GRANT, "authorization code mismatch")
    if request.redirect_uri != held.redirect_uri:
        raise OAuthError(INVALID_GRANT, "redirect_uri mismatch")

    # Code is spent from here on, whether or not signing succeeds
    redeemed = store.redeem(client.client_id, request.code, request.redirect_uri)
    if redeemed is None:
        raise OAuthError(INVALID_GRANT, "authorization code already redeemed")

    try:
        token = mint_access_token(client.client_id, redeemed.scope, lifetime=lifetime)
    except (jwt.PyJWTError, ValueError, TypeError) as e:
        logger.exception("Signing access token failed for client_id=%s", client.client_id)
        raise OAuthError(SERVER_ERROR, "token signing failed", status_code=500) from e

    logger.info("Access token issued for client_id=%s scope=%s", client.client_id, redeemed.scope)
    return token
