"""
Token endpoint (POST /token). Authorization code grant only.
Accepts application/x-www-form-urlencoded or JSON bodies.
"""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from authorization_service.audit import (
    EVENT_TOKEN_FAIL,
    EVENT_TOKEN_ISSUED,
    OUTCOME_FAIL,
    OUTCOME_SUCCESS,
    get_client_ip,
    log_audit,
)
from authorization_service.client_auth import get_client_credentials
from authorization_service.database import get_db
from authorization_service.errors import INVALID_REQUEST, OAuthError
from authorization_service.exchange import TokenRequest, exchange_authorization_code
from authorization_service.registry import ClientRegistry, get_client_registry
from authorization_service.store import AuthorizationCodeStore, get_code_store

logger = logging.getLogger(__name__)
router = APIRouter()


async def read_token_params(request: Request) -> dict[str, str]:
    """Dependency: string-valued body parameters from a form or JSON body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise OAuthError(INVALID_REQUEST, "malformed JSON body")
        if not isinstance(body, dict):
            raise OAuthError(INVALID_REQUEST, "JSON body must be an object")
        return {k: v for k, v in body.items() if isinstance(v, str)}
    form = await request.form()
    return {k: v for k, v in form.items() if isinstance(v, str)}


@router.post("/token")
def token(
    request: Request,
    params: dict[str, str] = Depends(read_token_params),
    registry: ClientRegistry = Depends(get_client_registry),
    store: AuthorizationCodeStore = Depends(get_code_store),
    db: Session = Depends(get_db),
):
    """Exchange an authorization code (plus client credentials) for a bearer access token."""
    client_id, client_secret = get_client_credentials(
        request, params.get("client_id"), params.get("client_secret")
    )
    token_request = TokenRequest(
        grant_type=params.get("grant_type"),
        code=params.get("code"),
        redirect_uri=params.get("redirect_uri"),
        client_id=client_id,
        client_secret=client_secret,
    )
    try:
        access_token = exchange_authorization_code(registry, store, token_request)
    except OAuthError as exc:
        logger.info("Token request rejected: %s", exc)
        log_audit(
            db,
            EVENT_TOKEN_FAIL,
            client_id=client_id,
            ip=get_client_ip(request),
            outcome=OUTCOME_FAIL,
            error=exc.error,
        )
        raise

    log_audit(
        db,
        EVENT_TOKEN_ISSUED,
        client_id=access_token.client_id,
        ip=get_client_ip(request),
        outcome=OUTCOME_SUCCESS,
    )
    return JSONResponse(
        {
            "access_token": access_token.value,
            "token_type": "Bearer",
            "expires_in": access_token.expires_in,
            "scope": access_token.scope,
        },
        headers={"Cache-Control": "no-store", "Pragma": "no-cache"},
    )
