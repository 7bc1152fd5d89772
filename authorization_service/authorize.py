"""
Authorization endpoint and consent confirmation.
GET /auth: validate request, create pending authorization, render consent page.
GET /confirm_auth: apply the user's decision, redirect to the client with code or error.
"""
import html
import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from authorization_service.audit import (
    EVENT_AUTHORIZE_FAIL,
    EVENT_AUTHORIZE_OK,
    EVENT_CONSENT_ALLOW,
    EVENT_CONSENT_DENY,
    EVENT_CONSENT_FAIL,
    OUTCOME_FAIL,
    OUTCOME_SUCCESS,
    get_client_ip,
    log_audit,
)
from authorization_service.config import PENDING_AUTH_TTL_SECONDS, SESSION_COOKIE_NAME
from authorization_service.consent import confirm_authorization
from authorization_service.database import get_db
from authorization_service.errors import OAuthError
from authorization_service.issuer import issue_pending_authorization
from authorization_service.models import Client
from authorization_service.registry import ClientRegistry, get_client_registry
from authorization_service.store import AuthorizationCodeStore, get_code_store
from authorization_service.validation import AuthorizationRequest, validate_authorization_request

logger = logging.getLogger(__name__)
router = APIRouter()


def _render_consent_page(client: Client, auth_request: AuthorizationRequest) -> str:
    def e(s: str | None) -> str:
        return html.escape(s or "")

    def confirm_url(allow: bool) -> str:
        params = {
            "authorize": "true" if allow else "false",
            "client_id": auth_request.client_id,
            "state": auth_request.state,
        }
        return f"/confirm_auth?{urlencode(params)}"

    logo = f'<img src="{e(client.logo_uri)}" alt="" width="96"/>' if client.logo_uri else ""
    website = f'<p><a href="{e(client.website)}">{e(client.website)}</a></p>' if client.website else ""
    scopes = "".join(f"<li>{e(s)}</li>" for s in auth_request.scopes)
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Authorize {e(client.name)}</title></head>
<body>
  {logo}
  <h1>Authorize {e(client.name)}</h1>
  {website}
  <p><strong>{e(client.name)}</strong> requests access to:</p>
  <ul class="scopes">{scopes}</ul>
  <a href="{e(confirm_url(True))}">Allow</a>
  <a href="{e(confirm_url(False))}">Deny</a>
</body>
</html>"""


@router.get("/auth", response_class=HTMLResponse)
def auth(
    request: Request,
    response_type: str | None = None,
    client_id: str | None = None,
    redirect_uri: str | None = None,
    scope: str | None = None,
    state: str | None = None,
    registry: ClientRegistry = Depends(get_client_registry),
    store: AuthorizationCodeStore = Depends(get_code_store),
    db: Session = Depends(get_db),
):
    """
    OAuth2 authorization endpoint.
    Errors are JSON {"error": ...} with 400; the client's redirect_uri is never used before it is verified.
    """
    try:
        auth_request, client = validate_authorization_request(
            registry,
            response_type=response_type,
            client_id=client_id,
            redirect_uri=redirect_uri,
            scope=scope,
            state=state,
        )
    except OAuthError as exc:
        logger.info("Authorization request rejected: %s", exc)
        log_audit(
            db,
            EVENT_AUTHORIZE_FAIL,
            client_id=client_id,
            ip=get_client_ip(request),
            outcome=OUTCOME_FAIL,
            error=exc.error,
        )
        raise

    pending = issue_pending_authorization(store, auth_request)
    log_audit(
        db,
        EVENT_AUTHORIZE_OK,
        client_id=client.client_id,
        ip=get_client_ip(request),
        outcome=OUTCOME_SUCCESS,
    )

    response = HTMLResponse(_render_consent_page(client, auth_request))
    response.set_cookie(
        SESSION_COOKIE_NAME,
        pending.session_token,
        max_age=PENDING_AUTH_TTL_SECONDS,
        httponly=True,
        secure=True,
        samesite="lax",
    )
    response.headers["Cache-Control"] = "no-store"
    response.headers["X-Frame-Options"] = "DENY"
    return response


@router.get("/confirm_auth")
def confirm_auth(
    request: Request,
    authorize: str | None = None,
    client_id: str | None = None,
    state: str | None = None,
    registry: ClientRegistry = Depends(get_client_registry),
    store: AuthorizationCodeStore = Depends(get_code_store),
    db: Session = Depends(get_db),
):
    """Consent decision. Session token comes from the cookie set by GET /auth."""
    try:
        outcome = confirm_authorization(
            registry,
            store,
            session_token=request.cookies.get(SESSION_COOKIE_NAME),
            authorize=authorize,
            client_id=client_id,
            state=state,
        )
    except OAuthError as exc:
        logger.info("Consent confirmation rejected: %s", exc)
        log_audit(
            db,
            EVENT_CONSENT_FAIL,
            client_id=client_id,
            ip=get_client_ip(request),
            outcome=OUTCOME_FAIL,
            error=exc.error,
        )
        raise

    log_audit(
        db,
        EVENT_CONSENT_ALLOW if outcome.approved else EVENT_CONSENT_DENY,
        client_id=outcome.client_id,
        ip=get_client_ip(request),
        outcome=OUTCOME_SUCCESS,
    )
    response = RedirectResponse(url=outcome.redirect_url, status_code=302)
    response.delete_cookie(SESSION_COOKIE_NAME, httponly=True, secure=True, samesite="lax")
    return response
