"""
Audit logging. Security-relevant events only; no codes, tokens, secrets or request bodies.
"""
from fastapi import Request
from sqlalchemy.orm import Session

from authorization_service.models import AuditLog

EVENT_AUTHORIZE_OK = "authorize_ok"
EVENT_AUTHORIZE_FAIL = "authorize_fail"
EVENT_CONSENT_ALLOW = "consent_allow"
EVENT_CONSENT_DENY = "consent_deny"
EVENT_CONSENT_FAIL = "consent_fail"
EVENT_TOKEN_ISSUED = "token_issued"
EVENT_TOKEN_FAIL = "token_fail"

OUTCOME_SUCCESS = "success"
OUTCOME_FAIL = "fail"


def get_client_ip(request: Request | None) -> str | None:
    """Client IP if available (request.client.host). Forwarding headers are not trusted."""
    if request is None or request.client is None:
        return None
    return getattr(request.client, "host", None)


def log_audit(
    db: Session,
    event_type: str,
    *,
    client_id: str | None = None,
    ip: str | None = None,
    outcome: str = OUTCOME_SUCCESS,
    error: str | None = None,
) -> None:
    """Append one audit record."""
    db.add(
        AuditLog(
            event_type=event_type,
            client_id=client_id,
            ip=ip,
            outcome=outcome,
            error=error,
        )
    )
    db.commit()
