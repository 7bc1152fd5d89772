"""
Authorization code store: pending authorizations (between /auth and /confirm_auth)
and the redeemable code held by a client after consent.

State changes are single conditional writes: finalizing deletes exactly one pending
row, redeeming clears the code only WHERE client, code, redirect_uri and expiry match.
Whoever loses a race sees zero affected rows.
"""
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol

from fastapi import Depends
from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from authorization_service.config import CODE_TTL_SECONDS, PENDING_AUTH_TTL_SECONDS
from authorization_service.database import get_db
from authorization_service.errors import ClientNotFound, PendingAuthorizationNotFound
from authorization_service.models import Client, PendingSession


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite drops tzinfo; stored datetimes are always UTC."""
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def new_session_token() -> str:
    return secrets.token_urlsafe(32)


@dataclass(frozen=True)
class PendingAuthorization:
    session_token: str
    code: str
    client_id: str
    scopes: tuple[str, ...]
    state: str
    redirect_uri: str
    created_at: datetime
    expires_at: datetime

    @property
    def scope(self) -> str:
        return " ".join(self.scopes)

    def expired(self, now: datetime) -> bool:
        return as_utc(self.expires_at) <= now


@dataclass(frozen=True)
class RedeemableCode:
    client_id: str
    code: str
    redirect_uri: str
    scopes: tuple[str, ...]
    expires_at: datetime

    @property
    def scope(self) -> str:
        return " ".join(self.scopes)

    def expired(self, now: datetime) -> bool:
        return as_utc(self.expires_at) <= now


class AuthorizationCodeStore(Protocol):
    def create_pending(
        self, client_id: str, scopes: tuple[str, ...], state: str, redirect_uri: str, code: str
    ) -> str:
        """Persist a pending authorization; return its session token."""

    def resolve_pending(self, session_token: str) -> PendingAuthorization | None:
        """Live pending authorization for the token, or None if absent or expired."""

    def finalize(self, session_token: str, approved: bool) -> str | None:
        """
        Consume the pending authorization. Returns the code (now redeemable) if approved.
        Returns None if denied, after discarding any code the client still holds. Raises PendingAuthorizationNotFound if absent, expired or already consumed.
        """

    def get_code(self, client_id: str) -> RedeemableCode | None:
        """Live redeemable code held by the client, if any."""

    def redeem(self, client_id: str, code: str, redirect_uri: str) -> RedeemableCode | None:
        """Atomically clear a matching live code. None if nothing was redeemed."""


class SqlAuthorizationCodeStore:
    def __init__(
        self,
        db: Session,
        *,
        pending_ttl: int = PENDING_AUTH_TTL_SECONDS,
        code_ttl: int = CODE_TTL_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.pending_ttl = pending_ttl
        self.code_ttl = code_ttl
        self.clock = clock

    def create_pending(
        self, client_id: str, scopes: tuple[str, ...], state: str, redirect_uri: str, code: str
    ) -> str:
        now = self.clock()
        session_token = new_session_token()
        self.db.add(
            PendingSession(
                session_token=session_token,
                code=code,
                client_id=client_id,
                scope=" ".join(scopes),
                state=state,
                redirect_uri=redirect_uri,
                created_at=now,
                expires_at=now + timedelta(seconds=self.pending_ttl),
            )
        )
        self.db.commit()
        return session_token

    def _load_pending(self, session_token: str) -> PendingSession | None:
        return self.db.query(PendingSession).filter(PendingSession.session_token == session_token).first()

    def resolve_pending(self, session_token: str) -> PendingAuthorization | None:
        row = self._load_pending(session_token)
        if row is None:
            return None
        pending = _pending_from_row(row)
        if pending.expired(self.clock()):
            return None
        return pending

    def finalize(self, session_token: str, approved: bool) -> str | None:
        now = self.clock()
        row = self._load_pending(session_token)
        if row is None:
            raise PendingAuthorizationNotFound("unknown session token")
        pending = _pending_from_row(row)

        deleted = self.db.execute(
            delete(PendingSession)
            .where(PendingSession.id == row.id)
            .execution_options(synchronize_session=False)
        ).rowcount
        if deleted != 1:
            self.db.rollback()
            raise PendingAuthorizationNotFound("pending authorization already consumed")
        if pending.expired(now):
            # Drop the expired row either way
            self.db.commit()
            raise PendingAuthorizationNotFound("pending authorization expired")
        if approved:
            values = {
                "code": pending.code,
                "code_redirect_uri": pending.redirect_uri,
                "code_scope": pending.scope,
                "code_expires_at": now + timedelta(seconds=self.code_ttl),
            }
        else:
            # A refusal also revokes any code the client still holds
            values = {"code": None, "code_redirect_uri": None, "code_scope": None, "code_expires_at": None}

        updated = self.db.execute(
            update(Client)
            .where(Client.client_id == pending.client_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        ).rowcount
        if updated != 1:
            self.db.rollback()
            raise ClientNotFound(pending.client_id)
        self.db.commit()
        return pending.code if approved else None

    def get_code(self, client_id: str) -> RedeemableCode | None:
        client = (
            self.db.query(Client)
            .filter(Client.client_id == client_id)
            .populate_existing()
            .first()
        )
        if client is None or not client.code or client.code_expires_at is None:
            return None
        held = RedeemableCode(
            client_id=client.client_id,
            code=client.code,
            redirect_uri=client.code_redirect_uri or "",
            scopes=tuple((client.code_scope or "").split()),
            expires_at=as_utc(client.code_expires_at),
        )
        if held.expired(self.clock()):
            return None
        return held

    def redeem(self, client_id: str, code: str, redirect_uri: str) -> RedeemableCode | None:
        held = self.get_code(client_id)
        if held is None or held.code != code or held.redirect_uri != redirect_uri:
            return None
        result = self.db.execute(
            update(Client)
            .where(
                Client.client_id == client_id,
                Client.code == code,
                Client.code_redirect_uri == redirect_uri,
                Client.code_expires_at > self.clock(),
            )
            .values(code=None, code_redirect_uri=None, code_scope=None, code_expires_at=None)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            return None
        self.db.commit()
        return held


def _pending_from_row(row: PendingSession) -> PendingAuthorization:
    return PendingAuthorization(
        session_token=row.session_token,
        code=row.code,
        client_id=row.client_id,
        scopes=tuple(row.scope.split()),
        state=row.state,
        redirect_uri=row.redirect_uri,
        created_at=as_utc(row.created_at),
        expires_at=as_utc(row.expires_at),
    )


def get_code_store(db: Session = Depends(get_db)) -> AuthorizationCodeStore:
    """Dependency: SQL-backed code store bound to the request's session."""
    return SqlAuthorizationCodeStore(db)
