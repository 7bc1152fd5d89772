"""
SQLAlchemy models for the authorization service: clients, pending authorizations, audit log.
"""
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Client(Base):
    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    # Opaque, registry-assigned lookup key; never changes
    client_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    # Display name shown on the consent page; may change
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    website: Mapped[str | None] = mapped_column(Text, nullable=True)
    logo_uri: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Exact match required at /auth
    redirect_uri: Mapped[str] = mapped_column(Text, nullable=False)
    # bcrypt hash; the plaintext secret is never stored
    client_secret_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Redeemable code (set on consent, cleared on redemption)
    code: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True, index=True)
    code_redirect_uri: Mapped[str | None] = mapped_column(Text, nullable=True)
    code_scope: Mapped[str | None] = mapped_column(Text, nullable=True)  # space-separated
    code_expires_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, onupdate=_utc_now)

    def __repr__(self) -> str:
        return f"Client(client_id={self.client_id!r}, name={self.name!r})"


class PendingSession(Base):
    """Authorization request validated at /auth, waiting for the user's decision."""
    __tablename__ = "pending_authorizations"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    session_token: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    client_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    scope: Mapped[str] = mapped_column(Text, nullable=False)  # space-separated
    state: Mapped[str] = mapped_column(Text, nullable=False)
    redirect_uri: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class AuditLog(Base):
    """Security-relevant events. No codes, tokens or secrets stored."""
    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    client_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    outcome: Mapped[str] = mapped_column(String(16), nullable=False)  # success | fail
    error: Mapped[str | None] = mapped_column(String(64), nullable=True)
