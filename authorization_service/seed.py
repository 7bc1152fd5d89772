"""
Client secret hashing, client registration, and seeding a client from environment.
Optional: set OAUTH_CLIENT_ID + OAUTH_REDIRECT_URI + OAUTH_SEED_CLIENT_SECRET.
"""
import logging
import os
import secrets

import bcrypt
from sqlalchemy.orm import Session

from authorization_service.models import Client

logger = logging.getLogger(__name__)


def _secret_bytes(secret: str) -> bytes:
    # Bcrypt has a 72-byte limit
    raw = secret.encode("utf-8")
    return raw[:72]


def hash_secret(secret: str) -> str:
    return bcrypt.hashpw(_secret_bytes(secret), bcrypt.gensalt()).decode("utf-8")


def verify_secret(plain: str, hashed: str) -> bool:
    """bcrypt comparison; runs in constant time with respect to the stored hash."""
    return bcrypt.checkpw(_secret_bytes(plain), hashed.encode("utf-8"))


def generate_client_id() -> str:
    return secrets.token_hex(16)


def generate_client_secret() -> str:
    return secrets.token_urlsafe(32)


def register_client(
    db: Session,
    *,
    name: str,
    redirect_uri: str,
    client_id: str | None = None,
    client_secret: str | None = None,
    website: str | None = None,
    logo_uri: str | None = None,
) -> tuple[Client, str]:
    """
    Create a client. Generates an opaque client_id and a secret when not given.
    Returns (client, plaintext_secret); the plaintext is not recoverable afterwards.
    """
    client_secret = client_secret or generate_client_secret()
    client = Client(
        client_id=client_id or generate_client_id(),
        name=name,
        website=website,
        logo_uri=logo_uri,
        redirect_uri=redirect_uri,
        client_secret_hash=hash_secret(client_secret),
    )
    db.add(client)
    db.commit()
    db.refresh(client)
    logger.info("Registered client: %s (%s)", client.client_id, client.name)
    return client, client_secret


def seed_from_env(db: Session) -> None:
    """Create one client from env if set and not already present."""
    client_id = os.environ.get("OAUTH_CLIENT_ID")
    redirect_uri = os.environ.get("OAUTH_REDIRECT_URI")
    client_secret = os.environ.get("OAUTH_SEED_CLIENT_SECRET")
    if not (client_id and redirect_uri and client_secret):
        return
    if db.query(Client).filter(Client.client_id == client_id).first() is not None:
        logger.debug("Client already exists: %s", client_id)
        return
    register_client(
        db,
        client_id=client_id,
        client_secret=client_secret,
        name=os.environ.get("OAUTH_CLIENT_NAME", client_id),
        redirect_uri=redirect_uri.strip(),
        website=os.environ.get("OAUTH_CLIENT_WEBSITE"),
        logo_uri=os.environ.get("OAUTH_CLIENT_LOGO"),
    )
