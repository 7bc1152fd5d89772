"""
Pytest configuration for authorization_service. In-memory SQLite and a throwaway
signing key so tests don't touch the working directory.
"""
import functools
import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

# In-memory SQLite; database.py uses StaticPool so all connections share the same DB
os.environ["AUTH_DATABASE_URL"] = "sqlite:///:memory:"
os.environ["OAUTH_SIGNING_KEY_PATH"] = os.path.join(tempfile.gettempdir(), "authorization_service_test_key.pem")
os.environ["OAUTH_ISSUER"] = "https://auth.test"
os.environ["OAUTH_DEV_LOOPBACK_CLIENTS"] = "dev-client"
# Avoid seed_from_env registering an unexpected client during tests
for _name in ("OAUTH_CLIENT_ID", "OAUTH_REDIRECT_URI", "OAUTH_SEED_CLIENT_SECRET"):
    os.environ.pop(_name, None)

from authorization_service.database import SessionLocal, init_db  # noqa: E402
from authorization_service.memory_store import InMemoryClientRegistry  # noqa: E402
from authorization_service.models import Client  # noqa: E402
from authorization_service.seed import hash_secret  # noqa: E402

# client_id, display name, redirect_uri, secret
CLIENTS = [
    ("acme", "Acme Corp", "https://acme.example/cb", "acme-secret"),
    ("globex", "Globex", "https://globex.example/callback", "globex-secret"),
]


@functools.lru_cache(maxsize=None)
def _hashed(secret: str) -> str:
    # bcrypt is slow on purpose; hash each test secret once
    return hash_secret(secret)


class FakeClock:
    def __init__(self):
        self.now = datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db():
    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def registered(db):
    """acme and globex stored in the DB, holding no authorization code."""
    for client_id, name, redirect_uri, secret in CLIENTS:
        row = db.query(Client).filter(Client.client_id == client_id).first()
        if row is None:
            db.add(
                Client(
                    client_id=client_id,
                    name=name,
                    website=f"https://{client_id}.example",
                    redirect_uri=redirect_uri,
                    client_secret_hash=_hashed(secret),
                )
            )
        else:
            row.redirect_uri = redirect_uri
            row.code = None
            row.code_redirect_uri = None
            row.code_scope = None
            row.code_expires_at = None
    db.commit()
    yield db


@pytest.fixture
def memory_registry():
    return InMemoryClientRegistry(
        [
            Client(
                client_id=client_id,
                name=name,
                redirect_uri=redirect_uri,
                client_secret_hash=_hashed(secret),
            )
            for client_id, name, redirect_uri, secret in CLIENTS
        ]
    )
