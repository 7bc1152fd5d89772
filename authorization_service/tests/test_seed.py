"""
Tests for client registration and env seeding.
"""
from authorization_service.models import Client
from authorization_service.registry import SqlClientRegistry
from authorization_service.seed import hash_secret, register_client, seed_from_env, verify_secret


def test_hash_and_verify_secret():
    hashed = hash_secret("s3cret")
    assert hashed != "s3cret"
    assert verify_secret("s3cret", hashed)
    assert not verify_secret("s3cre", hashed)


def test_register_client_generates_credentials(db):
    client, secret = register_client(db, name="Initech", redirect_uri="https://initech.example/cb")
    assert len(client.client_id) == 32
    assert secret
    assert client.client_secret_hash != secret
    assert verify_secret(secret, client.client_secret_hash)
    assert SqlClientRegistry(db).lookup(client.client_id).name == "Initech"


def test_register_client_keeps_given_id_and_secret(db):
    client, secret = register_client(
        db,
        name="Hooli",
        redirect_uri="https://hooli.example/cb",
        client_id="hooli",
        client_secret="hooli-secret",
        logo_uri="https://hooli.example/logo.png",
    )
    assert client.client_id == "hooli"
    assert secret == "hooli-secret"
    assert client.logo_uri == "https://hooli.example/logo.png"


def test_seed_from_env_creates_client_once(db, monkeypatch):
    monkeypatch.setenv("OAUTH_CLIENT_ID", "seeded-client")
    monkeypatch.setenv("OAUTH_REDIRECT_URI", " https://seeded.example/cb ")
    monkeypatch.setenv("OAUTH_SEED_CLIENT_SECRET", "seeded-secret")
    monkeypatch.setenv("OAUTH_CLIENT_NAME", "Seeded App")
    seed_from_env(db)
    seed_from_env(db)
    rows = db.query(Client).filter(Client.client_id == "seeded-client").all()
    assert len(rows) == 1
    assert rows[0].name == "Seeded App"
    assert rows[0].redirect_uri == "https://seeded.example/cb"
    assert verify_secret("seeded-secret", rows[0].client_secret_hash)


def test_seed_from_env_needs_all_three_values(db, monkeypatch):
    monkeypatch.setenv("OAUTH_CLIENT_ID", "half-seeded")
    monkeypatch.setenv("OAUTH_REDIRECT_URI", "https://half.example/cb")
    monkeypatch.delenv("OAUTH_SEED_CLIENT_SECRET", raising=False)
    seed_from_env(db)
    assert db.query(Client).filter(Client.client_id == "half-seeded").first() is None


def test_registry_lookup_unknown(db):
    assert SqlClientRegistry(db).lookup("nobody-here") is None
