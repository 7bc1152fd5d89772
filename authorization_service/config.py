"""
Authorization service configuration.
No secrets in this file; client secrets live hashed in the DB, the signing key on disk.
"""
import os

# Issuer URL (public identifier, also the `iss` claim of access tokens)
ISSUER = os.environ.get("OAUTH_ISSUER", "http://127.0.0.1:3000").rstrip("/")

# Audience of issued access tokens; defaults to the issuer itself
API_AUDIENCE = os.environ.get("OAUTH_API_AUDIENCE", ISSUER)

DATABASE_URL = os.environ.get("AUTH_DATABASE_URL", "sqlite:///./authorization_service.db")

# Window for the user to confirm consent after GET /auth (seconds)
PENDING_AUTH_TTL_SECONDS = int(os.environ.get("OAUTH_PENDING_AUTH_TTL", "3600"))

# Lifetime of a consented, not yet redeemed authorization code (seconds)
CODE_TTL_SECONDS = int(os.environ.get("OAUTH_CODE_TTL", "600"))

# Access token lifetime (seconds). Used both for the exp claim and for expires_in.
ACCESS_TOKEN_EXPIRES = int(os.environ.get("OAUTH_ACCESS_TOKEN_EXPIRES", "3600"))

# Cookie binding the browser to its pending authorization
SESSION_COOKIE_NAME = "auth_session"

# Clients allowed to register plain http redirect URIs on a loopback host (development only)
DEV_LOOPBACK_CLIENT_IDS = frozenset(
    c.strip() for c in os.environ.get("OAUTH_DEV_LOOPBACK_CLIENTS", "").split(",") if c.strip()
)

# RSA private key PEM for signing access tokens. Generated and saved here if missing.
SIGNING_KEY_PATH = os.environ.get("OAUTH_SIGNING_KEY_PATH", ".auth_signing_key.pem")

PORT = int(os.environ.get("PORT", "3000"))
