"""
Access token minting and verification. Tokens are RS256 JWTs, not persisted;
validity is signature + iss/aud + exp.
"""
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from authorization_service.config import ACCESS_TOKEN_EXPIRES, API_AUDIENCE, ISSUER
from authorization_service.keys import get_signing_key


@dataclass(frozen=True)
class AccessToken:
    value: str
    client_id: str
    scope: str
    expires_in: int
    expires_at: datetime


def mint_access_token(
    client_id: str,
    scope: str,
    *,
    lifetime: int = ACCESS_TOKEN_EXPIRES,
    now: datetime | None = None,
) -> AccessToken:
    """Sign a bearer token for client_id. exp - iat == lifetime == reported expires_in."""
    private_key, kid = get_signing_key()
    now = now or datetime.now(timezone.utc)
    iat = int(now.timestamp())
    exp = iat + lifetime
    payload = {
        "iss": ISSUER,
        "sub": client_id,
        "aud": API_AUDIENCE,
        "client_id": client_id,
        "scope": scope,
        "iat": iat,
        "exp": exp,
        "jti": secrets.token_hex(16),
    }
    value = jwt.encode(
        payload,
        private_key,
        algorithm="RS256",
        headers={"kid": kid, "typ": "JWT"},
    )
    return AccessToken(
        value=value,
        client_id=client_id,
        scope=scope,
        expires_in=lifetime,
        expires_at=datetime.fromtimestamp(exp, timezone.utc),
    )


def verify_access_token(token: str) -> dict:
    """Return claims of a token issued here. Raises jwt.InvalidTokenError if invalid or expired."""
    private_key, _ = get_signing_key()
    return jwt.decode(
        token,
        private_key.public_key(),
        algorithms=["RS256"],
        issuer=ISSUER,
        audience=API_AUDIENCE,
        options={"require": ["exp", "iat", "sub"]},
    )
