"""
Well-known endpoints: JWKS and OAuth 2.0 authorization server metadata (RFC 8414).
"""
from fastapi import APIRouter

from authorization_service.config import ISSUER
from authorization_service.keys import get_jwks

router = APIRouter()


@router.get("/.well-known/jwks.json")
def jwks_json():
    """JSON Web Key Set for access token signature verification."""
    return get_jwks()


@router.get("/.well-known/oauth-authorization-server")
def authorization_server_metadata():
    return {
        "issuer": ISSUER,
        "authorization_endpoint": f"{ISSUER}/auth",
        "token_endpoint": f"{ISSUER}/token",
        "jwks_uri": f"{ISSUER}/.well-known/jwks.json",
        "response_types_supported": ["code"],
        "grant_types_supported": ["authorization_code"],
        "token_endpoint_auth_methods_supported": ["client_secret_post", "client_secret_basic"],
    }
