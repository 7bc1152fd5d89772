"""
RSA key for signing access tokens. Service-wide, not per client.
Load from file or generate and persist; no key material in code.
"""
import base64
import logging
from pathlib import Path

from cryptography.hazmat.primitives.asymmetric.rsa import generate_private_key
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.backends import default_backend

logger = logging.getLogger(__name__)

_KEY_BITS = 2048
KID = "authorization-service-key"


def _generate_key():
    return generate_private_key(65537, _KEY_BITS, default_backend())


def _serialize_private(key) -> bytes:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def load_or_create_signing_key(path: str):
    """Load RSA private key from path, or generate one and save it there."""
    p = Path(path)
    if p.exists():
        try:
            return serialization.load_pem_private_key(p.read_bytes(), password=None, backend=default_backend())
        except (ValueError, TypeError) as e:
            logger.warning("Failed to load signing key from %s: %s; generating new key", path, e)
    key = _generate_key()
    try:
        p.write_bytes(_serialize_private(key))
        logger.info("Generated and saved signing key to %s", path)
    except OSError as e:
        logger.warning("Could not save signing key to %s: %s", path, e)
    return key


def _b64_uint(value: int) -> str:
    raw = value.to_bytes((value.bit_length() + 7) // 8, "big")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def public_key_to_jwk(public_key, kid: str = KID) -> dict:
    numbers = public_key.public_numbers()
    return {
        "kty": "RSA",
        "kid": kid,
        "alg": "RS256",
        "use": "sig",
        "n": _b64_uint(numbers.n),
        "e": _b64_uint(numbers.e),
    }


# Set on first use (startup loads it eagerly)
_signing_key = None


def get_signing_key():
    """Return (private_key, kid) for signing new tokens."""
    global _signing_key
    if _signing_key is None:
        from authorization_service.config import SIGNING_KEY_PATH

        _signing_key = load_or_create_signing_key(SIGNING_KEY_PATH)
    return _signing_key, KID


def get_jwks() -> dict:
    private_key, kid = get_signing_key()
    return {"keys": [public_key_to_jwk(private_key.public_key(), kid)]}
