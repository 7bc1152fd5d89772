"""
Tests for authorization request validation (GET /auth semantics, no HTTP).
"""
import pytest

from authorization_service.errors import OAuthError
from authorization_service.validation import (
    is_acceptable_redirect_uri,
    parse_scope,
    validate_authorization_request,
)

DEV = frozenset({"dev-client"})


def _params(**overrides):
    params = {
        "response_type": "code",
        "client_id": "acme",
        "redirect_uri": "https://acme.example/cb",
        "scope": "read write",
        "state": "xyz",
    }
    params.update(overrides)
    return params


def _error(registry, **overrides) -> str:
    with pytest.raises(OAuthError) as exc_info:
        validate_authorization_request(registry, dev_loopback_clients=DEV, **_params(**overrides))
    return exc_info.value.error


def test_valid_request_returns_request_and_client(memory_registry):
    auth_request, client = validate_authorization_request(memory_registry, **_params())
    assert client.client_id == "acme"
    assert auth_request.scopes == ("read", "write")
    assert auth_request.scope == "read write"
    assert auth_request.state == "xyz"


@pytest.mark.parametrize("field", ["response_type", "client_id", "redirect_uri", "scope"])
def test_missing_field_is_invalid_request(memory_registry, field):
    assert _error(memory_registry, **{field: None}) == "invalid_request"
    assert _error(memory_registry, **{field: ""}) == "invalid_request"


def test_missing_state_is_invalid_state(memory_registry):
    assert _error(memory_registry, state=None) == "invalid_state"
    assert _error(memory_registry, state="") == "invalid_state"


def test_wrong_response_type(memory_registry):
    assert _error(memory_registry, response_type="token") == "invalid_request"


def test_whitespace_only_scope_is_invalid_request(memory_registry):
    assert _error(memory_registry, scope="   ") == "invalid_request"


def test_first_violation_wins(memory_registry):
    # Bad response_type is reported even though state is missing and the client is unknown
    assert _error(memory_registry, response_type="token", state=None, client_id="nobody") == "invalid_request"
    # Missing state is checked before the registry lookup
    assert _error(memory_registry, state=None, client_id="nobody") == "invalid_state"


def test_unknown_client(memory_registry):
    assert _error(memory_registry, client_id="nobody") == "invalid_client"


def test_redirect_uri_must_match_registration(memory_registry):
    assert _error(memory_registry, redirect_uri="https://evil.example/cb") == "invalid_request"
    assert _error(memory_registry, redirect_uri="https://acme.example/cb/") == "invalid_request"
    assert _error(memory_registry, redirect_uri="https://acme.example/cb?x=1") == "invalid_request"


@pytest.mark.parametrize(
    "uri",
    [
        "http://acme.example/cb",
        "acme.example/cb",
        "/cb",
        "https:///cb",
        "https://acme.example/cb#frag",
        "javascript:alert(1)",
        "https://acme.example:notaport/cb",
    ],
)
def test_redirect_uri_must_be_absolute_https(memory_registry, uri):
    assert _error(memory_registry, redirect_uri=uri) == "invalid_request"


def test_http_loopback_only_for_dev_clients():
    assert is_acceptable_redirect_uri("http://127.0.0.1:8080/callback", "dev-client", DEV)
    assert is_acceptable_redirect_uri("http://localhost/callback", "dev-client", DEV)
    assert not is_acceptable_redirect_uri("http://127.0.0.1:8080/callback", "acme", DEV)
    assert not is_acceptable_redirect_uri("http://dev.example/callback", "dev-client", DEV)
    assert is_acceptable_redirect_uri("https://acme.example/cb", "acme", DEV)


def test_parse_scope_keeps_order_and_drops_duplicates():
    assert parse_scope("write read  write\tadmin") == ("write", "read", "admin")
    assert parse_scope(None) == ()
    assert parse_scope("") == ()
