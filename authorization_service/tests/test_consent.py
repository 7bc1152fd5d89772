"""
Tests for code issuance and consent confirmation against in-memory stores.
"""
from urllib.parse import parse_qs, urlsplit

import pytest

from authorization_service.consent import build_redirect, confirm_authorization, parse_decision
from authorization_service.errors import OAuthError
from authorization_service.issuer import generate_code, issue_pending_authorization
from authorization_service.memory_store import InMemoryAuthorizationCodeStore
from authorization_service.validation import validate_authorization_request


@pytest.fixture
def store(clock):
    return InMemoryAuthorizationCodeStore(clock=clock)


@pytest.fixture
def pending(memory_registry, store):
    auth_request, _ = validate_authorization_request(
        memory_registry,
        response_type="code",
        client_id="acme",
        redirect_uri="https://acme.example/cb",
        scope="read write",
        state="xyz",
    )
    return issue_pending_authorization(store, auth_request)


def _query(url: str) -> dict:
    return {k: v[0] for k, v in parse_qs(urlsplit(url).query).items()}


def test_generated_codes_are_long_and_distinct():
    codes = {generate_code() for _ in range(200)}
    assert len(codes) == 200
    assert all(len(c) >= 43 for c in codes)


def test_issue_binds_code_to_session(pending):
    assert pending.client_id == "acme"
    assert pending.scopes == ("read", "write")
    assert pending.state == "xyz"
    assert pending.session_token != pending.code


def test_approve_redirects_with_code_and_state(memory_registry, store, pending):
    outcome = confirm_authorization(
        memory_registry, store, session_token=pending.session_token, authorize="true", client_id="acme", state="xyz"
    )
    assert outcome.approved
    assert outcome.redirect_url.startswith("https://acme.example/cb?")
    assert _query(outcome.redirect_url) == {"code": pending.code, "state": "xyz"}
    assert store.get_code("acme").code == pending.code


def test_deny_redirects_with_access_denied(memory_registry, store, pending):
    outcome = confirm_authorization(
        memory_registry, store, session_token=pending.session_token, authorize="false", client_id="acme", state="xyz"
    )
    assert not outcome.approved
    assert _query(outcome.redirect_url) == {"error": "access_denied", "state": "xyz"}
    assert store.get_code("acme") is None


def test_cannot_confirm_twice(memory_registry, store, pending):
    confirm_authorization(memory_registry, store, session_token=pending.session_token, authorize="true")
    with pytest.raises(OAuthError) as exc_info:
        confirm_authorization(memory_registry, store, session_token=pending.session_token, authorize="true")
    assert exc_info.value.error == "invalid_request"


def test_deny_then_approve_is_rejected(memory_registry, store, pending):
    confirm_authorization(memory_registry, store, session_token=pending.session_token, authorize="false")
    with pytest.raises(OAuthError):
        confirm_authorization(memory_registry, store, session_token=pending.session_token, authorize="true")
    assert store.get_code("acme") is None


@pytest.mark.parametrize("token", [None, "", "not-a-session"])
def test_missing_or_unknown_session(memory_registry, store, token):
    with pytest.raises(OAuthError) as exc_info:
        confirm_authorization(memory_registry, store, session_token=token, authorize="true")
    assert exc_info.value.error == "invalid_request"


def test_expired_session(memory_registry, store, pending, clock):
    clock.advance(store.pending_ttl + 1)
    with pytest.raises(OAuthError) as exc_info:
        confirm_authorization(memory_registry, store, session_token=pending.session_token, authorize="true")
    assert exc_info.value.error == "invalid_request"
    assert store.get_code("acme") is None


def test_client_id_must_match_pending(memory_registry, store, pending):
    with pytest.raises(OAuthError) as exc_info:
        confirm_authorization(
            memory_registry, store, session_token=pending.session_token, authorize="true", client_id="globex"
        )
    assert exc_info.value.error == "invalid_request"
    # Rejected confirmation leaves the pending authorization usable
    assert store.resolve_pending(pending.session_token) is not None


def test_state_must_match_pending(memory_registry, store, pending):
    with pytest.raises(OAuthError):
        confirm_authorization(
            memory_registry, store, session_token=pending.session_token, authorize="true", state="other"
        )


def test_unparseable_decision(memory_registry, store, pending):
    with pytest.raises(OAuthError) as exc_info:
        confirm_authorization(memory_registry, store, session_token=pending.session_token, authorize="maybe")
    assert exc_info.value.error == "invalid_request"


@pytest.mark.parametrize("value,expected", [("true", True), ("Yes", True), ("1", True), ("allow", True),
                                            ("false", False), ("NO", False), ("0", False), ("deny", False)])
def test_parse_decision(value, expected):
    assert parse_decision(value) is expected


def test_build_redirect_keeps_existing_query():
    assert build_redirect("https://a.example/cb?x=1", {"code": "c"}) == "https://a.example/cb?x=1&code=c"
    assert build_redirect("https://a.example/cb", {"state": "a b"}) == "https://a.example/cb?state=a+b"
