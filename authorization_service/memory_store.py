"""
In-memory client registry and code store for tests and single-process development.
The app itself wires the SQL-backed ones (registry.get_client_registry, store.get_code_store).
Same contracts; a lock makes each transition atomic.
"""
import threading
from datetime import datetime, timedelta
from typing import Callable

from authorization_service.config import CODE_TTL_SECONDS, PENDING_AUTH_TTL_SECONDS
from authorization_service.errors import PendingAuthorizationNotFound
from authorization_service.models import Client
from authorization_service.store import (
    PendingAuthorization,
    RedeemableCode,
    new_session_token,
    utc_now,
)


class InMemoryClientRegistry:
    def __init__(self, clients: list[Client] | None = None):
        self._clients: dict[str, Client] = {}
        for client in clients or []:
            self.add(client)

    def add(self, client: Client) -> None:
        self._clients[client.client_id] = client

    def lookup(self, client_id: str) -> Client | None:
        return self._clients.get(client_id)


class InMemoryAuthorizationCodeStore:
    def __init__(
        self,
        *,
        pending_ttl: int = PENDING_AUTH_TTL_SECONDS,
        code_ttl: int = CODE_TTL_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.pending_ttl = pending_ttl
        self.code_ttl = code_ttl
        self.clock = clock
        self._pending: dict[str, PendingAuthorization] = {}
        self._codes: dict[str, RedeemableCode] = {}  # client_id -> code
        self._lock = threading.Lock()

    def create_pending(
        self, client_id: str, scopes: tuple[str, ...], state: str, redirect_uri: str, code: str
    ) -> str:
        now = self.clock()
        session_token = new_session_token()
        with self._lock:
            if any(p.code == code for p in self._pending.values()):
                raise ValueError("authorization code collision")
            self._pending[session_token] = PendingAuthorization(
                session_token=session_token,
                code=code,
                client_id=client_id,
                scopes=tuple(scopes),
                state=state,
                redirect_uri=redirect_uri,
                created_at=now,
                expires_at=now + timedelta(seconds=self.pending_ttl),
            )
        return session_token

    def resolve_pending(self, session_token: str) -> PendingAuthorization | None:
        pending = self._pending.get(session_token)
        if pending is None or pending.expired(self.clock()):
            return None
        return pending

    def finalize(self, session_token: str, approved: bool) -> str | None:
        now = self.clock()
        with self._lock:
            pending = self._pending.pop(session_token, None)
            if pending is None:
                raise PendingAuthorizationNotFound("unknown or consumed session token")
            if pending.expired(now):
                raise PendingAuthorizationNotFound("pending authorization expired")
            if not approved:
                self._codes.pop(pending.client_id, None)
                return None
            self._codes[pending.client_id] = RedeemableCode(
                client_id=pending.client_id,
                code=pending.code,
                redirect_uri=pending.redirect_uri,
                scopes=pending.scopes,
                expires_at=now + timedelta(seconds=self.code_ttl),
            )
            return pending.code

    def get_code(self, client_id: str) -> RedeemableCode | None:
        held = self._codes.get(client_id)
        if held is None or held.expired(self.clock()):
            return None
        return held

    def redeem(self, client_id: str, code: str, redirect_uri: str) -> RedeemableCode | None:
        with self._lock:
            held = self.get_code(client_id)
            if held is None or held.code != code or held.redirect_uri != redirect_uri:
                return None
            del self._codes[client_id]
            return held
