"""
Client registry: lookup of registered clients by client_id.
"""
from typing import Protocol

from fastapi import Depends
from sqlalchemy.orm import Session

from authorization_service.database import get_db
from authorization_service.models import Client


class ClientRegistry(Protocol):
    def lookup(self, client_id: str) -> Client | None:
        ...


class SqlClientRegistry:
    def __init__(self, db: Session):
        self.db = db

    def lookup(self, client_id: str) -> Client | None:
        return self.db.query(Client).filter(Client.client_id == client_id).first()


def get_client_registry(db: Session = Depends(get_db)) -> ClientRegistry:
    """Dependency: SQL-backed registry bound to the request's session."""
    return SqlClientRegistry(db)
