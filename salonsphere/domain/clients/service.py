"""Client service - Business logic for client operations"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import require_tenant
from ...cache import Cache, CacheKeys
from ...models import Client
from ...realtime import ChangeFeed
from .repository import ClientRepository
from .schemas import ClientCreate, ClientResponse, ClientUpdate

logger = logging.getLogger(__name__)

SEGMENTS = {"vip", "new", "inactive"}


def _dump(clients: list[Client]) -> list[dict]:
    return [ClientResponse.model_validate(c).model_dump(mode="json") for c in clients]


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session, cache: Cache, feed: ChangeFeed):
        self.db = db
        self.cache = cache
        self.feed = feed
        self.repo = ClientRepository()

    def get_clients(self, tenant_id: Optional[str], search: str = "") -> list[dict]:
        """All clients, or those matching ``search``"""
        term = (search or "").strip()

        def load():
            if term:
                return _dump(self.repo.search_clients(self.db, tenant_id, term))
            return _dump(self.repo.get_clients(self.db, tenant_id))

        return self.cache.remember(CacheKeys.clients(tenant_id, "search", term), load, default=[])

    def get_clients_by_segment(self, tenant_id: Optional[str], segment: str) -> list[dict]:
        if segment not in SEGMENTS:
            raise HTTPException(status_code=400, detail=f"Unknown segment: {segment}")

        return self.cache.remember(
            CacheKeys.clients(tenant_id, "segment", segment),
            lambda: _dump(self.repo.get_clients_by_segment(self.db, tenant_id, segment)),
            default=[],
        )

    def get_client(self, tenant_id: Optional[str], client_id: str) -> Optional[dict]:
        def load():
            client = self.repo.get_client_by_id(self.db, client_id, tenant_id)
            return ClientResponse.model_validate(client).model_dump(mode="json") if client else None

        return self.cache.remember(CacheKeys.client(tenant_id, client_id), load)

    def _get_client_or_404(self, tenant_id: str, client_id: str) -> Client:
        client = self.repo.get_client_by_id(self.db, client_id, tenant_id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")
        return client

    def create_client(self, tenant_id: Optional[str], data: ClientCreate) -> Client:
        tenant_id = require_tenant(tenant_id)
        logger.info(f"📥 Creating client for tenant: {tenant_id}")

        client = self.repo.create_client(self.db, tenant_id, **data.model_dump())

        self.cache.invalidate(CacheKeys.clients())
        self.feed.publish(tenant_id, "clients", "INSERT")
        return client

    def update_client(self, tenant_id: Optional[str], client_id: str, data: ClientUpdate) -> Client:
        tenant_id = require_tenant(tenant_id)
        client = self._get_client_or_404(tenant_id, client_id)

        client = self.repo.update_client(self.db, client, **data.model_dump(exclude_unset=True))

        self.cache.invalidate(CacheKeys.clients(), CacheKeys.client(tenant_id, client_id))
        self.feed.publish(tenant_id, "clients", "UPDATE")
        return client

    def delete_client(self, tenant_id: Optional[str], client_id: str) -> dict:
        tenant_id = require_tenant(tenant_id)
        client = self._get_client_or_404(tenant_id, client_id)

        self.repo.delete_client(self.db, client)
        logger.info(f"🗑️ Deleted client {client_id} for tenant {tenant_id}")

        self.cache.invalidate(CacheKeys.clients(), CacheKeys.client(tenant_id, client_id))
        self.feed.publish(tenant_id, "clients", "DELETE")
        return {"message": "Client deleted"}
