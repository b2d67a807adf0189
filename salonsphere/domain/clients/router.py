"""Client router - FastAPI endpoints for client operations"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import CurrentUser, get_current_user
from ...cache import Cache, get_cache
from ...database import get_db
from ...realtime import ChangeFeed, get_change_feed
from ...security_middleware import set_rls_context
from .schemas import ClientCreate, ClientResponse, ClientUpdate
from .service import ClientService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["Clients"])


def get_client_service(
    db: Session = Depends(get_db),
    cache: Cache = Depends(get_cache),
    feed: ChangeFeed = Depends(get_change_feed),
    current_user: CurrentUser = Depends(get_current_user),
) -> ClientService:
    """Dependency injection for ClientService"""
    set_rls_context(db, current_user.tenant_id)
    return ClientService(db, cache, feed)


@router.get("", response_model=list[ClientResponse])
async def get_clients(
    search: str = Query("", description="Match on first name, last name or email"),
    current_user: CurrentUser = Depends(get_current_user),
    service: ClientService = Depends(get_client_service),
):
    """Get all clients for the current tenant"""
    return service.get_clients(current_user.tenant_id, search)


@router.get("/segments/{segment}", response_model=list[ClientResponse])
async def get_clients_by_segment(
    segment: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: ClientService = Depends(get_client_service),
):
    """Clients in a marketing segment (vip, new, inactive)"""
    return service.get_clients_by_segment(current_user.tenant_id, segment)


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: ClientService = Depends(get_client_service),
):
    """Get a specific client"""
    client = service.get_client(current_user.tenant_id, client_id)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.post("", response_model=ClientResponse, status_code=201)
async def create_client(
    data: ClientCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: ClientService = Depends(get_client_service),
):
    """Create a new client"""
    client = service.create_client(current_user.tenant_id, data)
    return ClientResponse.model_validate(client)


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: str,
    data: ClientUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: ClientService = Depends(get_client_service),
):
    """Update a client"""
    client = service.update_client(current_user.tenant_id, client_id, data)
    return ClientResponse.model_validate(client)


@router.delete("/{client_id}")
async def delete_client(
    client_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: ClientService = Depends(get_client_service),
):
    """Delete a client"""
    return service.delete_client(current_user.tenant_id, client_id)
