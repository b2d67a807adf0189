"""Tenant router - FastAPI endpoints for tenant resolution"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import CurrentUser, get_current_user
from ...cache import Cache, get_cache
from ...database import get_db
from .schemas import TenantResponse
from .service import TenantService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tenants", tags=["Tenants"])


def get_tenant_service(
    db: Session = Depends(get_db), cache: Cache = Depends(get_cache)
) -> TenantService:
    """Dependency injection for TenantService"""
    return TenantService(db, cache)


@router.get("/resolve", response_model=TenantResponse)
async def resolve_tenant(
    domain: str = Query(..., min_length=1, description="Inbound host, subdomain or custom domain"),
    service: TenantService = Depends(get_tenant_service),
):
    """Resolve the salon behind a domain (public)"""
    tenant = service.resolve_tenant(domain)
    if not tenant:
        raise HTTPException(status_code=404, detail="Tenant not found")
    return tenant


@router.get("/current", response_model=Optional[TenantResponse])
async def get_current_tenant(
    current_user: CurrentUser = Depends(get_current_user),
    service: TenantService = Depends(get_tenant_service),
):
    """Tenant of the signed-in user; null until a tenant is set"""
    return service.get_tenant(current_user.tenant_id)
