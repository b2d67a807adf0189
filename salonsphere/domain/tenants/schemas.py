"""Tenant domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel


class TenantResponse(BaseModel):
    """Public tenant information used by booking pages"""

    id: str
    name: str
    subdomain: str
    custom_domain: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None

    class Config:
        from_attributes = True
