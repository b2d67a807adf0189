"""Treatment (service) domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_duration_minutes


def _non_negative(value: Optional[float], field: str) -> Optional[float]:
    if value is not None and value < 0:
        raise ValueError(f"{field} cannot be negative")
    return value


class ServiceCreate(BaseModel):
    """Schema for creating a treatment"""

    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    price: float = 0
    duration_minutes: int = 60
    material_cost: float = 0
    active: bool = True

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("duration_minutes")
    @classmethod
    def check_duration(cls, v):
        return validate_duration_minutes(v)

    @field_validator("price")
    @classmethod
    def check_price(cls, v):
        return _non_negative(v, "Price")

    @field_validator("material_cost")
    @classmethod
    def check_material_cost(cls, v):
        return _non_negative(v, "Material cost")


class ServiceUpdate(BaseModel):
    """Schema for updating a treatment"""

    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = None
    duration_minutes: Optional[int] = None
    material_cost: Optional[float] = None
    active: Optional[bool] = None

    @field_validator("duration_minutes")
    @classmethod
    def check_duration(cls, v):
        return validate_duration_minutes(v)

    @field_validator("price")
    @classmethod
    def check_price(cls, v):
        return _non_negative(v, "Price")

    @field_validator("material_cost")
    @classmethod
    def check_material_cost(cls, v):
        return _non_negative(v, "Material cost")


class ServiceResponse(BaseModel):
    """Schema for treatment response"""

    id: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    price: float
    duration_minutes: int
    duration_label: Optional[str] = None
    material_cost: float = 0
    margin_percentage: float = 0
    active: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DurationOption(BaseModel):
    value: int
    label: str
