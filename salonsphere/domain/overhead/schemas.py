"""Overhead domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_duration_minutes
from .calculator import CALCULATION_METHODS


class OverheadMetrics(BaseModel):
    overhead_monthly: float = 0
    total_treatments: int = 0
    overhead_per_treatment: float = 0
    average_treatment_price: float = 0
    overhead_percentage: float = 0
    month_analyzed: str


class TreatmentOverheadAnalysis(BaseModel):
    service_id: str
    service_name: str
    service_price: float
    material_cost: float
    overhead_cost: float
    total_cost: float
    margin_without_overhead: float
    margin_with_overhead: float
    overhead_percentage: float


class OverheadTrend(BaseModel):
    month: str
    overhead_monthly: float = 0
    total_treatments: int = 0
    overhead_per_treatment: float = 0
    overhead_percentage: float = 0


class OverheadAlert(BaseModel):
    type: str
    title: str
    message: str
    action: str


class OverheadSettings(BaseModel):
    """Overhead settings stored on the tenant"""

    overhead_monthly: float = 0
    calculation_method: str = "treatments"
    include_in_pricing: bool = True
    show_in_reports: bool = True


class OverheadSettingsUpdate(BaseModel):
    overhead_monthly: Optional[float] = None
    calculation_method: Optional[str] = None
    include_in_pricing: Optional[bool] = None
    show_in_reports: Optional[bool] = None

    @field_validator("overhead_monthly")
    @classmethod
    def check_overhead_monthly(cls, v):
        if v is not None and v < 0:
            raise ValueError("Monthly overhead cannot be negative")
        return v

    @field_validator("calculation_method")
    @classmethod
    def check_calculation_method(cls, v):
        if v is not None and v not in CALCULATION_METHODS:
            raise ValueError(f"Calculation method must be one of: {', '.join(CALCULATION_METHODS)}")
        return v


class PricingRequest(BaseModel):
    """Inputs for the treatment pricing calculator"""

    duration_minutes: int = 60
    material_cost: float = 0
    labor_cost_per_hour: float = 0
    overhead_percentage: float = 0
    desired_margin: float = 50
    competitor_price: float = 0

    @field_validator("duration_minutes")
    @classmethod
    def check_duration(cls, v):
        return validate_duration_minutes(v)

    @field_validator("material_cost", "labor_cost_per_hour", "overhead_percentage", "competitor_price")
    @classmethod
    def check_non_negative(cls, v):
        if v < 0:
            raise ValueError("Value cannot be negative")
        return v

    @field_validator("desired_margin")
    @classmethod
    def check_desired_margin(cls, v):
        if v < 0 or v >= 100:
            raise ValueError("Desired margin must be between 0 and 100%")
        return v


class PricingResult(BaseModel):
    labor_cost: float
    overhead_cost: float
    total_cost: float
    suggested_price: float
    actual_margin: float
    profit_per_treatment: float
    competitor_margin: float
    price_difference: float
    price_difference_percentage: float
