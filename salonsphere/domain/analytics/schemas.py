"""Analytics domain schemas"""

from datetime import date

from pydantic import BaseModel


class RevenuePoint(BaseModel):
    day: date
    revenue: float


class BookingPoint(BaseModel):
    day: date
    bookings: int


class PopularService(BaseModel):
    service_name: str
    total: int
    percentage: float


class TenantMetrics(BaseModel):
    """Dashboard headline figures over the last 30 days"""

    tenant_id: str
    revenue_last30: float = 0
    appointments_last30: int = 0
    new_clients_last30: int = 0
    low_stock_items: int = 0
    avg_spend_per_client: float = 0


class AgendaStats(BaseModel):
    """Counts over the non-cancelled bookings of a day or period"""

    count_today: int = 0
    total_minutes: int = 0
    unique_clients: int = 0
    completed_count: int = 0
