"""
Invoice model for client billing
"""

from sqlalchemy import Column, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .models import generate_id


class Invoice(Base):
    """Invoice issued to a client, optionally for a single booking"""

    __tablename__ = "invoices"

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), index=True, nullable=False)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=False)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=True)

    invoice_number = Column(String(50), nullable=False, index=True)
    description = Column(Text, nullable=True)
    total_amount = Column(Float, nullable=False)
    currency = Column(String(10), default="EUR")

    status = Column(String(20), default="draft")  # draft, sent, paid, overdue, cancelled

    issue_date = Column(DateTime, server_default=func.now())
    due_date = Column(DateTime, nullable=True)
    paid_at = Column(DateTime, nullable=True, index=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="invoices")
