"""
Invoice model
"""

from sqlmodel import Field, SQLModel
from datetime import date, datetime
from typing import Optional
import uuid
from enum import Enum

from app.core.clock import utc_now


class InvoiceStatus(str, Enum):
    DRAFT = "Draft"
    SENT = "Sent"
    PAID = "Paid"
    OVERDUE = "Overdue"


class Invoice(SQLModel, table=True):
    """Customer invoice"""

    __tablename__ = "invoices"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    invoice_number: str = Field(index=True, unique=True, nullable=False, max_length=50)
    client_name: str = Field(nullable=False, max_length=255)
    amount: float = Field(default=0)
    status: InvoiceStatus = Field(default=InvoiceStatus.DRAFT, index=True)
    due_date: Optional[date] = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None
