"""
Lead model
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
import uuid
from enum import Enum

from app.core.clock import utc_now


class LeadStatus(str, Enum):
    """Pipeline stage of a lead"""
    NEW = "New"
    CONTACTED = "Contacted"
    QUALIFIED = "Qualified"
    PROPOSAL = "Proposal"
    WON = "Won"
    LOST = "Lost"


class Lead(SQLModel, table=True):
    """Sales lead, optionally assigned to a user"""

    __tablename__ = "leads"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    name: str = Field(nullable=False, max_length=255)
    company: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    source: Optional[str] = Field(default=None, max_length=100)

    # Estimated deal value, masked for some roles
    value: float = Field(default=0)
    status: LeadStatus = Field(default=LeadStatus.NEW, index=True)

    assigned_to: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", index=True)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None
