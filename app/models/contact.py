"""
Contact model
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
import uuid

from app.core.clock import utc_now


class Contact(SQLModel, table=True):
    """Customer contact"""

    __tablename__ = "contacts"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    name: str = Field(nullable=False, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    phone_number: Optional[str] = Field(default=None, max_length=50)
    company: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = Field(default=None, max_length=2000)

    assigned_to: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", index=True)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None
