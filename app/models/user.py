"""
User model with role and login lockout state
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
import uuid

from app.core.clock import as_utc, utc_now
from app.core.permissions import Role


class User(SQLModel, table=True):
    """Authenticated CRM user"""

    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Authentication
    email: str = Field(index=True, unique=True, nullable=False, max_length=255)
    password_hash: str = Field(nullable=False)

    # Profile
    name: str = Field(nullable=False, max_length=200)
    job_title: str = Field(default="Personnel", max_length=100)

    # RBAC
    role: str = Field(default=Role.ASSISTANT.value, nullable=False, index=True, max_length=50)

    # Login state
    must_change_password: bool = Field(default=False)
    failed_login_attempts: int = Field(default=0)
    lock_until: Optional[datetime] = None
    is_active: bool = Field(default=True, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now)
    last_login_at: Optional[datetime] = None

    def is_locked(self, now: Optional[datetime] = None) -> bool:
        lock_until = as_utc(self.lock_until)
        return lock_until is not None and lock_until > (now or utc_now())
