"""
Access rule model for feature-level, administrator-editable permissions
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, JSON
from datetime import datetime
from typing import List, Optional
import uuid
from enum import Enum

from app.core.clock import utc_now


class AccessAction(str, Enum):
    """Actions an access rule can grant on a feature"""
    READ = "Read"
    WRITE = "Write"
    DELETE = "Delete"


class AccessRule(SQLModel, table=True):
    """Per-feature action lists for each role column"""

    __tablename__ = "access_rules"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    feature_name: str = Field(
        index=True,
        unique=True,
        nullable=False,
        max_length=255,
        description="Feature the rule governs, e.g. 'Invoices'"
    )
    module: str = Field(default="General", max_length=100, description="Sales, Activities, Inventory, ...")

    # Role columns (lists of AccessAction values)
    admin: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    lead_planner: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    assistant: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    available_permissions: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    # Audit
    updated_by: Optional[str] = Field(default=None, max_length=255)
    updated_at: datetime = Field(default_factory=utc_now)

    def actions_for(self, role_field: str) -> List[str]:
        """Actions granted to a role column, empty when unset"""
        return list(getattr(self, role_field, None) or [])
