"""
Pydantic schemas for access rules

Payloads use camelCase on the wire (featureName, leadPlanner, ...) and also
accept the snake_case field names.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime
import uuid

from app.models.access_rule import AccessAction


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AccessRuleCreate(_CamelModel):
    """Schema for creating an access rule"""
    feature_name: str = Field(..., min_length=1, max_length=255)
    module: str = Field(..., min_length=1, max_length=100)
    admin: List[AccessAction] = Field(default_factory=list)
    lead_planner: List[AccessAction] = Field(default_factory=list)
    assistant: List[AccessAction] = Field(default_factory=list)
    available_permissions: List[AccessAction] = Field(default_factory=lambda: [AccessAction.READ])


class AccessRuleUpdate(_CamelModel):
    """Schema for partially updating an access rule"""
    feature_name: Optional[str] = Field(None, min_length=1, max_length=255)
    module: Optional[str] = Field(None, min_length=1, max_length=100)
    admin: Optional[List[AccessAction]] = None
    lead_planner: Optional[List[AccessAction]] = None
    assistant: Optional[List[AccessAction]] = None
    available_permissions: Optional[List[AccessAction]] = None


class AccessRuleResponse(_CamelModel):
    """Schema for access rule response"""
    id: uuid.UUID
    feature_name: str
    module: str
    admin: List[str]
    lead_planner: List[str]
    assistant: List[str]
    available_permissions: List[str]
    updated_by: Optional[str] = None
    updated_at: datetime


class MessageResponse(BaseModel):
    message: str
