"""
Schemas module
"""

from app.schemas.token import Principal, TokenPayload, TokenResponse
from app.schemas.user import UserLogin
from app.schemas.access_rule import (
    AccessRuleCreate,
    AccessRuleResponse,
    AccessRuleUpdate,
    MessageResponse,
)

__all__ = [
    "Principal",
    "TokenPayload",
    "TokenResponse",
    "UserLogin",
    "AccessRuleCreate",
    "AccessRuleResponse",
    "AccessRuleUpdate",
    "MessageResponse",
]
