"""
Pydantic schemas for authentication and tokens
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class TokenPayload(BaseModel):
    """JWT token payload"""
    sub: str = Field(..., description="User ID")
    role: Optional[str] = Field(None, description="User role")
    email: Optional[str] = Field(None, description="User email")
    name: Optional[str] = Field(None, description="Display name")
    exp: datetime = Field(..., description="Expiration time")
    iat: Optional[datetime] = Field(None, description="Issued at")


class Principal(BaseModel):
    """Identity attached to a request once its bearer token is verified"""
    id: str
    role: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: TokenPayload) -> "Principal":
        return cls(id=payload.sub, role=payload.role, email=payload.email, name=payload.name)


class TokenResponse(BaseModel):
    """Token response"""
    access_token: str
    token_type: str = "bearer"
    user_id: str
    role: str
    must_change_password: bool = False
