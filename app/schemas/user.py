"""
Pydantic schemas for users
"""

from pydantic import BaseModel, EmailStr, Field


class UserLogin(BaseModel):
    """User login schema"""
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=100)
