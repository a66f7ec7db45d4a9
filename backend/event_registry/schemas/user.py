"""
Pydantic schemas for user-related request/response validation.
"""

from uuid import UUID
from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr


class UserCreatedResponse(BaseModel):
    message: str = "User created"
    id: UUID
