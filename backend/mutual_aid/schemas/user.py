"""Pydantic schemas for Users."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from mutual_aid.models.user import Role
from mutual_aid.schemas.common import upper_if_str


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=32)
    city: Optional[str] = Field(None, max_length=100)
    role: Role = Role.USER

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, value):
        return upper_if_str(value)


class UserOut(BaseModel):
    user_id: str
    name: str
    email: str
    phone: Optional[str] = None
    city: Optional[str] = None
    role: Role
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
