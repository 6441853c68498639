"""Pydantic schemas for help requests."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from mutual_aid.models.request import HelpCategory, RequestStatus
from mutual_aid.schemas.common import PageMeta, upper_if_str


class RequestCreate(BaseModel):
    title: str = Field(min_length=5, max_length=100)
    description: str = Field(min_length=20, max_length=1000)
    category: HelpCategory
    city: str = Field(min_length=1, max_length=100)

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, value):
        return upper_if_str(value)

    model_config = {"extra": "forbid"}


class RequestUpdate(BaseModel):
    """Partial edit; status has its own endpoint."""

    title: Optional[str] = Field(None, min_length=5, max_length=100)
    description: Optional[str] = Field(None, min_length=20, max_length=1000)
    category: Optional[HelpCategory] = None
    city: Optional[str] = Field(None, min_length=1, max_length=100)

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, value):
        return upper_if_str(value)

    model_config = {"extra": "forbid"}


class RequestStatusUpdate(BaseModel):
    status: RequestStatus

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        return upper_if_str(value)


class RequestOut(BaseModel):
    request_id: str
    owner_id: str
    title: str
    description: str
    category: HelpCategory
    city: str
    status: RequestStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OwnerBrief(BaseModel):
    user_id: str
    name: str
    email: str
    phone: Optional[str] = None


class AssignedVolunteer(BaseModel):
    user_id: str
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    responded_at: datetime


class RequestListItem(RequestOut):
    owner: OwnerBrief
    has_response: bool
    volunteer: Optional[AssignedVolunteer] = None


class RequestPage(BaseModel):
    data: list[RequestListItem]
    meta: PageMeta


class RequestDetailOut(RequestOut):
    owner: OwnerBrief
    response_count: int
    volunteers: list[AssignedVolunteer] = []
