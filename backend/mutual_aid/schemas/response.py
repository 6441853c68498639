"""Pydantic schemas for volunteer responses."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from mutual_aid.models.request import HelpCategory, RequestStatus
from mutual_aid.schemas.common import PageMeta


class RequestBrief(BaseModel):
    request_id: str
    title: str
    status: RequestStatus


class VolunteerBrief(BaseModel):
    user_id: str
    name: str
    phone: Optional[str] = None


class ResponseAcceptedOut(BaseModel):
    request_id: str
    volunteer_id: str
    created_at: datetime
    request: RequestBrief
    volunteer: VolunteerBrief
    message: str


class VolunteerContact(VolunteerBrief):
    email: Optional[str] = None
    city: Optional[str] = None


class RequestResponseItem(BaseModel):
    request_id: str
    volunteer_id: str
    created_at: datetime
    volunteer: VolunteerContact


class RequestResponsePage(BaseModel):
    data: list[RequestResponseItem]
    meta: PageMeta


class RespondedRequest(BaseModel):
    request_id: str
    title: str
    description: str
    category: HelpCategory
    city: str
    status: RequestStatus
    created_at: datetime
    owner_id: str
    owner_name: str
    owner_phone: Optional[str] = None


class VolunteerResponseItem(BaseModel):
    request_id: str
    volunteer_id: str
    created_at: datetime
    request: RespondedRequest


class VolunteerResponsePage(BaseModel):
    data: list[VolunteerResponseItem]
    meta: PageMeta
