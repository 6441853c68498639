"""Help request API routes; every handler delegates to the matching engine or the query service."""
import logging
from datetime import date
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from mutual_aid import guards
from mutual_aid.config import Settings, get_app_settings
from mutual_aid.database import get_db
from mutual_aid.errors import FieldValidationError
from mutual_aid.identity import Identity, get_identity
from mutual_aid.models.request import HelpCategory, RequestStatus
from mutual_aid.models.user import Role
from mutual_aid.schemas.common import MessageOut
from mutual_aid.schemas.request import (
    RequestCreate,
    RequestDetailOut,
    RequestOut,
    RequestPage,
    RequestStatusUpdate,
    RequestUpdate,
)
from mutual_aid.schemas.response import RequestResponsePage, ResponseAcceptedOut, VolunteerResponsePage
from mutual_aid.services import matching_engine, query_service

logger = logging.getLogger(__name__)
router = APIRouter()


def _parse_enum_list(enum_cls, values: Optional[list[str]], name: str) -> list:
    parsed = []
    for raw in values or []:
        try:
            parsed.append(enum_cls(raw.upper()))
        except ValueError:
            allowed = ", ".join(member.value for member in enum_cls)
            raise FieldValidationError(f"{name} must be one of the following values: {allowed}")
    return parsed


def request_filter_params(
    search: Optional[str] = Query(None, description="Case-insensitive match on title or description"),
    category: Optional[list[str]] = Query(None),
    city: Optional[str] = Query(None),
    status_: Optional[list[str]] = Query(None, alias="status"),
    created_at_from: Optional[date] = Query(None),
    created_at_to: Optional[date] = Query(None, description="Inclusive: the whole day counts"),
    sort_by: Optional[str] = Query(None),
    order: str = Query("desc"),
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1),
) -> query_service.RequestFilter:
    return query_service.RequestFilter(
        search=search,
        categories=_parse_enum_list(HelpCategory, category, "category"),
        city=city,
        statuses=_parse_enum_list(RequestStatus, status_, "status"),
        created_from=created_at_from,
        created_to=created_at_to,
        sort_by=sort_by,
        order=order.lower(),
        page=page,
        limit=limit,
    )


@router.get("/", response_model=RequestPage)
def list_requests(
    request_filter: query_service.RequestFilter = Depends(request_filter_params),
    identity: Identity = Depends(get_identity),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
):
    """List requests with filtering, sorting and pagination, including who has accepted each one."""
    return query_service.get_requests(db, settings, request_filter)


@router.get("/my", response_model=RequestPage)
def list_my_requests(
    request_filter: query_service.RequestFilter = Depends(request_filter_params),
    identity: Identity = Depends(get_identity),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
):
    """List the caller's own requests."""
    request_filter.owner_id = identity.id
    return query_service.get_requests(db, settings, request_filter)


@router.get("/responses/my", response_model=VolunteerResponsePage)
def list_my_responses(
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    identity: Identity = Depends(get_identity),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
):
    """List the requests the calling volunteer has accepted."""
    guards.require_role(identity, Role.VOLUNTEER, Role.ADMIN)
    return query_service.get_volunteer_responses(db, settings, identity.id, page, limit)


@router.get("/{request_id}", response_model=RequestDetailOut)
def get_request(
    request_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    return query_service.get_request_detail(db, str(request_id))


@router.get("/{request_id}/responses", response_model=RequestResponsePage)
def list_request_responses(
    request_id: UUID,
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    identity: Identity = Depends(get_identity),
    settings: Settings = Depends(get_app_settings),
    db: Session = Depends(get_db),
):
    """Volunteer responses recorded for one request (at most one is live)."""
    return query_service.get_request_responses(db, settings, str(request_id), page, limit)


@router.post("/", response_model=RequestOut, status_code=status.HTTP_201_CREATED)
def create_request(
    payload: RequestCreate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    guards.require_role(identity, Role.USER, Role.ADMIN)
    return matching_engine.create_request(db, identity.id, payload.model_dump())


@router.post("/{request_id}/respond", response_model=ResponseAcceptedOut, status_code=status.HTTP_201_CREATED)
def respond_to_request(
    request_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """Accept a request. Only one volunteer can hold a request; it moves to IN_PROGRESS."""
    guards.require_role(identity, Role.VOLUNTEER, Role.ADMIN)
    return matching_engine.create_response(db, str(request_id), identity.id)


@router.delete("/{request_id}/respond", response_model=MessageOut)
def withdraw_response(
    request_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """Withdraw the caller's acceptance; the request returns to ACTIVE."""
    guards.require_role(identity, Role.VOLUNTEER, Role.ADMIN)
    return matching_engine.delete_response(db, str(request_id), identity.id)


@router.patch("/{request_id}", response_model=RequestOut)
def update_request(
    request_id: UUID,
    payload: RequestUpdate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """Edit any field except the status (owner or admin)."""
    return matching_engine.update_request(
        db, identity, str(request_id), payload.model_dump(exclude_unset=True)
    )


@router.patch("/{request_id}/status", response_model=RequestOut)
def update_request_status(
    request_id: UUID,
    payload: RequestStatusUpdate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    return matching_engine.update_request_status(db, identity, str(request_id), payload.status)


@router.delete("/{request_id}", response_model=MessageOut)
def delete_request(
    request_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    return matching_engine.delete_request(db, identity, str(request_id))
