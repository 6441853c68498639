"""Read side: filter, sort and paginate requests and responses.

Every listing returns ``{data, meta}``. Projections of owners and volunteers
are fetched in one batch query per page rather than per row.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Optional

from sqlalchemy.orm import Session

from mutual_aid.config import Settings
from mutual_aid.errors import FieldValidationError, NotFoundError
from mutual_aid.models.request import HelpCategory, HelpRequest, RequestStatus
from mutual_aid.repositories import request_repository, response_repository
from mutual_aid.schemas.common import PageMeta
from mutual_aid.schemas.request import (
    AssignedVolunteer,
    OwnerBrief,
    RequestDetailOut,
    RequestListItem,
    RequestOut,
    RequestPage,
)
from mutual_aid.schemas.response import (
    RequestResponseItem,
    RequestResponsePage,
    RespondedRequest,
    VolunteerContact,
    VolunteerResponseItem,
    VolunteerResponsePage,
)

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "category": HelpRequest.category,
    "city": HelpRequest.city,
    "created_at": HelpRequest.created_at,
    "status": HelpRequest.status,
    "title": HelpRequest.title,
}
SORT_ORDERS = ("asc", "desc")


@dataclass
class RequestFilter:
    search: Optional[str] = None
    categories: list[HelpCategory] = field(default_factory=list)
    city: Optional[str] = None
    statuses: list[RequestStatus] = field(default_factory=list)
    owner_id: Optional[str] = None
    created_from: Optional[date] = None
    created_to: Optional[date] = None
    sort_by: Optional[str] = None
    order: str = "desc"
    page: Optional[int] = None
    limit: Optional[int] = None


def resolve_paging(settings: Settings, page: Optional[int], limit: Optional[int]) -> tuple[int, int]:
    page = settings.DEFAULT_PAGE if page is None else page
    limit = settings.DEFAULT_PAGE_SIZE if limit is None else limit
    if page < 1:
        raise FieldValidationError("page must not be less than 1")
    if limit < 1:
        raise FieldValidationError("limit must not be less than 1")
    return page, limit


def _page_meta(total_items: int, page: int, limit: int) -> PageMeta:
    return PageMeta(
        total_items=total_items,
        total_pages=math.ceil(total_items / limit),
        current_page=page,
        items_per_page=limit,
    )


def build_criteria(request_filter: RequestFilter) -> list:
    """Translate a filter into SQLAlchemy WHERE clauses (ANDed by the caller)."""
    criteria = []
    if request_filter.search:
        criteria.append(
            HelpRequest.title.icontains(request_filter.search, autoescape=True)
            | HelpRequest.description.icontains(request_filter.search, autoescape=True)
        )
    if request_filter.categories:
        criteria.append(HelpRequest.category.in_(request_filter.categories))
    if request_filter.city:
        criteria.append(HelpRequest.city == request_filter.city)
    if request_filter.statuses:
        criteria.append(HelpRequest.status.in_(request_filter.statuses))
    if request_filter.owner_id:
        criteria.append(HelpRequest.owner_id == request_filter.owner_id)
    if request_filter.created_from:
        start = datetime.combine(request_filter.created_from, time.min, tzinfo=timezone.utc)
        criteria.append(HelpRequest.created_at >= start)
    if request_filter.created_to:
        # Inclusive: the whole of the last day counts.
        end = datetime.combine(request_filter.created_to, time.max, tzinfo=timezone.utc)
        criteria.append(HelpRequest.created_at <= end)
    return criteria


def build_ordering(sort_by: Optional[str], order: str) -> list:
    if order not in SORT_ORDERS:
        raise FieldValidationError(f"Sort order should be one of: {', '.join(SORT_ORDERS)}")
    if sort_by is None:
        return [HelpRequest.created_at.desc(), HelpRequest.request_id]
    column = SORTABLE_FIELDS.get(sort_by)
    if column is None:
        raise FieldValidationError(f"sortBy should be one of: {', '.join(SORTABLE_FIELDS)}")
    return [column.asc() if order == "asc" else column.desc(), HelpRequest.request_id]


def _volunteer_view(row) -> AssignedVolunteer:
    return AssignedVolunteer(
        user_id=row.user_id,
        name=row.name,
        phone=row.phone,
        email=row.email,
        responded_at=row.created_at,
    )


def _owner_view(owner) -> OwnerBrief:
    return OwnerBrief(user_id=owner.user_id, name=owner.name, email=owner.email, phone=owner.phone)


def get_requests(db: Session, settings: Settings, request_filter: RequestFilter) -> RequestPage:
    page, limit = resolve_paging(settings, request_filter.page, request_filter.limit)
    criteria = build_criteria(request_filter)
    ordering = build_ordering(request_filter.sort_by, request_filter.order)

    rows = request_repository.list_with_owner(db, criteria, ordering, (page - 1) * limit, limit)
    total_items = request_repository.count(db, criteria)
    volunteers = response_repository.volunteers_for_requests(db, [r.request_id for r, _ in rows])

    items = []
    for help_request, owner in rows:
        responders = volunteers.get(help_request.request_id, [])
        items.append(
            RequestListItem(
                **RequestOut.model_validate(help_request).model_dump(),
                owner=_owner_view(owner),
                has_response=bool(responders),
                volunteer=_volunteer_view(responders[0]) if responders else None,
            )
        )
    logger.debug("Listed %d of %d requests (page %d)", len(items), total_items, page)
    return RequestPage(data=items, meta=_page_meta(total_items, page, limit))


def get_request_detail(db: Session, request_id: str) -> RequestDetailOut:
    found = request_repository.get_with_owner(db, request_id)
    if found is None:
        raise NotFoundError("Request not found")
    help_request, owner = found
    responders = response_repository.volunteers_for_requests(db, [request_id]).get(request_id, [])
    return RequestDetailOut(
        **RequestOut.model_validate(help_request).model_dump(),
        owner=_owner_view(owner),
        response_count=len(responders),
        volunteers=[_volunteer_view(row) for row in responders],
    )


def get_request_responses(
    db: Session,
    settings: Settings,
    request_id: str,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> RequestResponsePage:
    page, limit = resolve_paging(settings, page, limit)
    if request_repository.get(db, request_id) is None:
        raise NotFoundError("Request not found")

    rows = response_repository.list_for_request(db, request_id, (page - 1) * limit, limit)
    total_items = response_repository.count_for_request(db, request_id)
    items = [
        RequestResponseItem(
            request_id=row.request_id,
            volunteer_id=row.volunteer_id,
            created_at=row.created_at,
            volunteer=VolunteerContact(
                user_id=row.volunteer_id,
                name=row.name,
                phone=row.phone,
                email=row.email,
                city=row.city,
            ),
        )
        for row in rows
    ]
    return RequestResponsePage(data=items, meta=_page_meta(total_items, page, limit))


def get_volunteer_responses(
    db: Session,
    settings: Settings,
    volunteer_id: str,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> VolunteerResponsePage:
    """Requests the volunteer has accepted, most recent first."""
    page, limit = resolve_paging(settings, page, limit)
    rows = response_repository.list_for_volunteer(db, volunteer_id, (page - 1) * limit, limit)
    total_items = response_repository.count_for_volunteer(db, volunteer_id)
    items = [
        VolunteerResponseItem(
            request_id=row.request_id,
            volunteer_id=row.volunteer_id,
            created_at=row.created_at,
            request=RespondedRequest(
                request_id=row.request_id,
                title=row.title,
                description=row.description,
                category=row.category,
                city=row.city,
                status=row.status,
                created_at=row.request_created_at,
                owner_id=row.owner_id,
                owner_name=row.owner_name,
                owner_phone=row.owner_phone,
            ),
        )
        for row in rows
    ]
    return VolunteerResponsePage(data=items, meta=_page_meta(total_items, page, limit))
