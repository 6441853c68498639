"""Response Repository: ``VolunteerResponse`` rows and their flat projections.

Joins are spelled out per call site and return plain rows, so a caller always
sees exactly which tables a read touches.
"""
from typing import Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mutual_aid.models.request import HelpRequest
from mutual_aid.models.response import EXCLUSIVITY_CONSTRAINT, VolunteerResponse
from mutual_aid.models.user import User

# How the exclusivity violation shows up across backends: Postgres reports
# the constraint name, SQLite only the column list.
_EXCLUSIVITY_MARKERS = (EXCLUSIVITY_CONSTRAINT, "responses_pkey", "responses.request_id")


def is_exclusivity_violation(error: IntegrityError) -> bool:
    constraint_name = getattr(getattr(error.orig, "diag", None), "constraint_name", None)
    if constraint_name in _EXCLUSIVITY_MARKERS:
        return True
    message = str(error.orig) if error.orig else str(error)
    return any(marker in message for marker in _EXCLUSIVITY_MARKERS)


def create(db: Session, request_id: str, volunteer_id: str) -> VolunteerResponse:
    """Insert a response and flush, so a constraint violation surfaces here."""
    response = VolunteerResponse(request_id=request_id, volunteer_id=volunteer_id)
    db.add(response)
    db.flush()
    return response


def get(db: Session, request_id: str, volunteer_id: str) -> Optional[VolunteerResponse]:
    return db.get(VolunteerResponse, (request_id, volunteer_id))


def get_for_request(db: Session, request_id: str) -> Optional[VolunteerResponse]:
    return db.query(VolunteerResponse).filter(VolunteerResponse.request_id == request_id).first()


def delete(db: Session, response: VolunteerResponse) -> None:
    db.delete(response)
    db.flush()


def delete_for_request(db: Session, request_id: str) -> int:
    deleted = (
        db.query(VolunteerResponse)
        .filter(VolunteerResponse.request_id == request_id)
        .delete(synchronize_session="fetch")
    )
    db.flush()
    return deleted


def count_for_request(db: Session, request_id: str) -> int:
    return (
        db.query(func.count(VolunteerResponse.request_id))
        .filter(VolunteerResponse.request_id == request_id)
        .scalar()
        or 0
    )


def count_for_volunteer(db: Session, volunteer_id: str) -> int:
    return (
        db.query(func.count(VolunteerResponse.request_id))
        .filter(VolunteerResponse.volunteer_id == volunteer_id)
        .scalar()
        or 0
    )


def volunteers_for_requests(db: Session, request_ids: Sequence[str]) -> dict[str, list]:
    """Map request id -> volunteer rows (oldest first) for a batch of requests."""
    if not request_ids:
        return {}
    rows = (
        db.query(
            VolunteerResponse.request_id,
            VolunteerResponse.created_at,
            User.user_id,
            User.name,
            User.phone,
            User.email,
            User.city,
        )
        .join(User, User.user_id == VolunteerResponse.volunteer_id)
        .filter(VolunteerResponse.request_id.in_(list(request_ids)))
        .order_by(VolunteerResponse.created_at.asc())
        .all()
    )
    grouped: dict[str, list] = {}
    for row in rows:
        grouped.setdefault(row.request_id, []).append(row)
    return grouped


def list_for_request(db: Session, request_id: str, offset: int, limit: int) -> list:
    return (
        db.query(
            VolunteerResponse.request_id,
            VolunteerResponse.volunteer_id,
            VolunteerResponse.created_at,
            User.name,
            User.phone,
            User.email,
            User.city,
        )
        .join(User, User.user_id == VolunteerResponse.volunteer_id)
        .filter(VolunteerResponse.request_id == request_id)
        .order_by(VolunteerResponse.created_at.asc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def list_for_volunteer(db: Session, volunteer_id: str, offset: int, limit: int) -> list:
    return (
        db.query(
            VolunteerResponse.request_id,
            VolunteerResponse.volunteer_id,
            VolunteerResponse.created_at,
            HelpRequest.title,
            HelpRequest.description,
            HelpRequest.category,
            HelpRequest.city,
            HelpRequest.status,
            HelpRequest.created_at.label("request_created_at"),
            HelpRequest.owner_id,
            User.name.label("owner_name"),
            User.phone.label("owner_phone"),
        )
        .join(HelpRequest, HelpRequest.request_id == VolunteerResponse.request_id)
        .join(User, User.user_id == HelpRequest.owner_id)
        .filter(VolunteerResponse.volunteer_id == volunteer_id)
        .order_by(VolunteerResponse.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
