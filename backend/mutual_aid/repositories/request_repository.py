"""Request Repository: every read and write of ``HelpRequest`` rows.

All functions take the caller's session; none of them commit. The caller
decides the transaction boundary (see ``mutual_aid.database.transaction``).
"""
from typing import Any, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from mutual_aid.errors import FieldValidationError
from mutual_aid.models.request import HelpRequest, RequestStatus
from mutual_aid.models.user import User

# Columns an owner/admin may edit through ``update_fields``.
EDITABLE_FIELDS = ("title", "description", "category", "city")


def create(db: Session, owner_id: str, fields: dict[str, Any]) -> HelpRequest:
    help_request = HelpRequest(owner_id=owner_id, status=RequestStatus.ACTIVE, **fields)
    db.add(help_request)
    db.flush()
    return help_request


def get(db: Session, request_id: str) -> Optional[HelpRequest]:
    return db.query(HelpRequest).filter(HelpRequest.request_id == request_id).first()


def get_for_update(db: Session, request_id: str) -> Optional[HelpRequest]:
    """Fetch a request and hold its row lock until the transaction ends."""
    return (
        db.query(HelpRequest)
        .filter(HelpRequest.request_id == request_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def get_with_owner(db: Session, request_id: str) -> Optional[tuple[HelpRequest, User]]:
    return (
        db.query(HelpRequest, User)
        .join(User, User.user_id == HelpRequest.owner_id)
        .filter(HelpRequest.request_id == request_id)
        .first()
    )


def update_fields(db: Session, help_request: HelpRequest, fields: dict[str, Any]) -> HelpRequest:
    for field, value in fields.items():
        if field not in EDITABLE_FIELDS:
            raise FieldValidationError(f"Field '{field}' cannot be edited")
        setattr(help_request, field, value)
    db.flush()
    return help_request


def set_status(db: Session, help_request: HelpRequest, status: RequestStatus) -> HelpRequest:
    help_request.status = status
    db.flush()
    return help_request


def delete(db: Session, help_request: HelpRequest) -> None:
    db.delete(help_request)
    db.flush()


def list_with_owner(
    db: Session,
    criteria: Sequence,
    order_by: Sequence,
    offset: int,
    limit: int,
) -> list[tuple[HelpRequest, User]]:
    query = (
        db.query(HelpRequest, User)
        .join(User, User.user_id == HelpRequest.owner_id)
        .filter(*criteria)
        .order_by(*order_by)
        .offset(offset)
        .limit(limit)
    )
    return query.all()


def count(db: Session, criteria: Sequence) -> int:
    return db.query(func.count(HelpRequest.request_id)).filter(*criteria).scalar() or 0
