"""Matching engine: the accept/withdraw state machine for help requests.

Responsibilities:
- One responder per request. The request row is locked for the whole
  read-check-write sequence and the ``responses.request_id`` unique
  constraint rejects whichever concurrent insert loses.
- Status coupling: a successful accept moves the request to IN_PROGRESS and a
  withdrawal moves it back to ACTIVE, in the same transaction as the
  response insert/delete.
- Owner/admin direct edits (fields, status, deletion) guarded by
  ``guards.ensure_can_modify``. These deliberately do not go through the
  state machine.

No retries happen here: a lost race is reported to the caller as a
``ConflictError``.
"""
import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mutual_aid import guards
from mutual_aid.database import transaction
from mutual_aid.errors import ConflictError, NotFoundError
from mutual_aid.identity import Identity
from mutual_aid.models.request import HelpRequest, RequestStatus
from mutual_aid.models.user import User
from mutual_aid.repositories import request_repository, response_repository
from mutual_aid.schemas.common import MessageOut
from mutual_aid.schemas.response import RequestBrief, ResponseAcceptedOut, VolunteerBrief

logger = logging.getLogger(__name__)

ACCEPTED_MESSAGE = "Successfully accepted the request"
WITHDRAWN_MESSAGE = "Response withdrawn successfully. Request is now available for other volunteers."
DELETED_MESSAGE = "Request deleted successfully"


def _load_for_update(db: Session, request_id: str) -> HelpRequest:
    help_request = request_repository.get_for_update(db, request_id)
    if help_request is None:
        raise NotFoundError("Request not found")
    return help_request


def create_request(db: Session, owner_id: str, fields: dict[str, Any]) -> HelpRequest:
    """Post a new request; it always starts ACTIVE."""
    with transaction(db):
        help_request = request_repository.create(db, owner_id, fields)
    db.refresh(help_request)
    logger.info("Created request %s ('%s') by owner %s", help_request.request_id, help_request.title, owner_id)
    return help_request


def get_request(db: Session, request_id: str) -> HelpRequest:
    help_request = request_repository.get(db, request_id)
    if help_request is None:
        raise NotFoundError("Request not found")
    return help_request


def create_response(db: Session, request_id: str, volunteer_id: str) -> ResponseAcceptedOut:
    """Record ``volunteer_id`` as the one responder of ``request_id``.

    Checks run in a fixed order and the first failure wins: missing request,
    request not ACTIVE, volunteer is the owner, request already has a responder.
    """
    with transaction(db):
        help_request = _load_for_update(db, request_id)
        guards.ensure_accepting_responses(help_request)
        guards.ensure_not_owner(help_request, volunteer_id)
        guards.ensure_no_responder(response_repository.get_for_request(db, request_id))

        try:
            response = response_repository.create(db, request_id, volunteer_id)
        except IntegrityError as exc:
            if not response_repository.is_exclusivity_violation(exc):
                raise
            logger.info("Volunteer %s lost the race for request %s", volunteer_id, request_id)
            raise ConflictError("This request has already been accepted by another volunteer") from exc

        request_repository.set_status(db, help_request, RequestStatus.IN_PROGRESS)

        # Projected before commit, while the request row is still locked.
        volunteer = db.get(User, volunteer_id)
        accepted = ResponseAcceptedOut(
            request_id=response.request_id,
            volunteer_id=response.volunteer_id,
            created_at=response.created_at,
            request=RequestBrief(
                request_id=help_request.request_id, title=help_request.title, status=help_request.status
            ),
            volunteer=VolunteerBrief(user_id=volunteer.user_id, name=volunteer.name, phone=volunteer.phone),
            message=ACCEPTED_MESSAGE,
        )

    logger.info("Volunteer %s accepted request %s", volunteer_id, request_id)
    return accepted


def delete_response(db: Session, request_id: str, volunteer_id: str) -> MessageOut:
    """Withdraw a volunteer's acceptance; the request becomes ACTIVE again."""
    with transaction(db):
        # Same lock order as create_response: request row first.
        help_request = request_repository.get_for_update(db, request_id)
        response = None
        if help_request is not None:
            response = response_repository.get(db, request_id, volunteer_id)
        if response is None:
            raise NotFoundError("You have not responded to this request")

        response_repository.delete(db, response)
        request_repository.set_status(db, help_request, RequestStatus.ACTIVE)

    logger.info("Volunteer %s withdrew from request %s", volunteer_id, request_id)
    return MessageOut(message=WITHDRAWN_MESSAGE)


def update_request(db: Session, actor: Identity, request_id: str, fields: dict[str, Any]) -> HelpRequest:
    """Owner/admin edit of title, description, category or city."""
    changes = {field: value for field, value in fields.items() if value is not None}
    with transaction(db):
        help_request = _load_for_update(db, request_id)
        guards.ensure_can_modify(actor, help_request.owner_id)
        if changes:
            request_repository.update_fields(db, help_request, changes)
    db.refresh(help_request)
    logger.info("Request %s updated by %s (%s)", request_id, actor.id, ", ".join(sorted(changes)) or "no changes")
    return help_request


def update_request_status(db: Session, actor: Identity, request_id: str, status: RequestStatus) -> HelpRequest:
    """Owner/admin status override.

    Allowed even while a volunteer holds the request, so an owner can close it
    out; the mismatch is logged rather than refused.
    """
    with transaction(db):
        help_request = _load_for_update(db, request_id)
        guards.ensure_can_modify(actor, help_request.owner_id)
        previous = help_request.status
        request_repository.set_status(db, help_request, status)
        response_count = response_repository.count_for_request(db, request_id)
    if not guards.is_status_consistent(status, response_count):
        logger.warning(
            "Request %s set to %s by %s with %d response(s) on record",
            request_id, status.value, actor.id, response_count,
        )
    db.refresh(help_request)
    logger.info("Request %s status %s -> %s by %s", request_id, previous.value, status.value, actor.id)
    return help_request


def delete_request(db: Session, actor: Identity, request_id: str) -> MessageOut:
    """Delete a request together with its response, if any."""
    with transaction(db):
        help_request = _load_for_update(db, request_id)
        guards.ensure_can_modify(actor, help_request.owner_id)
        removed = response_repository.delete_for_request(db, request_id)
        request_repository.delete(db, help_request)
    logger.info("Request %s deleted by %s (%d response(s) removed)", request_id, actor.id, removed)
    return MessageOut(message=DELETED_MESSAGE)
