"""Guard functions called at the top of every mutating operation.

Each one either returns ``None`` or raises a typed ``ServiceError``; they do
not touch the database.
"""
from mutual_aid.errors import ConflictError, ForbiddenError, InvalidOperationError
from mutual_aid.identity import Identity
from mutual_aid.models.request import HelpRequest, RequestStatus
from mutual_aid.models.user import Role


def is_owner_or_admin(identity: Identity, owner_id: str) -> bool:
    return identity.role == Role.ADMIN or identity.id == owner_id


def ensure_can_modify(identity: Identity, owner_id: str) -> None:
    """Only the request's owner or an administrator may edit it directly."""
    if not is_owner_or_admin(identity, owner_id):
        raise ForbiddenError("You are not allowed to update this request")


def require_role(identity: Identity, *roles: Role) -> None:
    if identity.role not in roles:
        allowed = ", ".join(r.value for r in roles)
        raise ForbiddenError(f"This action requires one of the roles: {allowed}")


def ensure_accepting_responses(help_request: HelpRequest) -> None:
    if help_request.status != RequestStatus.ACTIVE:
        raise ConflictError("This request is no longer available for responses")


def ensure_not_owner(help_request: HelpRequest, volunteer_id: str) -> None:
    if help_request.owner_id == volunteer_id:
        raise InvalidOperationError("You cannot respond to your own request")


def ensure_no_responder(existing_response) -> None:
    if existing_response is not None:
        raise ConflictError("This request has already been accepted by another volunteer")


def is_status_consistent(status: RequestStatus, response_count: int) -> bool:
    """A request is IN_PROGRESS exactly when it has its one response."""
    if response_count > 1:
        return False
    return (status == RequestStatus.IN_PROGRESS) == (response_count == 1)
