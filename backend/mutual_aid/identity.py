"""Identity Provider: resolves the caller of every call to ``{id, role}``.

Credentials are issued elsewhere; by the time a call reaches this service the
gateway has put the authenticated user id in ``X-User-Id``. The role is looked
up fresh on every call so a role change takes effect immediately.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from mutual_aid.database import get_db
from mutual_aid.errors import AuthenticationError
from mutual_aid.models.user import Role, User


@dataclass(frozen=True)
class Identity:
    id: str
    role: Role


def resolve_identity(db: Session, user_id: Optional[str]) -> Identity:
    if not user_id:
        raise AuthenticationError("Missing caller identity")
    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationError("Unknown caller identity")
    return Identity(id=user.user_id, role=user.role)


def get_identity(
    x_user_id: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Identity:
    return resolve_identity(db, x_user_id)
