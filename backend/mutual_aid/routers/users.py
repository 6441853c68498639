"""User directory API routes.

Registration here only creates the directory entry the identity lookup reads;
passwords and tokens are handled by the auth gateway.
"""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from mutual_aid.database import get_db, transaction
from mutual_aid.errors import ConflictError, NotFoundError
from mutual_aid.models.user import User
from mutual_aid.schemas.user import UserCreate, UserOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    """Register a user, volunteer or admin."""
    with transaction(db):
        if db.query(User).filter(User.email == payload.email).first():
            raise ConflictError("A user with this email already exists")
        user = User(**payload.model_dump())
        db.add(user)
    db.refresh(user)
    logger.info("Created %s %s (%s)", user.role.value, user.user_id, user.name)
    return user


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, db: Session = Depends(get_db)):
    """Fetch a single user by ID."""
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user
