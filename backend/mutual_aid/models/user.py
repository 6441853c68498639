"""User ORM model: the identity directory behind the Identity Provider."""
import enum
import uuid
from sqlalchemy import Column, String, DateTime, Enum as SAEnum
from sqlalchemy.sql import func
from mutual_aid.database import Base


class Role(str, enum.Enum):
    USER = "USER"
    VOLUNTEER = "VOLUNTEER"
    ADMIN = "ADMIN"


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(32), nullable=True)
    city = Column(String(100), nullable=True)
    role = Column(SAEnum(Role), nullable=False, default=Role.USER)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
