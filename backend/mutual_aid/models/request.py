"""HelpRequest ORM model."""
import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, Enum as SAEnum
from mutual_aid.database import Base


class RequestStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class HelpCategory(str, enum.Enum):
    MEDICAL = "MEDICAL"
    FOOD = "FOOD"
    TRANSPORT = "TRANSPORT"
    CLOTHING = "CLOTHING"
    SHELTER = "SHELTER"
    OTHER = "OTHER"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HelpRequest(Base):
    __tablename__ = "requests"
    __table_args__ = (
        Index("ix_requests_owner_id", "owner_id"),
        Index("ix_requests_status", "status"),
    )

    request_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(SAEnum(HelpCategory), nullable=False)
    city = Column(String(100), nullable=False)
    status = Column(SAEnum(RequestStatus), nullable=False, default=RequestStatus.ACTIVE)
    # Python-side defaults keep sub-second ordering on SQLite.
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
