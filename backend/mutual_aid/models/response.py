"""VolunteerResponse ORM model.

The unique constraint on ``request_id`` is what keeps a request down to a
single responder when two accept attempts race; the primary key alone only
stops a volunteer answering the same request twice.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, UniqueConstraint
from mutual_aid.database import Base
from mutual_aid.models.request import _utcnow

EXCLUSIVITY_CONSTRAINT = "uq_responses_request_id"


class VolunteerResponse(Base):
    __tablename__ = "responses"
    __table_args__ = (
        UniqueConstraint("request_id", name=EXCLUSIVITY_CONSTRAINT),
        Index("ix_responses_volunteer_id", "volunteer_id"),
    )

    request_id = Column(
        String(36), ForeignKey("requests.request_id", ondelete="CASCADE"), primary_key=True
    )
    volunteer_id = Column(String(36), ForeignKey("users.user_id"), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
