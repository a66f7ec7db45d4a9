"""
Event model with a fixed attendance capacity.

Key design decisions:
- Occupancy is never stored; it is COUNT(event_registrations) read under the
  event row lock (see db/transaction.py)
- Capacity is bounded at the DB level to the same 1..1000 range the API accepts
- Index on `event_datetime` for the upcoming-events listing
"""

import uuid

from sqlalchemy import Column, Integer, String, DateTime, Index, CheckConstraint, Uuid
from sqlalchemy.orm import relationship

from event_registry.db.base import Base, TimestampMixin


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    event_datetime = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(255), nullable=False)
    capacity = Column(Integer, nullable=False)

    registrations = relationship(
        "Registration",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("capacity BETWEEN 1 AND 1000", name="check_event_capacity_range"),
        # Upcoming listing: WHERE event_datetime > now() ORDER BY event_datetime, location
        Index("ix_events_datetime_location", "event_datetime", "location"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, capacity={self.capacity})>"
