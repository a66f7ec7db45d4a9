"""
Registration model: one user attending one event.

Key design decisions:
- Unique constraint on (event_id, user_id) prevents duplicate registrations,
  whatever the isolation level
- Cancellation deletes the row; a live registration is simply an existing row
- `registered_at` is set by the application clock so attendee ordering does
  not depend on the store's timestamp resolution
"""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from event_registry.core.clock import utcnow
from event_registry.db.base import Base


class Registration(Base):
    __tablename__ = "event_registrations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    registered_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    event = relationship("Event", back_populates="registrations")
    user = relationship("User", back_populates="registrations")

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_registrations_event_user"),
    )

    def __repr__(self) -> str:
        return f"<Registration(id={self.id}, event={self.event_id}, user={self.user_id})>"
