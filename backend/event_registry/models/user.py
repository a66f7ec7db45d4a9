"""
User model. Email uniqueness is not enforced by the registration core.
"""

import uuid

from sqlalchemy import Column, String, Uuid
from sqlalchemy.orm import relationship

from event_registry.db.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)

    registrations = relationship(
        "Registration",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
