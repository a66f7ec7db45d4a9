"""
User service. Field validation happens in the request schema.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from event_registry.core.logging import get_logger
from event_registry.db.transaction import atomic
from event_registry.models.user import User
from event_registry.schemas.user import UserCreate

logger = get_logger(__name__)


async def create_user(db: AsyncSession, user_data: UserCreate) -> User:
    user = User(name=user_data.name, email=user_data.email)
    async with atomic(db):
        db.add(user)
        await db.flush()

    logger.info("user_created", user_id=str(user.id))
    return user
