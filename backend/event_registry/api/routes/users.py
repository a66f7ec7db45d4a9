"""
User endpoints.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from event_registry.db.session import get_db
from event_registry.schemas.user import UserCreate, UserCreatedResponse
from event_registry.services.user_service import create_user

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", response_model=UserCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_user_endpoint(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    user = await create_user(db, user_data)
    return UserCreatedResponse(id=user.id)
