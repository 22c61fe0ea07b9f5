# app/domains/user/service.py
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import User


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        """Get a user by ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_active_user(self, user_id: UUID) -> Optional[User]:
        """Get a user by ID if the account is active."""
        user = await self.get_user_by_id(user_id)
        return user if user and user.is_active else None
