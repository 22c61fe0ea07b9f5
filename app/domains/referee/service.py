"""Referee directory lookups."""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions.chat import RefereeNotFoundError
from models.referee import Referee


class RefereeService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_referee(self, referee_id: UUID) -> Optional[Referee]:
        """Get a referee by ID."""
        result = await self.db.execute(select(Referee).where(Referee.id == referee_id))
        return result.scalar_one_or_none()

    async def get_referee_for_application(self, referee_id: UUID, application_id: UUID) -> Referee:
        """Get a referee, ensuring they were named on the application."""
        referee = await self.get_referee(referee_id)
        if not referee or referee.application_id != application_id:
            raise RefereeNotFoundError()
        return referee
