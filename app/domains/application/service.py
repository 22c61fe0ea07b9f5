"""Application ownership checks and the status change driven by referee chats."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions.chat import ApplicationNotFoundError, ApplicationPermissionError
from models.application import Application, ApplicationStatus
from models.job import Job

logger = logging.getLogger(__name__)


class ApplicationService:
    """Service class for the application data the chat core reads."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_application_with_job(self, application_id: UUID) -> tuple[Application, Job] | None:
        """Get an application together with the job it was made for."""
        result = await self.db.execute(
            select(Application, Job)
            .join(Job, Job.id == Application.job_id)
            .where(Application.id == application_id)
        )
        row = result.first()
        if row is None:
            return None
        return row[0], row[1]

    async def get_owned_application(
        self, application_id: UUID, recruiter_id: UUID
    ) -> tuple[Application, Job]:
        """Get an application whose job was posted by ``recruiter_id``.

        Raises:
            ApplicationNotFoundError: If the application does not exist.
            ApplicationPermissionError: If the job belongs to another recruiter.
        """
        found = await self.get_application_with_job(application_id)
        if found is None:
            raise ApplicationNotFoundError()

        application, job = found
        if job.recruiter_id != recruiter_id:
            logger.warning(
                "Recruiter %s tried to open a chat on application %s owned by %s",
                recruiter_id,
                application_id,
                job.recruiter_id,
            )
            raise ApplicationPermissionError()
        return application, job

    async def mark_referee_contacted(self, application: Application) -> bool:
        """Move an application from UNDER_REVIEW to REFEREE_CONTACTED.

        Any other status is left alone. Does not commit.

        Returns:
            True if the status changed
        """
        if application.status != ApplicationStatus.UNDER_REVIEW:
            return False

        application.status = ApplicationStatus.REFEREE_CONTACTED
        await self.db.flush()
        logger.info("Application %s moved to %s", application.id, application.status.value)
        return True
