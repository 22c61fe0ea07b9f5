"""
Job application model.

Only one status transition is driven from the chat core: opening the first
referee chat on an application that is ``UNDER_REVIEW`` moves it to
``REFEREE_CONTACTED``.
"""

import enum

from sqlalchemy import Column, Enum, ForeignKey, Text

from .base import UUID, BaseModel


class ApplicationStatus(str, enum.Enum):
    """Application status enumeration."""

    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    REFEREE_CONTACTED = "REFEREE_CONTACTED"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"
    HIRED = "HIRED"


class Application(BaseModel):
    __tablename__ = "applications"

    job_id = Column(UUID(), ForeignKey("jobs.id"), nullable=False, index=True)
    employee_id = Column(UUID(), ForeignKey("users.id"), nullable=False, index=True)
    status = Column(Enum(ApplicationStatus), default=ApplicationStatus.SUBMITTED, nullable=False)
    cover_letter = Column(Text)
