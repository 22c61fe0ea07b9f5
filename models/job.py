"""
Job posting model. The chat core only needs ownership, title and company.
"""

import enum

from sqlalchemy import Column, Enum, ForeignKey, String, Text

from .base import UUID, BaseModel


class JobStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"
    DRAFT = "DRAFT"


class Job(BaseModel):
    __tablename__ = "jobs"

    recruiter_id = Column(UUID(), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    company = Column(String(255), nullable=False)
    description = Column(Text)
    status = Column(Enum(JobStatus), default=JobStatus.ACTIVE, nullable=False)
