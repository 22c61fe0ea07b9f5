"""
Professional referee named on an application.

Referees never get an account; their only way into a chat is the capability
token sent to them in the invitation link.
"""

from sqlalchemy import Column, ForeignKey, String

from .base import UUID, BaseModel

REFEREE_RELATIONSHIPS = (
    "Manager",
    "Supervisor",
    "Colleague",
    "Team Lead",
    "HR Manager",
    "Director",
    "Professor",
    "Other",
)


class Referee(BaseModel):
    __tablename__ = "referees"

    application_id = Column(UUID(), ForeignKey("applications.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(32))
    relationship = Column(String(50), nullable=False, default="Other")
    company = Column(String(255))
    position = Column(String(255))
