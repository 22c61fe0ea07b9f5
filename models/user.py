"""
Provides the User model for the application's database schema.

Users are the authenticated side of the platform: recruiters who post jobs
and open referee chats, and employees who apply. The chat core reads only
identity and contact fields from here.

Attributes
----------
email : sqlalchemy.Column
    The email address of the user, which must be unique.
role : sqlalchemy.Column
    ``RECRUITER`` or ``EMPLOYEE``.
phone : sqlalchemy.Column
    Optional phone number, used for WhatsApp alerts.
is_active : sqlalchemy.Column
    A boolean indicating if the user is active. Defaults to `True`.
"""

import enum

from sqlalchemy import Boolean, Column, Enum, String

from .base import BaseModel


class UserRole(str, enum.Enum):
    """Platform user roles."""

    EMPLOYEE = "EMPLOYEE"
    RECRUITER = "RECRUITER"


class User(BaseModel):
    """
    Represents a user entity in the application.

    :ivar email: Email address of the user. It must be unique.
    :type email: str
    :ivar first_name: Given name.
    :type first_name: str
    :ivar last_name: Family name.
    :type last_name: str
    :ivar role: Role of the user on the platform.
    :type role: UserRole
    :ivar is_active: Indicates whether the user account is active.
    :type is_active: bool
    """

    __tablename__ = "users"

    email = Column(String(255), nullable=False, unique=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(Enum(UserRole), nullable=False, index=True)
    phone = Column(String(32))
    company = Column(String(255))
    is_active = Column(Boolean, default=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
