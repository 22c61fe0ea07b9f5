"""
Models package initialization.
"""

from .application import Application, ApplicationStatus
from .base import Base, BaseModel
from .chat import Chat
from .chat_message import ChatMessage, SenderType
from .job import Job, JobStatus
from .referee import Referee
from .user import User, UserRole

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "UserRole",
    "Job",
    "JobStatus",
    "Application",
    "ApplicationStatus",
    "Referee",
    # Chat models
    "Chat",
    "ChatMessage",
    "SenderType",
]
