"""SQLAlchemy models package."""
from app.models.user import User
from app.models.document import Document
from app.models.reminder import Reminder
from app.models.profile import UserProfile
from app.models.activity import ActivityLog

__all__ = [
    "User",
    "Document",
    "Reminder",
    "UserProfile",
    "ActivityLog",
]
