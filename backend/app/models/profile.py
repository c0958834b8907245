"""User notification profile model."""
import uuid
from datetime import datetime

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.database import Base

REMINDER_CHANNELS = ("whatsapp", "email", "sms")
REMINDER_FREQUENCIES = ("30_days", "14_days", "7_days", "3_days", "1_day")
REMINDER_TIME_PREFERENCES = ("morning", "evening")

DEFAULT_REMINDER_CHANNEL = "whatsapp"
DEFAULT_REMINDER_FREQUENCY = "30_days"
DEFAULT_REMINDER_TIME = "morning"


class UserProfile(Base):
    """Per-user notification preferences (created lazily on first write)."""
    
    __tablename__ = "user_profiles"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    
    phone_number = Column(String(32))
    business_name = Column(String(255))
    role = Column(String(100))
    
    preferred_reminder_channel = Column(String(20), default=DEFAULT_REMINDER_CHANNEL)
    reminder_frequency = Column(String(20), default=DEFAULT_REMINDER_FREQUENCY)
    reminder_time_preference = Column(String(20), default=DEFAULT_REMINDER_TIME)
    two_factor_enabled = Column(Integer, default=0)  # SQLite boolean
    
    # Timestamps
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())
    updated_at = Column(String(26), default=lambda: datetime.utcnow().isoformat(), onupdate=lambda: datetime.utcnow().isoformat())
    
    # Relationships
    user = relationship("User", back_populates="profile")
