"""User profile schemas."""
from typing import Any, Literal

from pydantic import BaseModel, field_validator

from app.models.profile import (
    DEFAULT_REMINDER_CHANNEL,
    DEFAULT_REMINDER_FREQUENCY,
    DEFAULT_REMINDER_TIME,
    REMINDER_CHANNELS,
    REMINDER_FREQUENCIES,
    REMINDER_TIME_PREFERENCES,
)

ReminderChannel = Literal[REMINDER_CHANNELS]
ReminderFrequency = Literal[REMINDER_FREQUENCIES]
ReminderTime = Literal[REMINDER_TIME_PREFERENCES]


class ProfileUpdate(BaseModel):
    """Profile fields a user may change; omitted fields are left untouched."""
    
    phone_number: str | None = None
    business_name: str | None = None
    role: str | None = None
    preferred_reminder_channel: ReminderChannel | None = None
    reminder_frequency: ReminderFrequency | None = None
    reminder_time_preference: ReminderTime | None = None
    two_factor_enabled: bool | None = None


class ProfileResponse(BaseModel):
    """Notification preferences, with defaults when no profile was saved yet."""
    
    user_id: str
    phone_number: str | None = None
    business_name: str | None = None
    role: str | None = None
    preferred_reminder_channel: str = DEFAULT_REMINDER_CHANNEL
    reminder_frequency: str = DEFAULT_REMINDER_FREQUENCY
    reminder_time_preference: str = DEFAULT_REMINDER_TIME
    two_factor_enabled: bool = False
    
    @field_validator("two_factor_enabled", mode="before")
    @classmethod
    def parse_flag(cls, v: Any) -> bool:
        return bool(v)
    
    class Config:
        from_attributes = True
