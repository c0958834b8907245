"""Reminder, activity and dashboard schemas."""
from pydantic import BaseModel


class ReminderResponse(BaseModel):
    """Reminder history entry."""
    
    id: str
    document_id: str
    document_title: str
    expiration_date: str
    is_critical: bool
    reminder_date: str
    reminder_type: str
    is_sent: bool
    channel: str | None
    provider_message_id: str | None
    created_at: str


class ActivityLogResponse(BaseModel):
    id: str
    action_type: str
    description: str
    related_document_id: str | None
    created_at: str
    
    class Config:
        from_attributes = True


class DashboardResponse(BaseModel):
    total_documents: int
    critical_documents: int
    expiring_soon: int
    expired: int


class ProcessRemindersResponse(BaseModel):
    checked: int
    not_due: int
    already_sent: int
    sent: int
    failed: int


class MessageResponse(BaseModel):
    """Generic message response."""
    
    message: str
