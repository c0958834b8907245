"""Reminder history and processing endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, get_reminder_service, require_admin_key
from app.api.documents import to_reminder_response
from app.models.document import Document
from app.models.reminder import Reminder
from app.models.user import User
from app.schemas.reminder import ProcessRemindersResponse, ReminderResponse
from app.services.reminders import ReminderService

router = APIRouter(tags=["reminders"])


@router.get("/reminders", response_model=list[ReminderResponse])
def get_reminders(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get the user's most recent reminders across all documents."""
    rows = (
        db.query(Reminder, Document)
        .join(Document, Reminder.document_id == Document.id)
        .filter(Reminder.user_id == current_user.id)
        .order_by(Reminder.reminder_date.desc(), Reminder.created_at.desc())
        .limit(100)
        .all()
    )
    return [to_reminder_response(reminder, document) for reminder, document in rows]


@router.post(
    "/admin/process-reminders",
    response_model=ProcessRemindersResponse,
    dependencies=[Depends(require_admin_key)],
)
def process_reminders(reminder_service: ReminderService = Depends(get_reminder_service)):
    """Run a reminder pass now instead of waiting for the schedule."""
    return ProcessRemindersResponse(**reminder_service.run_scheduled_pass())
