"""Document API endpoints."""
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, get_reminder_service
from app.models.document import Document
from app.models.reminder import Reminder
from app.models.user import User
from app.schemas.document import DocumentCreate, DocumentResponse, DocumentUpdate
from app.schemas.reminder import MessageResponse, ReminderResponse
from app.services.reminder_store import ActivityLogSink
from app.services.reminders import ReminderService

router = APIRouter(prefix="/documents", tags=["documents"])


def get_owned_document(db: Session, document_id: str, user: User) -> Document:
    document = db.query(Document).filter(
        Document.id == document_id,
        Document.user_id == user.id,
    ).first()
    if not document:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Document not found",
        )
    return document


def to_reminder_response(reminder: Reminder, document: Document) -> ReminderResponse:
    return ReminderResponse(
        id=reminder.id,
        document_id=reminder.document_id,
        document_title=document.title,
        expiration_date=document.expiration_date,
        is_critical=bool(document.is_critical),
        reminder_date=reminder.reminder_date,
        reminder_type=reminder.reminder_type,
        is_sent=bool(reminder.is_sent),
        channel=reminder.channel,
        provider_message_id=reminder.provider_message_id,
        created_at=reminder.created_at,
    )


@router.get("", response_model=list[DocumentResponse])
def list_documents(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get the current user's documents, soonest expiry first."""
    return (
        db.query(Document)
        .filter(Document.user_id == current_user.id)
        .order_by(Document.expiration_date.asc(), Document.is_critical.desc())
        .all()
    )


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
def create_document(
    document_data: DocumentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Start tracking a document."""
    document = Document(
        user_id=current_user.id,
        title=document_data.title,
        description=document_data.description or None,
        document_type=document_data.document_type or None,
        expiration_date=document_data.expiration_date.isoformat(),
        renewal_period_days=document_data.renewal_period_days,
        is_critical=1 if document_data.is_critical else 0,
        status="active",
    )
    db.add(document)
    db.flush()
    
    ActivityLogSink(db).record(
        current_user.id,
        "document_created",
        f'Created document "{document.title}"',
        document.id,
    )
    db.refresh(document)
    return document


@router.get("/{document_id}", response_model=DocumentResponse)
def get_document(
    document_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_owned_document(db, document_id, current_user)


@router.put("/{document_id}", response_model=DocumentResponse)
def update_document(
    document_id: str,
    updates: DocumentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update a document's details."""
    document = get_owned_document(db, document_id, current_user)
    
    changes = updates.model_dump(exclude_unset=True)
    if "title" in changes and changes["title"] is not None:
        document.title = changes["title"]
    if "description" in changes:
        document.description = changes["description"] or None
    if "document_type" in changes:
        document.document_type = changes["document_type"] or None
    if changes.get("expiration_date") is not None:
        document.expiration_date = changes["expiration_date"].isoformat()
    if "renewal_period_days" in changes:
        document.renewal_period_days = changes["renewal_period_days"]
    if changes.get("is_critical") is not None:
        document.is_critical = 1 if changes["is_critical"] else 0
    
    ActivityLogSink(db).record(
        current_user.id,
        "document_updated",
        f'Updated document "{document.title}"',
        document.id,
    )
    db.refresh(document)
    return document


@router.delete("/{document_id}", response_model=MessageResponse)
def delete_document(
    document_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Delete a document together with its reminder history."""
    document = get_owned_document(db, document_id, current_user)
    title = document.title
    db.delete(document)
    
    ActivityLogSink(db).record(
        current_user.id,
        "document_deleted",
        f'Deleted document "{title}"',
    )
    return MessageResponse(message="Document deleted")


@router.post("/{document_id}/renew", response_model=DocumentResponse)
def renew_document(
    document_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Mark a document as renewed; it stops receiving reminders."""
    document = get_owned_document(db, document_id, current_user)
    document.status = "renewed"
    document.last_renewed_date = datetime.utcnow().date().isoformat()
    
    ActivityLogSink(db).record(
        current_user.id,
        "document_renewed",
        f'Marked document "{document.title}" as renewed',
        document.id,
    )
    db.refresh(document)
    return document


@router.post("/{document_id}/test-reminder", response_model=MessageResponse)
def send_test_reminder(
    document_id: str,
    current_user: User = Depends(get_current_user),
    reminder_service: ReminderService = Depends(get_reminder_service),
):
    """Send a reminder for this document right away, outside the schedule."""
    if not reminder_service.send_test_reminder(current_user.id, document_id):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send test reminder",
        )
    return MessageResponse(message="Test reminder sent successfully")


@router.get("/{document_id}/reminders", response_model=list[ReminderResponse])
def get_document_reminders(
    document_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Reminder history for one document."""
    document = get_owned_document(db, document_id, current_user)
    reminders = (
        db.query(Reminder)
        .filter(Reminder.document_id == document.id, Reminder.user_id == current_user.id)
        .order_by(Reminder.reminder_date.desc(), Reminder.created_at.desc())
        .limit(50)
        .all()
    )
    return [to_reminder_response(r, document) for r in reminders]
