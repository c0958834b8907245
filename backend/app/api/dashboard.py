"""Dashboard, activity and lookup endpoints."""
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db
from app.models.activity import ActivityLog
from app.models.document import DOCUMENT_TYPES, Document
from app.models.profile import REMINDER_FREQUENCIES
from app.models.user import User
from app.schemas.reminder import ActivityLogResponse, DashboardResponse

router = APIRouter(tags=["dashboard"])

EXPIRING_SOON_DAYS = 30


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Aggregate counts for the user's documents."""
    today = datetime.utcnow().date()
    horizon = today + timedelta(days=EXPIRING_SOON_DAYS)
    
    base = db.query(Document).filter(Document.user_id == current_user.id)
    active = base.filter(Document.status == "active")
    
    return DashboardResponse(
        total_documents=base.count(),
        critical_documents=base.filter(Document.is_critical == 1).count(),
        expiring_soon=active.filter(Document.expiration_date <= horizon.isoformat()).count(),
        expired=active.filter(Document.expiration_date < today.isoformat()).count(),
    )


@router.get("/activity-logs", response_model=list[ActivityLogResponse])
def get_activity_logs(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Most recent activity for the user."""
    return (
        db.query(ActivityLog)
        .filter(ActivityLog.user_id == current_user.id)
        .order_by(ActivityLog.created_at.desc())
        .limit(20)
        .all()
    )


@router.get("/document-types", response_model=list[str])
def get_document_types():
    return list(DOCUMENT_TYPES)


@router.get("/reminder-types", response_model=list[str])
def get_reminder_types():
    return list(REMINDER_FREQUENCIES)
