"""Persistence seams used by the reminder engine."""
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.activity import ActivityLog
from app.models.document import Document
from app.models.profile import UserProfile
from app.models.reminder import Reminder
from app.models.user import User


class ReminderAlreadySent(Exception):
    """A sent reminder already exists for this document and day."""


@dataclass(frozen=True)
class ReminderCandidate:
    """A document joined with what is needed to reach its owner."""

    document_id: str
    user_id: str
    title: str
    expiration_date: str
    is_critical: bool
    email: str | None
    preferred_reminder_channel: str | None = None
    reminder_frequency: str | None = None
    phone_number: str | None = None


class DocumentRepository:
    def __init__(self, db: Session):
        self.db = db

    def _candidate_query(self):
        return (
            self.db.query(
                Document,
                User.email,
                UserProfile.preferred_reminder_channel,
                UserProfile.reminder_frequency,
                UserProfile.phone_number,
            )
            .join(User, Document.user_id == User.id)
            .outerjoin(UserProfile, UserProfile.user_id == Document.user_id)
        )

    @staticmethod
    def _to_candidate(row) -> ReminderCandidate:
        document, email, channel, frequency, phone = row
        return ReminderCandidate(
            document_id=document.id,
            user_id=document.user_id,
            title=document.title,
            expiration_date=document.expiration_date,
            is_critical=bool(document.is_critical),
            email=email,
            preferred_reminder_channel=channel,
            reminder_frequency=frequency,
            phone_number=phone,
        )

    def list_active_documents_with_owner_and_profile(self) -> list[ReminderCandidate]:
        rows = (
            self._candidate_query()
            .filter(Document.status == "active", Document.expiration_date.isnot(None))
            .order_by(Document.expiration_date)
            .all()
        )
        return [self._to_candidate(row) for row in rows]

    def find_document_with_owner_and_profile(self, document_id: str, user_id: str) -> ReminderCandidate | None:
        row = (
            self._candidate_query()
            .filter(Document.id == document_id, Document.user_id == user_id)
            .first()
        )
        return self._to_candidate(row) if row else None


class ReminderRepository:
    def __init__(self, db: Session):
        self.db = db

    def exists_sent_reminder(self, document_id: str, reminder_date: date) -> bool:
        return (
            self.db.query(Reminder.id)
            .filter(
                Reminder.document_id == document_id,
                Reminder.reminder_date == reminder_date.isoformat(),
                Reminder.is_sent == 1,
            )
            .first()
            is not None
        )

    def insert_reminder(self, document_id: str, user_id: str, reminder_date: date, reminder_type: str) -> str:
        """Insert an unsent reminder row and commit it before delivery starts."""
        reminder = Reminder(
            document_id=document_id,
            user_id=user_id,
            reminder_date=reminder_date.isoformat(),
            reminder_type=reminder_type,
            is_sent=0,
        )
        self.db.add(reminder)
        self.db.commit()
        return reminder.id

    def mark_sent(self, reminder_id: str, channel: str | None = None, message_id: str | None = None) -> None:
        """Flip a reminder to sent.

        Raises ReminderAlreadySent when another sent row for the same document
        and day already exists (unique index on sent rows).
        """
        try:
            self.db.query(Reminder).filter(Reminder.id == reminder_id).update(
                {
                    "is_sent": 1,
                    "channel": channel,
                    "provider_message_id": message_id,
                    "updated_at": datetime.utcnow().isoformat(),
                },
                synchronize_session=False,
            )
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ReminderAlreadySent(reminder_id) from exc


class ActivityLogSink:
    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        user_id: str,
        action_type: str,
        description: str,
        related_document_id: str | None = None,
    ) -> ActivityLog:
        entry = ActivityLog(
            user_id=user_id,
            action_type=action_type,
            description=description,
            related_document_id=related_document_id,
        )
        self.db.add(entry)
        self.db.commit()
        return entry
