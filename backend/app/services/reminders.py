"""Reminder orchestration: decide, deduplicate, deliver and record."""
import logging
from collections.abc import Callable
from datetime import date, datetime

from sqlalchemy.orm import Session

from app.services.message_templates import ReminderMessage
from app.services.notifications import DeliveryResult, NotificationDispatcher
from app.services.reminder_policy import classify_urgency, days_until_expiry, is_reminder_due
from app.services.reminder_store import (
    ActivityLogSink,
    DocumentRepository,
    ReminderAlreadySent,
    ReminderCandidate,
    ReminderRepository,
)

logger = logging.getLogger(__name__)

EMAIL_CHANNEL = "email"
PHONE_CHANNELS = ("whatsapp", "sms")

# Per-document outcomes, also the keys of the run summary
NOT_DUE = "not_due"
ALREADY_SENT = "already_sent"
SENT = "sent"
FAILED = "failed"


class ReminderService:
    """Runs reminder passes over all active documents.

    The pass never raises: delivery problems are contained per document and a
    failing repository ends the run with a logged error. Reminder rows are
    inserted unsent before delivery and marked sent afterwards, so a crash in
    between leaves an unsent row and the next run tries again.
    """

    def __init__(
        self,
        db: Session,
        dispatcher: NotificationDispatcher,
        documents: DocumentRepository | None = None,
        reminders: ReminderRepository | None = None,
        activity: ActivityLogSink | None = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.db = db
        self.dispatcher = dispatcher
        self.documents = documents or DocumentRepository(db)
        self.reminders = reminders or ReminderRepository(db)
        self.activity = activity or ActivityLogSink(db)
        self.clock = clock

    def run_scheduled_pass(self) -> dict[str, int]:
        """Evaluate every active document once. Call this from the scheduler."""
        summary = {"checked": 0, NOT_DUE: 0, ALREADY_SENT: 0, SENT: 0, FAILED: 0}
        today = self.clock().date()

        try:
            logger.info("Starting reminder processing for %s", today.isoformat())
            candidates = self.documents.list_active_documents_with_owner_and_profile()
            logger.info("Found %d active documents to check", len(candidates))

            for candidate in candidates:
                summary["checked"] += 1
                summary[self._process_safely(candidate, today)] += 1

            logger.info("Reminder processing completed: %s", summary)
        except Exception:
            logger.exception("Error processing reminders")

        return summary

    def _process_safely(self, candidate: ReminderCandidate, today: date) -> str:
        try:
            return self.process_document(candidate, today)
        except Exception:
            logger.exception("Error processing reminder for document %s", candidate.document_id)
            self.db.rollback()
            return FAILED

    def process_document(self, candidate: ReminderCandidate, today: date) -> str:
        """Handle one document for the day; returns the outcome key."""
        days = days_until_expiry(today, candidate.expiration_date)
        if not is_reminder_due(today, candidate.expiration_date, candidate.reminder_frequency):
            return NOT_DUE

        if self.reminders.exists_sent_reminder(candidate.document_id, today):
            return ALREADY_SENT

        # Earlier unsent rows for today are left alone; only sent rows are unique.
        reminder_id = self.reminders.insert_reminder(
            candidate.document_id,
            candidate.user_id,
            today,
            classify_urgency(days).value,
        )

        result = self.deliver(candidate, days)
        if not result:
            logger.warning(
                "Reminder for document %s not delivered (%s), will retry next run",
                candidate.document_id,
                result.reason,
            )
            return FAILED

        try:
            self.reminders.mark_sent(reminder_id, result.channel, result.message_id)
        except ReminderAlreadySent:
            logger.warning(
                "Document %s already has a sent reminder for %s, discarding %s",
                candidate.document_id,
                today.isoformat(),
                reminder_id,
            )
            return ALREADY_SENT

        self.activity.record(
            candidate.user_id,
            "reminder_sent",
            f'Reminder sent for "{candidate.title}" ({days} days to expiry)',
            candidate.document_id,
        )
        logger.info(
            'Reminder sent for document "%s" to user %s via %s',
            candidate.title,
            candidate.user_id,
            result.channel,
        )
        return SENT

    def resolve_destination(self, candidate: ReminderCandidate) -> tuple[str, str]:
        """Pick (channel, address) from the owner's preferences."""
        channel = candidate.preferred_reminder_channel or EMAIL_CHANNEL

        if channel in PHONE_CHANNELS:
            if candidate.phone_number:
                return channel, candidate.phone_number
            if channel == "whatsapp" and candidate.email:
                logger.warning(
                    "No WhatsApp number available for user %s, falling back to email",
                    candidate.user_id,
                )
                return EMAIL_CHANNEL, candidate.email
            return channel, ""

        return EMAIL_CHANNEL, candidate.email or ""

    def deliver(self, candidate: ReminderCandidate, days: int) -> DeliveryResult:
        """Send through the preferred channel, falling back to email once."""
        message = ReminderMessage(
            document_title=candidate.title,
            expiration_date=candidate.expiration_date,
            days_until_expiry=days,
            is_critical=candidate.is_critical,
        )

        channel, destination = self.resolve_destination(candidate)
        if not destination:
            logger.warning("No %s address available for user %s", channel, candidate.user_id)
            return DeliveryResult.failed(channel, "no destination on file")

        result = self._attempt(channel, destination, message)
        if not result and channel != EMAIL_CHANNEL and candidate.email:
            logger.warning(
                "%s delivery failed for document %s, falling back to email",
                channel,
                candidate.document_id,
            )
            result = self._attempt(EMAIL_CHANNEL, candidate.email, message)

        return result

    def _attempt(self, channel: str, destination: str, message: ReminderMessage) -> DeliveryResult:
        try:
            return self.dispatcher.send(channel, destination, message)
        except Exception as exc:
            logger.exception("Failed to send %s notification", channel)
            return DeliveryResult.failed(channel, f"{type(exc).__name__}: {exc}")

    def send_test_reminder(self, user_id: str, document_id: str) -> bool:
        """Send a reminder for one document right now.

        Skips the due check and the reminder/activity bookkeeping entirely, so
        a test send does not count as the day's reminder.
        """
        try:
            candidate = self.documents.find_document_with_owner_and_profile(document_id, user_id)
            if candidate is None:
                logger.warning("Test reminder requested for unknown document %s", document_id)
                return False

            days = days_until_expiry(self.clock(), candidate.expiration_date)
            return bool(self.deliver(candidate, days))
        except Exception:
            logger.exception("Error sending test reminder")
            return False
