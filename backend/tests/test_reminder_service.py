import os
import sys
from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault("SECRET_KEY", "0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef")
os.environ.setdefault("DATABASE_URL", "sqlite:///./data/renewly.db")

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.database import Base
from app.models.activity import ActivityLog
from app.models.document import Document
from app.models.profile import UserProfile
from app.models.reminder import Reminder
from app.models.user import User
from app.services.notifications import DeliveryResult
from app.services.reminder_store import ReminderAlreadySent, ReminderRepository
from app.services.reminders import ReminderService

NOW = datetime(2025, 3, 1, 8, 30)
TODAY = NOW.date()


class FakeDispatcher:
    """Records sends; channels listed in failing/raising misbehave."""

    def __init__(self, failing=(), raising=()):
        self.failing = set(failing)
        self.raising = set(raising)
        self.calls = []

    def send(self, channel, destination, message):
        self.calls.append((channel, destination, message))
        if channel in self.raising:
            raise RuntimeError("provider down")
        if channel in self.failing:
            return DeliveryResult.failed(channel, "provider responded 500")
        return DeliveryResult(delivered=True, channel=channel, message_id=f"{channel}-{len(self.calls)}")


def make_session():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine)()


def add_user(session, email="owner@example.com", channel=None, frequency=None, phone=None, with_profile=True):
    user = User(email=email, name="Owner")
    session.add(user)
    session.flush()
    if with_profile:
        session.add(UserProfile(
            user_id=user.id,
            phone_number=phone,
            preferred_reminder_channel=channel,
            reminder_frequency=frequency,
        ))
    session.commit()
    return user


def add_document(session, user, days, title="Trade License", status="active", critical=False):
    document = Document(
        user_id=user.id,
        title=title,
        expiration_date=(TODAY + timedelta(days=days)).isoformat(),
        is_critical=1 if critical else 0,
        status=status,
    )
    session.add(document)
    session.commit()
    return document


def make_service(session, dispatcher, now=NOW, **kwargs):
    return ReminderService(session, dispatcher, clock=lambda: now, **kwargs)


def reminders_for(session, document):
    return session.query(Reminder).filter(Reminder.document_id == document.id).all()


def activity_for(session, document):
    return session.query(ActivityLog).filter(ActivityLog.related_document_id == document.id).all()


def test_seven_day_reminder_is_sent_once_per_day():
    session = make_session()
    user = add_user(session, channel="whatsapp", frequency="7_days", phone="8851670050")
    document = add_document(session, user, days=7)
    dispatcher = FakeDispatcher()
    service = make_service(session, dispatcher)

    first = service.run_scheduled_pass()

    assert first["sent"] == 1
    [reminder] = reminders_for(session, document)
    assert reminder.is_sent == 1
    assert reminder.reminder_type == "expires_week"
    assert reminder.reminder_date == "2025-03-01"
    assert reminder.channel == "whatsapp"
    assert reminder.provider_message_id == "whatsapp-1"
    [entry] = activity_for(session, document)
    assert entry.action_type == "reminder_sent"
    assert entry.description == 'Reminder sent for "Trade License" (7 days to expiry)'
    channel, destination, message = dispatcher.calls[0]
    assert destination == "8851670050"
    assert message.days_until_expiry == 7

    second = service.run_scheduled_pass()

    assert second["already_sent"] == 1
    assert second["sent"] == 0
    assert len(reminders_for(session, document)) == 1
    assert len(activity_for(session, document)) == 1
    assert len(dispatcher.calls) == 1


def test_documents_off_schedule_are_skipped():
    session = make_session()
    user = add_user(session, channel="email", frequency="7_days")
    document = add_document(session, user, days=10)
    dispatcher = FakeDispatcher()

    summary = make_service(session, dispatcher).run_scheduled_pass()

    assert summary == {"checked": 1, "not_due": 1, "already_sent": 0, "sent": 0, "failed": 0}
    assert reminders_for(session, document) == []
    assert dispatcher.calls == []


def test_only_active_documents_are_considered():
    session = make_session()
    user = add_user(session, channel="email")
    for status in ("renewed", "cancelled", "expired"):
        add_document(session, user, days=-2, status=status)
    dispatcher = FakeDispatcher()

    summary = make_service(session, dispatcher).run_scheduled_pass()

    assert summary["checked"] == 0
    assert dispatcher.calls == []


def test_whatsapp_without_phone_falls_back_to_email():
    session = make_session()
    user = add_user(session, email="nophone@example.com", channel="whatsapp", frequency="30_days")
    document = add_document(session, user, days=30)
    dispatcher = FakeDispatcher()

    summary = make_service(session, dispatcher).run_scheduled_pass()

    assert summary["sent"] == 1
    assert [(c, d) for c, d, _ in dispatcher.calls] == [("email", "nophone@example.com")]
    [reminder] = reminders_for(session, document)
    assert reminder.is_sent == 1
    assert reminder.channel == "email"
    assert reminder.reminder_type == "expires_month"
    assert len(activity_for(session, document)) == 1


def test_failed_phone_delivery_retries_once_by_email():
    session = make_session()
    user = add_user(session, channel="sms", frequency="3_days", phone="+91 88516 70050")
    document = add_document(session, user, days=3)
    dispatcher = FakeDispatcher(failing={"sms"})

    summary = make_service(session, dispatcher).run_scheduled_pass()

    assert summary["sent"] == 1
    assert [c for c, _, _ in dispatcher.calls] == ["sms", "email"]
    [reminder] = reminders_for(session, document)
    assert reminder.channel == "email"
    assert reminder.reminder_type == "expires_soon"


def test_raising_transport_is_contained_and_falls_back():
    session = make_session()
    user = add_user(session, channel="whatsapp", phone="8851670050")
    add_document(session, user, days=0)
    dispatcher = FakeDispatcher(raising={"whatsapp"})

    summary = make_service(session, dispatcher).run_scheduled_pass()

    assert summary["sent"] == 1
    assert [c for c, _, _ in dispatcher.calls] == ["whatsapp", "email"]


def test_failed_delivery_leaves_row_unsent_and_retries_next_run():
    session = make_session()
    user = add_user(session, channel="email", frequency="14_days")
    document = add_document(session, user, days=14)

    failed = make_service(session, FakeDispatcher(failing={"email"})).run_scheduled_pass()

    assert failed["failed"] == 1
    [reminder] = reminders_for(session, document)
    assert reminder.is_sent == 0
    assert reminder.reminder_type == "expires_two_weeks"
    assert activity_for(session, document) == []

    # Later run the same day: a fresh pending row is added and delivered
    later = NOW.replace(hour=20)
    retried = make_service(session, FakeDispatcher(), now=later).run_scheduled_pass()

    assert retried["sent"] == 1
    rows = reminders_for(session, document)
    assert len(rows) == 2
    assert sorted(r.is_sent for r in rows) == [0, 1]
    assert len(activity_for(session, document)) == 1


def test_expired_document_is_reminded_every_day_until_renewed():
    session = make_session()
    user = add_user(session, channel="email", frequency="1_day")
    document = add_document(session, user, days=-3)
    dispatcher = FakeDispatcher()

    make_service(session, dispatcher).run_scheduled_pass()
    make_service(session, dispatcher, now=NOW + timedelta(days=1)).run_scheduled_pass()

    rows = reminders_for(session, document)
    assert {r.reminder_date for r in rows} == {"2025-03-01", "2025-03-02"}
    assert {r.reminder_type for r in rows} == {"expired"}
    assert [m.days_until_expiry for _, _, m in dispatcher.calls] == [-3, -4]

    document.status = "renewed"
    session.commit()
    summary = make_service(session, dispatcher, now=NOW + timedelta(days=2)).run_scheduled_pass()

    assert summary["checked"] == 0
    assert len(dispatcher.calls) == 2


def test_missing_destination_aborts_without_sending():
    session = make_session()
    user = add_user(session, channel="sms")
    document = add_document(session, user, days=1)
    dispatcher = FakeDispatcher()

    summary = make_service(session, dispatcher).run_scheduled_pass()

    assert summary["failed"] == 1
    assert dispatcher.calls == []
    [reminder] = reminders_for(session, document)
    assert reminder.is_sent == 0


def test_owner_without_profile_gets_email_on_default_schedule():
    session = make_session()
    user = add_user(session, email="plain@example.com", with_profile=False)
    add_document(session, user, days=30, critical=True)
    dispatcher = FakeDispatcher()

    summary = make_service(session, dispatcher).run_scheduled_pass()

    assert summary["sent"] == 1
    channel, destination, message = dispatcher.calls[0]
    assert (channel, destination) == ("email", "plain@example.com")
    assert message.is_critical is True


def test_bad_document_does_not_stop_the_batch():
    session = make_session()
    user = add_user(session, channel="email")
    session.add(Document(user_id=user.id, title="Broken", expiration_date="not-a-date", status="active"))
    session.commit()
    good = add_document(session, user, days=0, title="Good")
    dispatcher = FakeDispatcher()

    summary = make_service(session, dispatcher).run_scheduled_pass()

    assert summary["failed"] == 1
    assert summary["sent"] == 1
    assert reminders_for(session, good)[0].is_sent == 1


def test_repository_failure_ends_run_without_raising():
    class BrokenDocuments:
        def list_active_documents_with_owner_and_profile(self):
            raise RuntimeError("database unavailable")

    session = make_session()
    dispatcher = FakeDispatcher()

    summary = make_service(session, dispatcher, documents=BrokenDocuments()).run_scheduled_pass()

    assert summary["checked"] == 0
    assert dispatcher.calls == []


def test_unique_index_allows_only_one_sent_row_per_day():
    session = make_session()
    user = add_user(session)
    document = add_document(session, user, days=7)
    repo = ReminderRepository(session)

    first = repo.insert_reminder(document.id, user.id, TODAY, "expires_week")
    second = repo.insert_reminder(document.id, user.id, TODAY, "expires_week")
    repo.mark_sent(first, "email", "m-1")

    with pytest.raises(ReminderAlreadySent):
        repo.mark_sent(second, "email", "m-2")

    assert repo.exists_sent_reminder(document.id, TODAY)
    assert not repo.exists_sent_reminder(document.id, TODAY + timedelta(days=1))


def test_overlapping_runs_record_a_single_sent_reminder():
    class RacingReminders(ReminderRepository):
        # Both runs observe "nothing sent yet"
        def exists_sent_reminder(self, document_id, reminder_date):
            return False

    session = make_session()
    user = add_user(session, channel="email", frequency="7_days")
    document = add_document(session, user, days=7)
    dispatcher = FakeDispatcher()
    service = make_service(session, dispatcher, reminders=RacingReminders(session))

    first = service.run_scheduled_pass()
    second = service.run_scheduled_pass()

    assert first["sent"] == 1
    assert second["already_sent"] == 1
    rows = reminders_for(session, document)
    assert sum(r.is_sent for r in rows) == 1
    assert len(activity_for(session, document)) == 1


def test_send_test_reminder_bypasses_schedule_and_bookkeeping():
    session = make_session()
    user = add_user(session, channel="whatsapp", frequency="7_days", phone="8851670050")
    document = add_document(session, user, days=20)
    dispatcher = FakeDispatcher()
    service = make_service(session, dispatcher)

    assert service.send_test_reminder(user.id, document.id) is True

    channel, destination, message = dispatcher.calls[0]
    assert channel == "whatsapp"
    assert message.days_until_expiry == 20
    assert reminders_for(session, document) == []
    assert activity_for(session, document) == []


def test_send_test_reminder_failures_return_false():
    session = make_session()
    owner = add_user(session, channel="email")
    stranger = add_user(session, email="stranger@example.com")
    document = add_document(session, owner, days=5)

    assert make_service(session, FakeDispatcher()).send_test_reminder(owner.id, "missing") is False
    assert make_service(session, FakeDispatcher()).send_test_reminder(stranger.id, document.id) is False
    assert make_service(session, FakeDispatcher(failing={"email"})).send_test_reminder(owner.id, document.id) is False
