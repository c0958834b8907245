import os
import sys
from contextlib import contextmanager
from datetime import datetime, timedelta

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault("SECRET_KEY", "0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef")
os.environ.setdefault("DATABASE_URL", "sqlite:///./data/renewly.db")

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app import scheduler
from app.config import Settings
from app.database import Base
from app.models.document import Document
from app.models.reminder import Reminder
from app.models.user import User
from app.services.notifications import DeliveryResult

STRONG_KEY = "0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"


class FakeDispatcher:
    def __init__(self):
        self.calls = []
        self.closed = False

    def send(self, channel, destination, message):
        self.calls.append((channel, destination))
        return DeliveryResult(delivered=True, channel=channel)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True


def test_scheduler_disabled_by_default(monkeypatch):
    monkeypatch.setattr(scheduler, "get_settings", lambda: Settings(_env_file=None, secret_key=STRONG_KEY))
    assert scheduler.start_scheduler() is None


def test_scheduler_registers_single_instance_job(monkeypatch):
    settings = Settings(
        _env_file=None,
        secret_key=STRONG_KEY,
        scheduler_enabled=True,
        reminder_cron_hours="6,18",
    )
    monkeypatch.setattr(scheduler, "get_settings", lambda: settings)

    started = scheduler.start_scheduler()
    try:
        assert started is not None
        assert scheduler.start_scheduler() is started
        job = started.get_job(scheduler.REMINDER_JOB_ID)
        assert job.max_instances == 1
        assert job.coalesce is True
    finally:
        scheduler.shutdown_scheduler()


def test_run_reminder_job_processes_documents(monkeypatch):
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    session_local = sessionmaker(bind=engine)
    dispatcher = FakeDispatcher()

    @contextmanager
    def fake_db_context():
        db = session_local()
        try:
            yield db
            db.commit()
        finally:
            db.close()

    monkeypatch.setattr(scheduler, "get_db_context", fake_db_context)
    monkeypatch.setattr(scheduler.NotificationDispatcher, "from_settings", classmethod(lambda cls: dispatcher))

    db = session_local()
    user = User(email="owner@example.com")
    db.add(user)
    db.flush()
    tomorrow = (datetime.utcnow().date() + timedelta(days=1)).isoformat()
    db.add(Document(user_id=user.id, title="Passport", expiration_date=tomorrow, status="active"))
    db.commit()
    db.close()

    summary = scheduler.run_reminder_job()

    assert summary["sent"] == 1
    assert dispatcher.calls == [("email", "owner@example.com")]
    assert dispatcher.closed

    db = session_local()
    try:
        assert db.query(Reminder).filter(Reminder.is_sent == 1).count() == 1
    finally:
        db.close()


def test_run_reminder_job_never_raises(monkeypatch):
    @contextmanager
    def broken_db_context():
        raise RuntimeError("no database")
        yield

    monkeypatch.setattr(scheduler, "get_db_context", broken_db_context)

    assert scheduler.run_reminder_job() is None
