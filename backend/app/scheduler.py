"""Background scheduler for the reminder pass."""
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import get_settings
from app.database import get_db_context
from app.services.notifications import NotificationDispatcher
from app.services.reminders import ReminderService

logger = logging.getLogger(__name__)

REMINDER_JOB_ID = "process_document_reminders"

_scheduler: BackgroundScheduler | None = None


def run_reminder_job() -> dict[str, int] | None:
    """Run one reminder pass with its own session and HTTP client."""
    try:
        with get_db_context() as db, NotificationDispatcher.from_settings() as dispatcher:
            return ReminderService(db, dispatcher).run_scheduled_pass()
    except Exception:
        logger.exception("Scheduled reminder job failed")
        return None


def start_scheduler() -> BackgroundScheduler | None:
    """Start the reminder scheduler once per process, if enabled."""
    global _scheduler
    settings = get_settings()

    if not settings.scheduler_enabled:
        logger.info("Reminder scheduler disabled (SCHEDULER_ENABLED=false)")
        return None

    if _scheduler is not None:
        logger.info("Reminder scheduler already running")
        return _scheduler

    scheduler = BackgroundScheduler(timezone=settings.scheduler_timezone)
    scheduler.add_job(
        run_reminder_job,
        trigger=CronTrigger(hour=settings.reminder_cron_hours, minute=0, timezone=settings.scheduler_timezone),
        id=REMINDER_JOB_ID,
        replace_existing=True,
        max_instances=1,  # runs must never overlap
        coalesce=True,
    )
    scheduler.start()
    _scheduler = scheduler

    logger.info(
        "Reminder scheduler started: hours=%s tz=%s",
        settings.reminder_cron_hours,
        settings.scheduler_timezone,
    )
    return scheduler


def shutdown_scheduler() -> None:
    global _scheduler
    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None
