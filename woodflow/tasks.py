"""
Celery app and periodic jobs.

Run a worker with beat:
    celery -A woodflow.tasks worker --beat --loglevel=info
"""
import logging
from datetime import date

from celery import Celery
from celery.schedules import crontab

from woodflow.core.config import settings
from woodflow.core.database import SessionLocal
from woodflow.services.invoice_service import InvoiceService
from woodflow.services.reminder_service import run_daily_reminders

logger = logging.getLogger(__name__)

celery_app = Celery(
    "woodflow",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)
celery_app.conf.update(
    timezone=settings.REMINDER_TIMEZONE,
    enable_utc=True,
    beat_schedule={
        "daily-reminders": {
            "task": "woodflow.tasks.send_daily_reminders",
            "schedule": crontab(hour=settings.REMINDER_HOUR, minute=0),
        },
        "mark-overdue-invoices": {
            "task": "woodflow.tasks.mark_overdue_invoices",
            "schedule": crontab(hour=0, minute=15),
        },
    },
)


@celery_app.task(name="woodflow.tasks.send_daily_reminders")
def send_daily_reminders(today: str = None) -> dict:
    """Email each company its digest of documents falling due."""
    db = SessionLocal()
    try:
        summary = run_daily_reminders(db, today=date.fromisoformat(today) if today else None)
        return summary.as_dict()
    finally:
        db.close()


@celery_app.task(name="woodflow.tasks.mark_overdue_invoices")
def mark_overdue_invoices() -> int:
    db = SessionLocal()
    try:
        updated = InvoiceService(db).mark_overdue()
        db.commit()
        logger.info("Marked %d invoice(s) overdue", updated)
        return updated
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
