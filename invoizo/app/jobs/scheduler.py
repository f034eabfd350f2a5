"""APScheduler setup for the daily background jobs.

Jobs:
- overdue_invoice_sweep: marks past-due SENT/VIEWED invoices OVERDUE (default 01:00)
- payment_reminders: emails due/overdue payment reminders (default 09:00)
"""

import logging
import os
from typing import List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from invoizo.app.core.settings import get_settings
from invoizo.app.jobs.overdue import run_overdue_sweep
from invoizo.app.jobs.reminders import run_payment_reminders

logger = logging.getLogger(__name__)

scheduler: Optional[BackgroundScheduler] = None


def get_scheduler() -> BackgroundScheduler:
    """Get or create the scheduler instance."""
    global scheduler
    if scheduler is None:
        settings = get_settings()
        scheduler = BackgroundScheduler(
            timezone=settings.SCHEDULER_TIMEZONE,
            job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 3600},
        )
    return scheduler


def register_jobs(sched: BackgroundScheduler) -> None:
    settings = get_settings()
    sched.add_job(
        run_overdue_sweep,
        CronTrigger(hour=settings.OVERDUE_SWEEP_HOUR, minute=settings.OVERDUE_SWEEP_MINUTE),
        id="overdue_invoice_sweep",
        name="Mark overdue invoices",
        replace_existing=True,
    )
    sched.add_job(
        run_payment_reminders,
        CronTrigger(hour=settings.REMINDER_HOUR, minute=settings.REMINDER_MINUTE),
        id="payment_reminders",
        name="Send payment reminders",
        replace_existing=True,
    )


def start_scheduler() -> bool:
    """Start the background scheduler unless disabled or running under pytest."""
    settings = get_settings()
    if not settings.SCHEDULER_ENABLED or os.getenv("PYTEST_CURRENT_TEST"):
        logger.info("Background scheduler disabled")
        return False

    sched = get_scheduler()
    if sched.running:
        return True
    register_jobs(sched)
    sched.start()
    for job in sched.get_jobs():
        logger.info(f"Scheduled job: {job.name} - next run: {job.next_run_time}")
    return True


def shutdown_scheduler() -> None:
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler stopped")


def get_job_status() -> List[dict]:
    if scheduler is None:
        return []
    return [
        {
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
        }
        for job in scheduler.get_jobs()
    ]
