# Overview: APScheduler background jobs (daily expiry reminders and lapsed-membership expiry).

from __future__ import annotations

import atexit
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger


logger = logging.getLogger(__name__)

JOB_EXPIRY_REMINDERS = "expiry_reminders"
JOB_EXPIRE_MEMBERSHIPS = "expire_memberships"

_scheduler: BackgroundScheduler | None = None


def _run_reminders(app):
    from .services import reminder_service

    with app.app_context():
        try:
            reminder_service.run_expiry_reminders()
        except Exception:
            logger.exception("Expiry reminder job failed")


def _run_expiry(app):
    from .services import membership_service

    with app.app_context():
        try:
            membership_service.expire_lapsed_memberships()
        except Exception:
            logger.exception("Membership expiry job failed")


def init_scheduler(app) -> BackgroundScheduler | None:
    """
    Start the daily jobs unless SCHEDULER_ENABLED is off or the app is testing.

    Only one scheduler is started per process.
    """
    global _scheduler

    if not app.config.get("SCHEDULER_ENABLED", True) or app.config.get("TESTING"):
        logger.info("Scheduler disabled")
        return None
    if _scheduler is not None:
        return _scheduler

    hour = app.config.get("EXPIRY_REMINDER_HOUR", 10)
    minute = app.config.get("EXPIRY_REMINDER_MINUTE", 0)

    scheduler = BackgroundScheduler(daemon=True)
    scheduler.add_job(
        func=_run_reminders,
        args=[app],
        trigger=CronTrigger(hour=hour, minute=minute),
        id=JOB_EXPIRY_REMINDERS,
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )
    scheduler.add_job(
        func=_run_expiry,
        args=[app],
        trigger=CronTrigger(hour=0, minute=5),
        id=JOB_EXPIRE_MEMBERSHIPS,
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )
    scheduler.start()
    _scheduler = scheduler
    atexit.register(shutdown_scheduler)
    logger.info("Scheduler started: reminders daily at %02d:%02d", hour, minute)
    return scheduler


def shutdown_scheduler() -> None:
    global _scheduler
    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None
