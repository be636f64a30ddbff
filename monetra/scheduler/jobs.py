"""Monetra — Scheduler Jobs.

APScheduler daily job that prunes stale dashboard snapshots at the configured hour.
"""

from datetime import datetime, timedelta, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from monetra.config import settings
from monetra.database import session_scope
from monetra.storage.repository import SnapshotRepository
from monetra.core.logging import get_logger

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler()


def prune_snapshots(repo: SnapshotRepository, now: datetime, retention_days: int) -> int:
    """Delete snapshots older than the retention window. Returns rows removed."""
    cutoff = now - timedelta(days=retention_days)
    removed = repo.prune(cutoff)
    logger.info(f"Pruned {removed} revenue snapshots older than {cutoff.date()}")
    return removed


async def daily_snapshot_cleanup_job():
    """Drop cached dashboards past ``snapshot_retention_days``."""
    logger.info("Scheduled snapshot cleanup starting...")
    try:
        with session_scope() as session:
            prune_snapshots(
                SnapshotRepository(session),
                datetime.now(timezone.utc),
                settings.snapshot_retention_days,
            )
    except Exception as e:
        logger.error(f"Scheduled snapshot cleanup failed: {e}")


def start_scheduler():
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        daily_snapshot_cleanup_job,
        "cron",
        hour=settings.cleanup_hour,
        minute=0,
        id="daily_snapshot_cleanup",
        replace_existing=True,
        misfire_grace_time=3600,
    )
    scheduler.start()
    logger.info(f"Scheduler started. Daily snapshot cleanup at {settings.cleanup_hour}:00 UTC")


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
