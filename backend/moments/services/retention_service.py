from datetime import datetime, timedelta, timezone
from typing import Optional

from moments.config import get_settings
from moments.utils.logger import get_logger

logger = get_logger("retention")


async def cleanup_sent_notifications(store, *, now: Optional[datetime] = None, retention_days: Optional[int] = None) -> int:
    """Delete sent-notification records older than the retention horizon in one batch."""
    if retention_days is None:
        retention_days = get_settings().RETENTION_DAYS
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=retention_days)
    deleted = await store.delete_sent_before(cutoff)
    logger.info(f"🧹 Cleaned up {deleted} old notification record(s) (before {cutoff.isoformat()})")
    return deleted


async def cleanup_old_notifications() -> int:
    """Scheduled entry point (daily)."""
    from moments.services.store import BeanieReminderStore

    return await cleanup_sent_notifications(BeanieReminderStore())
