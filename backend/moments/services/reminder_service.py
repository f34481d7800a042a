"""
Hourly reminder scan: push a notification for every (user, event, reminder)
whose trigger hour is now.

A SentNotification record per (user, event, reminder, occurrence year) keeps
sends idempotent. A record with at least one delivered push suppresses
further sends; a fully failed attempt is retried in the following hours
until REMINDER_MAX_ATTEMPTS is reached.
"""
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from pydantic import BaseModel

from moments.config import Settings, get_settings
from moments.constants import REMINDER_TITLE
from moments.schemas import (
    EventRecord,
    NotificationSettings,
    PushPayload,
    Reminder,
    SentNotificationRecord,
    UserRecord,
)
from moments.services.notification_service import notify_user
from moments.services.reminder_schedule import (
    get_zone,
    is_due,
    next_occurrence,
    reminder_message,
    to_local,
    trigger_instant,
    truncate_to_hour,
)
from moments.utils.logger import get_logger

logger = get_logger("event_reminder")


class ScanReport(BaseModel):
    users_scanned: int = 0
    reminders_sent: int = 0
    reminders_failed: int = 0
    tokens_removed: int = 0


def _as_utc(dt: datetime) -> datetime:
    # Mongo hands datetimes back naive, in UTC
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def build_reminder_payload(event: EventRecord, reminder: Reminder) -> PushPayload:
    return PushPayload(
        title=REMINDER_TITLE,
        body=reminder_message(event.name, event.display_type, reminder.hours),
        tag=f"moment-{event.id}",
        person_id=event.id,
        person_name=event.name,
    )


def should_attempt(
    record: Optional[SentNotificationRecord],
    trigger: datetime,
    now_local: datetime,
    max_attempts: int,
) -> bool:
    """Decide whether this hour gets a (first or retry) attempt."""
    if record is None:
        # no catch-up for missed trigger hours
        return is_due(trigger, now_local)
    if record.delivered or record.attempts >= max_attempts:
        return False
    last_hour = truncate_to_hour(_as_utc(record.last_attempt_at).astimezone(now_local.tzinfo))
    if last_hour >= now_local:
        return False
    return trigger <= now_local < trigger + timedelta(hours=max_attempts)


async def send_event_reminders(
    store,
    sender,
    *,
    now: Optional[datetime] = None,
    settings: Optional[Settings] = None,
) -> ScanReport:
    """
    Scan all users once. Errors listing users, settings or events propagate
    and abort the run; per-token send errors are logged and skipped.
    """
    settings = settings or get_settings()
    tz = get_zone(settings.REMINDER_TIMEZONE)
    now = to_local(now or datetime.now(timezone.utc), tz)
    now_local = truncate_to_hour(now)

    logger.info(f"🔍 Running event reminder check for {now_local.isoformat()} ({settings.REMINDER_TIMEZONE})")

    report = ScanReport()
    users = await store.list_users()
    logger.info(f"Found {len(users)} users")

    for user in users:
        report.users_scanned += 1
        await _scan_user(store, sender, user, now, now_local, settings, report)

    if report.reminders_sent or report.reminders_failed:
        logger.info(
            f"✅ Sent {report.reminders_sent} reminder(s), {report.reminders_failed} failed, "
            f"{report.tokens_removed} token(s) removed"
        )
    else:
        logger.info("ℹ️ No reminders to send at this time")
    return report


async def _scan_user(store, sender, user: UserRecord, now, now_local, settings: Settings, report: ScanReport) -> None:
    tokens: List[str] = list(user.fcm_tokens)
    if not tokens:
        logger.debug(f"User {user.id} has no FCM tokens, skipping")
        return

    stored = await store.get_notification_settings(user.id)
    prefs = stored.settings if stored else NotificationSettings()
    if not prefs.enabled:
        logger.debug(f"User {user.id} has notifications disabled, skipping")
        return

    events = await store.list_events(user.id)
    logger.debug(f"User {user.id}: {len(events)} event(s), {len(prefs.reminders)} reminder(s)")

    tz = now_local.tzinfo
    window = timedelta(hours=settings.REMINDER_MAX_ATTEMPTS)
    for event in events:
        occurrence = next_occurrence(event.date, now_local)
        for reminder in prefs.reminders:
            trigger = trigger_instant(occurrence, reminder.hours, tz)
            if not (trigger <= now_local < trigger + window):
                continue

            key = SentNotificationRecord.make_key(user.id, event.id, reminder.id, occurrence.year)
            record = await store.get_sent_record(key)
            if not should_attempt(record, trigger, now_local, settings.REMINDER_MAX_ATTEMPTS):
                logger.debug(f"Notification {key} not due or already handled, skipping")
                continue

            payload = build_reminder_payload(event, reminder)
            delivery = await notify_user(store, sender, user_id=user.id, tokens=tokens, payload=payload)
            report.tokens_removed += len(delivery.invalid_tokens)
            if delivery.success_count:
                report.reminders_sent += 1
            else:
                report.reminders_failed += 1

            attempt_at = now.astimezone(timezone.utc)
            if record:
                record.attempts += 1
                record.success_count += delivery.success_count
                record.last_attempt_at = attempt_at
            else:
                record = SentNotificationRecord(
                    key=key,
                    user_id=user.id,
                    event_id=event.id,
                    reminder_id=reminder.id,
                    year=occurrence.year,
                    sent_at=attempt_at,
                    last_attempt_at=attempt_at,
                    success_count=delivery.success_count,
                )
            record.delivered = record.success_count > 0
            await store.save_sent_record(record)

            tokens = [t for t in tokens if t not in delivery.invalid_tokens]
            if not tokens:
                logger.info(f"User {user.id} has no valid tokens left, skipping remaining reminders")
                return


async def check_and_send_reminders() -> ScanReport:
    """Scheduled entry point (hourly)."""
    from moments.services.store import BeanieReminderStore
    from moments.utils.firebase import FirebasePushSender

    return await send_event_reminders(BeanieReminderStore(), FirebasePushSender())
