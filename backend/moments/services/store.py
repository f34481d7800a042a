"""
MongoDB access for the reminder jobs and the HTTP routes.

Everything leaving this module is a plain schema object, so the jobs can run
against any object exposing the same coroutines.
"""
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional

from moments.models import Event, NotificationSettingsDoc, SentNotification, User
from moments.schemas import (
    EventRecord,
    NotificationSettings,
    NotificationSettingsOut,
    SentNotificationRecord,
    UserRecord,
)


def _to_user_record(user: User) -> UserRecord:
    return UserRecord(id=user.id, fcm_tokens=list(user.fcm_tokens))


def _to_event_record(event: Event) -> EventRecord:
    return EventRecord(
        id=str(event.id),
        user_id=event.user_id,
        name=event.name,
        # stored dates may carry a time part (2000-08-15T00:00:00.000Z)
        date=date.fromisoformat(event.date[:10]),
        type=event.type,
        custom_type=event.custom_type,
    )


class BeanieReminderStore:
    """Reads and writes users, settings, events and sent-notification records."""

    # -------------------- Users --------------------

    async def list_users(self) -> List[UserRecord]:
        users = await User.find_all().to_list()
        return [_to_user_record(u) for u in users]

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        user = await User.get(user_id)
        return _to_user_record(user) if user else None

    async def add_token(self, user_id: str, token: str) -> None:
        user = await User.get(user_id)
        if not user:
            await User(id=user_id, fcm_tokens=[token]).insert()
            return
        await user.update({"$addToSet": {"fcm_tokens": token}})

    async def remove_tokens(self, user_id: str, tokens: Iterable[str]) -> None:
        tokens = list(tokens)
        if not tokens:
            return
        user = await User.get(user_id)
        if user:
            await user.update({"$pullAll": {"fcm_tokens": tokens}})

    # -------------------- Settings --------------------

    async def get_notification_settings(self, user_id: str) -> Optional[NotificationSettingsOut]:
        doc = await NotificationSettingsDoc.find_one(NotificationSettingsDoc.user_id == user_id)
        if not doc:
            return None
        return NotificationSettingsOut(settings=doc.settings, updated_at=doc.updated_at)

    async def save_notification_settings(
        self, user_id: str, settings: NotificationSettings
    ) -> NotificationSettingsOut:
        now = datetime.now(timezone.utc)
        doc = await NotificationSettingsDoc.find_one(NotificationSettingsDoc.user_id == user_id)
        if doc:
            doc.settings = settings
            doc.updated_at = now
            await doc.save()
        else:
            doc = NotificationSettingsDoc(user_id=user_id, settings=settings, updated_at=now)
            await doc.insert()
        return NotificationSettingsOut(settings=doc.settings, updated_at=doc.updated_at)

    # -------------------- Events --------------------

    async def list_events(self, user_id: str) -> List[EventRecord]:
        events = await Event.find(Event.user_id == user_id).to_list()
        return [_to_event_record(e) for e in events]

    # -------------------- Sent notifications --------------------

    async def get_sent_record(self, key: str) -> Optional[SentNotificationRecord]:
        doc = await SentNotification.get(key)
        if not doc:
            return None
        return SentNotificationRecord(key=doc.id, **doc.model_dump(exclude={"id", "revision_id"}))

    async def save_sent_record(self, record: SentNotificationRecord) -> None:
        doc = SentNotification(id=record.key, **record.model_dump(exclude={"key"}))
        await doc.save()

    async def delete_sent_before(self, cutoff: datetime) -> int:
        result = await SentNotification.find(SentNotification.sent_at < cutoff).delete()
        return result.deleted_count if result else 0
