import os
import tempfile
from datetime import date, datetime
from zoneinfo import ZoneInfo

os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "moments-test-logs"))
os.environ.setdefault("ENABLE_SCHEDULER", "false")

import pytest

from moments.config import Settings
from moments.schemas import (
    EventRecord,
    NotificationSettings,
    NotificationSettingsOut,
    Reminder,
    UserRecord,
)

IST = ZoneInfo("Asia/Kolkata")


class InMemoryStore:
    """Same coroutines as BeanieReminderStore, kept in dicts."""

    def __init__(self):
        self.users = {}
        self.settings = {}
        self.events = {}
        self.sent = {}
        self.fail_with = None

    # helpers for arranging tests
    def add_user(self, user_id, tokens=(), settings=None):
        self.users[user_id] = UserRecord(id=user_id, fcm_tokens=list(tokens))
        if settings is not None:
            self.settings[user_id] = NotificationSettingsOut(settings=settings, updated_at=datetime(2026, 1, 1))

    def add_event(self, user_id, event_id, name, when: date, **kwargs):
        event = EventRecord(id=event_id, user_id=user_id, name=name, date=when, **kwargs)
        self.events.setdefault(user_id, []).append(event)
        return event

    def tokens(self, user_id):
        return self.users[user_id].fcm_tokens

    # store interface
    async def list_users(self):
        if self.fail_with:
            raise self.fail_with
        return [u.model_copy(deep=True) for u in self.users.values()]

    async def get_user(self, user_id):
        if self.fail_with:
            raise self.fail_with
        user = self.users.get(user_id)
        return user.model_copy(deep=True) if user else None

    async def add_token(self, user_id, token):
        user = self.users.setdefault(user_id, UserRecord(id=user_id))
        if token not in user.fcm_tokens:
            user.fcm_tokens.append(token)

    async def remove_tokens(self, user_id, tokens):
        user = self.users[user_id]
        user.fcm_tokens = [t for t in user.fcm_tokens if t not in set(tokens)]

    async def get_notification_settings(self, user_id):
        return self.settings.get(user_id)

    async def save_notification_settings(self, user_id, settings):
        stored = NotificationSettingsOut(settings=settings, updated_at=datetime(2026, 1, 2))
        self.settings[user_id] = stored
        return stored

    async def list_events(self, user_id):
        return list(self.events.get(user_id, []))

    async def get_sent_record(self, key):
        record = self.sent.get(key)
        return record.model_copy() if record else None

    async def save_sent_record(self, record):
        self.sent[record.key] = record.model_copy()

    async def delete_sent_before(self, cutoff):
        old = [k for k, r in self.sent.items() if r.sent_at < cutoff]
        for k in old:
            del self.sent[k]
        return len(old)


class FakeSender:
    """Push sender whose per-token outcome is scripted via ``failures``."""

    def __init__(self, failures=None):
        self.failures = dict(failures or {})
        self.sent = []
        self.calls = []

    async def send(self, token, payload):
        self.calls.append(token)
        exc = self.failures.get(token)
        if exc is not None:
            raise exc
        self.sent.append((token, payload))
        return f"projects/moments/messages/{len(self.sent)}"


def reminders(*hours):
    items = []
    for h in hours:
        items.append(Reminder(id=f"r{h}", label=f"{h}h", hours=h))
    return NotificationSettings(enabled=True, reminders=items)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def app_settings():
    return Settings(REMINDER_TIMEZONE="Asia/Kolkata", REMINDER_MAX_ATTEMPTS=3, RETENTION_DAYS=30)
