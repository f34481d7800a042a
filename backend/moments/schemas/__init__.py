from datetime import date, datetime
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict

from moments.constants import DEFAULT_EVENT_TYPE, DEFAULT_REMINDER_ID, DAY_OF_LABEL, MAX_REMINDER_HOURS

# -------------------- Notification Settings --------------------


class Reminder(BaseModel):
    """One hours-before offset relative to the event's local midnight."""

    id: str
    label: str
    hours: int = Field(ge=0, le=MAX_REMINDER_HOURS)


def default_reminders() -> List[Reminder]:
    return [Reminder(id=DEFAULT_REMINDER_ID, label=DAY_OF_LABEL, hours=0)]


class NotificationSettings(BaseModel):
    enabled: bool = True
    reminders: List[Reminder] = Field(default_factory=default_reminders)

    @field_validator("reminders")
    @classmethod
    def _at_least_one(cls, v: List[Reminder]) -> List[Reminder]:
        if not v:
            raise ValueError("At least one reminder is required")
        return v


class NotificationSettingsOut(BaseModel):
    settings: NotificationSettings
    updated_at: Optional[datetime] = None

# -------------------- Reminder Scanner records --------------------


class UserRecord(BaseModel):
    id: str
    fcm_tokens: List[str] = Field(default_factory=list)


class EventRecord(BaseModel):
    id: str
    user_id: str
    name: str
    date: date
    type: Optional[str] = None
    custom_type: Optional[str] = None

    @property
    def display_type(self) -> str:
        return self.custom_type or self.type or DEFAULT_EVENT_TYPE


class SentNotificationRecord(BaseModel):
    """Idempotency marker for one (user, event, reminder, year)."""

    key: str
    user_id: str
    event_id: str
    reminder_id: str
    year: int
    sent_at: datetime
    last_attempt_at: datetime
    attempts: int = 1
    success_count: int = 0
    delivered: bool = False

    @staticmethod
    def make_key(user_id: str, event_id: str, reminder_id: str, year: int) -> str:
        return f"{user_id}-{event_id}-{reminder_id}-{year}"

# -------------------- Push --------------------


class PushPayload(BaseModel):
    """Data-only push envelope; the presenter builds the visible notification."""

    title: str
    body: str
    tag: str
    person_id: Optional[str] = None
    person_name: Optional[str] = None

    def to_data(self) -> Dict[str, str]:
        # FCM data values must all be strings
        data = {"title": self.title, "body": self.body, "tag": self.tag}
        if self.person_id is not None:
            data["personId"] = self.person_id
        if self.person_name is not None:
            data["personName"] = self.person_name
        return data

    def to_envelope(self) -> Dict[str, Dict[str, str]]:
        return {"data": self.to_data()}


class DeliveryReport(BaseModel):
    success_count: int = 0
    invalid_tokens: List[str] = Field(default_factory=list)
    failed_tokens: List[str] = Field(default_factory=list)

    @property
    def attempted(self) -> int:
        return self.success_count + len(self.failed_tokens)

# -------------------- Requests --------------------


class ManualNotificationIn(BaseModel):
    userId: Optional[str] = None
    message: Optional[str] = None


class DeviceTokenIn(BaseModel):
    user_id: str
    token: str
    platform: Optional[str] = None  # ios|android|web
