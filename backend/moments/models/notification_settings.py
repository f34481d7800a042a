from beanie import Document, Indexed
from pydantic import Field
from datetime import datetime, timezone

from moments.schemas import NotificationSettings


class NotificationSettingsDoc(Document):
    """Reminder configuration of one user."""
    user_id: Indexed(str, unique=True)
    settings: NotificationSettings = Field(default_factory=NotificationSettings)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "notification_settings"
