from beanie import Document, Indexed
from datetime import datetime


class SentNotification(Document):
    """Idempotency record; _id is "{user}-{event}-{reminder}-{year}"."""
    id: str
    user_id: str
    event_id: str
    reminder_id: str
    year: int
    sent_at: Indexed(datetime)
    last_attempt_at: datetime
    attempts: int = 1
    success_count: int = 0
    delivered: bool = False

    class Settings:
        name = "sent_notifications"
