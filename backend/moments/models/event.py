from beanie import Document, Indexed
from pydantic import Field
from datetime import datetime, timezone


class Event(Document):
    """Yearly recurring event (birthday, anniversary...) of a user."""
    user_id: Indexed(str)
    name: str
    date: str  # YYYY-MM-DD, year ignored for recurrence
    type: str | None = None
    custom_type: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "events"
