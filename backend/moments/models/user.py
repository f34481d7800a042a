from beanie import Document
from pydantic import Field
from datetime import datetime, timezone
from typing import List


class User(Document):
    """Account owning events, reminder settings and push tokens."""

    id: str
    fcm_tokens: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "users"
