from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from moments.config import get_settings

settings = get_settings()

DEFAULT_DB_NAME = "moments"

_mongo_client: AsyncIOMotorClient | None = None


def database_name(uri: str) -> str:
    """Database from the URI path (``mongodb://host/name?opts``), else ``moments``."""
    path = uri.split("://", 1)[-1]
    if "/" not in path:
        return DEFAULT_DB_NAME
    return path.split("/", 1)[1].split("?", 1)[0] or DEFAULT_DB_NAME


async def init_db() -> None:
    """Connect to MongoDB and register the Beanie documents."""
    global _mongo_client
    from moments.models import Event, NotificationSettingsDoc, SentNotification, User

    _mongo_client = AsyncIOMotorClient(settings.MONGODB_URI)
    await init_beanie(
        database=_mongo_client[database_name(settings.MONGODB_URI)],
        document_models=[User, Event, NotificationSettingsDoc, SentNotification],
    )


async def ping_db() -> bool:
    if not _mongo_client:
        return False
    try:
        await _mongo_client.admin.command("ping")
        return True
    except Exception:
        return False
