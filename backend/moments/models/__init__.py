# Re-export Beanie documents
from .user import User
from .event import Event
from .notification_settings import NotificationSettingsDoc
from .sent_notification import SentNotification
