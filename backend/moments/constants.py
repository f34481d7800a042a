from enum import Enum

REMINDER_TITLE = "Moments Reminder 🎉"
TEST_NOTIFICATION_TITLE = "Test Notification 🧪"
TEST_NOTIFICATION_TAG = "test-notification"
DEFAULT_EVENT_TYPE = "Birthday"

DEFAULT_REMINDER_ID = "default"
DAY_OF_LABEL = "Day of (12 AM)"
# an event recurs within a year, so larger offsets could never fire
MAX_REMINDER_HOURS = 365 * 24

# Key of the serialized settings object in the on-device store
SETTINGS_STORAGE_KEY = "notification-settings"


class NotificationAction(str, Enum):
    """Buttons shown on a displayed reminder."""
    OPEN = "open"
    DISMISS = "dismiss"
