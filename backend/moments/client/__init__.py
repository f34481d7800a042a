from .presenter import NotificationPresenter, build_notification
from .settings_store import (
    DuplicateReminderError,
    InvalidReminderHoursError,
    LastReminderError,
    LocalSettingsCache,
    NotificationSettingsStore,
    RemoteSettingsClient,
    SaveResult,
    SettingsError,
    SettingsRepository,
)
