"""
Client-side reminder settings.

The settings live in three places: an in-memory object the UI renders, a
local key-value cache that is written synchronously, and the user's remote
profile (the ``/users/{id}/notification-settings`` API). The local copy is
shown first; the remote copy replaces it as soon as it arrives. Remote
errors are logged and never surfaced.
"""
import inspect
import json
import uuid
from pathlib import Path
from typing import Callable, List, Optional

import httpx
from pydantic import BaseModel, ValidationError

from moments.constants import MAX_REMINDER_HOURS, SETTINGS_STORAGE_KEY
from moments.schemas import NotificationSettings, NotificationSettingsOut, Reminder
from moments.services.reminder_schedule import reminder_label
from moments.utils.logger import get_logger

logger = get_logger("settings_store")


class SettingsError(ValueError):
    """A refused settings change; state is left untouched."""


class DuplicateReminderError(SettingsError):
    pass


class InvalidReminderHoursError(SettingsError):
    pass


class LastReminderError(SettingsError):
    pass


class LocalSettingsCache:
    """On-device key-value store backed by a JSON file."""

    def __init__(self, path) -> None:
        self.path = Path(path)

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read local storage {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")

    def load(self) -> Optional[NotificationSettings]:
        raw = self.get_item(SETTINGS_STORAGE_KEY)
        if raw is None:
            return None
        try:
            return NotificationSettings.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"Failed to parse notification settings: {e}")
            return None

    def save(self, settings: NotificationSettings) -> None:
        self.set_item(SETTINGS_STORAGE_KEY, settings.model_dump_json())


class RemoteSettingsClient:
    """HTTP client for the user's remote settings document."""

    def __init__(self, base_url: str, user_id: str, *, timeout: float = 10.0, transport=None) -> None:
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    @property
    def path(self) -> str:
        return f"/users/{self.user_id}/notification-settings"

    async def fetch(self) -> Optional[NotificationSettings]:
        async with self._client() as client:
            resp = await client.get(self.path)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return NotificationSettingsOut.model_validate(resp.json()).settings

    async def push(self, settings: NotificationSettings) -> None:
        async with self._client() as client:
            resp = await client.put(self.path, json=settings.model_dump())
        resp.raise_for_status()


class SaveResult(BaseModel):
    local_saved: bool
    remote_synced: bool


class SettingsRepository:
    """Local cache plus optional remote copy; the remote copy wins once loaded."""

    def __init__(self, local: LocalSettingsCache, remote: Optional[RemoteSettingsClient] = None) -> None:
        self.local = local
        self.remote = remote

    def load_local(self) -> NotificationSettings:
        return self.local.load() or NotificationSettings()

    async def load_remote(self) -> Optional[NotificationSettings]:
        if self.remote is None:
            return None
        try:
            settings = await self.remote.fetch()
        except (httpx.HTTPError, ValueError) as e:
            # ValueError: non-JSON body or invalid settings document
            logger.error(f"Error loading notification settings: {e}")
            return None
        if settings is not None:
            self.local.save(settings)
        return settings

    async def save(self, settings: NotificationSettings) -> SaveResult:
        self.local.save(settings)
        if self.remote is None:
            return SaveResult(local_saved=True, remote_synced=False)
        try:
            await self.remote.push(settings)
        except httpx.HTTPError as e:
            logger.error(f"Error saving notification settings: {e}")
            return SaveResult(local_saved=True, remote_synced=False)
        return SaveResult(local_saved=True, remote_synced=True)


class NotificationSettingsStore:
    """Reminder configuration as the settings screen sees it."""

    def __init__(
        self,
        repository: SettingsRepository,
        *,
        on_render: Optional[Callable[[List[Reminder]], None]] = None,
        request_permission: Optional[Callable] = None,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ) -> None:
        self.repository = repository
        self.on_render = on_render
        self.request_permission = request_permission
        self.id_factory = id_factory
        self.settings = NotificationSettings()

    def sorted_reminders(self) -> List[Reminder]:
        return sorted(self.settings.reminders, key=lambda r: r.hours)

    @property
    def can_delete(self) -> bool:
        return len(self.settings.reminders) > 1

    def _render(self) -> None:
        if self.on_render:
            self.on_render(self.sorted_reminders())

    async def _commit(self, settings: NotificationSettings) -> SaveResult:
        self.settings = settings
        result = await self.repository.save(settings)
        self._render()
        return result

    async def load(self) -> NotificationSettings:
        self.settings = self.repository.load_local()
        self._render()
        remote = await self.repository.load_remote()
        if remote is not None:
            self.settings = remote
            self._render()
        return self.settings

    async def toggle_enabled(self, enabled: bool) -> SaveResult:
        result = await self._commit(self.settings.model_copy(update={"enabled": enabled}))
        if enabled and self.request_permission:
            outcome = self.request_permission()
            if inspect.isawaitable(outcome):
                await outcome
        return result

    async def _add(self, hours: int, label: str) -> Reminder:
        if any(r.hours == hours for r in self.settings.reminders):
            raise DuplicateReminderError("Reminder already exists")
        reminder = Reminder(id=self.id_factory(), label=label, hours=hours)
        await self._commit(
            self.settings.model_copy(update={"reminders": [*self.settings.reminders, reminder]})
        )
        return reminder

    async def add_preset(self, hours: int, label: str) -> Reminder:
        return await self._add(hours, label)

    async def add_custom(self, raw_hours) -> Reminder:
        try:
            hours = int(str(raw_hours).strip())
        except ValueError:
            raise InvalidReminderHoursError("Please enter valid hours")
        if hours < 0 or hours > MAX_REMINDER_HOURS:
            raise InvalidReminderHoursError("Please enter valid hours")
        return await self._add(hours, reminder_label(hours))

    async def delete_reminder(self, reminder_id: str) -> SaveResult:
        if not self.can_delete:
            raise LastReminderError("Must have at least one reminder")
        remaining = [r for r in self.settings.reminders if r.id != reminder_id]
        return await self._commit(self.settings.model_copy(update={"reminders": remaining}))
