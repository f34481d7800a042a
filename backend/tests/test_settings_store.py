import json

import httpx
import pytest

from conftest import reminders
from moments.client import (
    DuplicateReminderError,
    InvalidReminderHoursError,
    LastReminderError,
    LocalSettingsCache,
    NotificationSettingsStore,
    RemoteSettingsClient,
    SettingsRepository,
)
from moments.constants import SETTINGS_STORAGE_KEY
from moments.deps import get_store
from moments.main import app
from moments.schemas import NotificationSettings


@pytest.fixture
def local(tmp_path):
    return LocalSettingsCache(tmp_path / "local-storage.json")


@pytest.fixture
def remote(store):
    app.dependency_overrides[get_store] = lambda: store
    yield RemoteSettingsClient("http://testserver", "u1", transport=httpx.ASGITransport(app=app))
    app.dependency_overrides.clear()


@pytest.fixture
def unreachable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    return RemoteSettingsClient("http://offline", "u1", transport=httpx.MockTransport(handler))


class Renders:
    def __init__(self):
        self.calls = []

    def __call__(self, items):
        self.calls.append([r.hours for r in items])


def make_store(local, remote=None, **kwargs):
    counter = iter(range(1, 100))
    return NotificationSettingsStore(
        SettingsRepository(local, remote),
        id_factory=lambda: f"id{next(counter)}",
        **kwargs,
    )


async def test_load_defaults_when_nothing_stored(local, remote):
    renders = Renders()
    settings_store = make_store(local, remote, on_render=renders)

    settings = await settings_store.load()

    assert settings == NotificationSettings()
    assert settings.reminders[0].label == "Day of (12 AM)"
    assert renders.calls == [[0]]


async def test_remote_copy_replaces_local_once_loaded(local, remote, store):
    local.save(reminders(0, 1))
    await store.save_notification_settings("u1", reminders(24, 0, 48))
    renders = Renders()
    settings_store = make_store(local, remote, on_render=renders)

    settings = await settings_store.load()

    assert [r.hours for r in settings.reminders] == [24, 0, 48]
    assert renders.calls == [[0, 1], [0, 24, 48]]
    assert local.load() == settings


async def test_remote_failure_keeps_local_copy(local, unreachable):
    local.save(reminders(0, 3))
    settings_store = make_store(local, unreachable)

    settings = await settings_store.load()

    assert [r.hours for r in settings.reminders] == [0, 3]


async def test_non_json_remote_body_keeps_local_copy(local):
    def handler(request):
        return httpx.Response(200, text="<html>captive portal</html>", headers={"content-type": "text/html"})

    portal = RemoteSettingsClient("http://portal", "u1", transport=httpx.MockTransport(handler))
    local.save(reminders(0, 3))
    settings_store = make_store(local, portal)

    settings = await settings_store.load()

    assert [r.hours for r in settings.reminders] == [0, 3]
    assert [r.hours for r in local.load().reminders] == [0, 3]


def test_corrupt_local_value_is_ignored(local):
    local.path.write_text(json.dumps({SETTINGS_STORAGE_KEY: "{not json"}))
    assert local.load() is None
    assert SettingsRepository(local).load_local() == NotificationSettings()


async def test_mutations_persist_locally_and_remotely(local, remote, store):
    settings_store = make_store(local, remote)
    await settings_store.load()

    reminder = await settings_store.add_preset(24, "1 day before")

    assert reminder.id == "id1"
    assert [r.hours for r in local.load().reminders] == [0, 24]
    assert [r.hours for r in store.settings["u1"].settings.reminders] == [0, 24]


async def test_remote_save_failure_is_silent(local, unreachable):
    settings_store = make_store(local, unreachable)

    result = await settings_store.toggle_enabled(False)

    assert result.local_saved is True
    assert result.remote_synced is False
    assert local.load().enabled is False


async def test_duplicate_hours_rejected(local):
    settings_store = make_store(local)
    await settings_store.add_preset(24, "1 day before")

    with pytest.raises(DuplicateReminderError):
        await settings_store.add_preset(24, "Tomorrow")
    with pytest.raises(DuplicateReminderError):
        await settings_store.add_custom("24")

    assert [r.hours for r in settings_store.settings.reminders] == [0, 24]


@pytest.mark.parametrize("raw", ["abc", "", "-3", "1.5", "8761"])
async def test_custom_hours_must_be_non_negative_integer(local, raw):
    settings_store = make_store(local)

    with pytest.raises(InvalidReminderHoursError):
        await settings_store.add_custom(raw)

    assert len(settings_store.settings.reminders) == 1


@pytest.mark.parametrize(
    "raw, label",
    [("1", "1 hour before"), (" 6 ", "6 hours before"), ("30", "1 day before"), ("72", "3 days before")],
)
async def test_custom_label_follows_magnitude(local, raw, label):
    settings_store = make_store(local)
    reminder = await settings_store.add_custom(raw)
    assert reminder.label == label


async def test_delete_refuses_last_reminder(local):
    settings_store = make_store(local)
    for hours in (48, 12, 1):
        await settings_store.add_preset(hours, f"{hours}h")
    ids = [r.id for r in settings_store.settings.reminders]

    for reminder_id in ids[:-1]:
        await settings_store.delete_reminder(reminder_id)
    assert [r.id for r in settings_store.settings.reminders] == [ids[-1]]
    assert settings_store.can_delete is False

    with pytest.raises(LastReminderError):
        await settings_store.delete_reminder(ids[-1])
    assert [r.id for r in settings_store.settings.reminders] == [ids[-1]]


async def test_render_is_sorted_by_hours(local):
    renders = Renders()
    settings_store = make_store(local, on_render=renders)
    await settings_store.add_preset(48, "2 days before")
    await settings_store.add_preset(1, "1 hour before")

    assert renders.calls[-1] == [0, 1, 48]
    assert [r.hours for r in settings_store.sorted_reminders()] == [0, 1, 48]


async def test_enabling_requests_permission(local):
    asked = []

    async def request_permission():
        asked.append(True)

    settings_store = make_store(local, request_permission=request_permission)
    await settings_store.toggle_enabled(False)
    assert asked == []

    await settings_store.toggle_enabled(True)
    assert asked == [True]
    assert settings_store.settings.enabled is True
