"""
Service worker behaviour for pushed reminders.

``worker`` stands for the service worker global scope and must provide
``registration.show_notification(title, options)``, ``clients.match_all(...)``,
``clients.open_window(url)``, ``clients.claim()`` and ``skip_waiting()``;
all of them awaitable.
"""
from typing import Any, Dict, Optional, Tuple

from moments.config import get_settings
from moments.constants import REMINDER_TITLE, NotificationAction
from moments.utils.logger import get_logger

logger = get_logger("presenter")

DEFAULT_BODY = "You have an upcoming moment!"
DEFAULT_TAG = "moment-reminder"
ICON = "/icon.png"


def _pick(payload: Dict[str, Any], field: str) -> Optional[str]:
    for section in ("data", "notification"):
        value = (payload.get(section) or {}).get(field)
        if value:
            return value
    return None


def build_notification(payload: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
    """Title and display options for a pushed payload, with generic fallbacks."""
    title = _pick(payload, "title") or REMINDER_TITLE
    options = {
        "body": _pick(payload, "body") or DEFAULT_BODY,
        "icon": ICON,
        "badge": ICON,
        "tag": _pick(payload, "tag") or DEFAULT_TAG,
        "data": payload.get("data") or {},
        "vibrate": [200, 100, 200],
        "actions": [
            {"action": NotificationAction.OPEN.value, "title": "Open App"},
            {"action": NotificationAction.DISMISS.value, "title": "Dismiss"},
        ],
    }
    return title, options


class NotificationPresenter:
    def __init__(self, worker, *, app_url_match: Optional[str] = None) -> None:
        self.worker = worker
        self.app_url_match = app_url_match or get_settings().APP_URL_MATCH

    async def on_background_message(self, payload: Dict[str, Any], *, app_focused: bool = False):
        """Show a system notification unless the app itself has focus."""
        if app_focused:
            logger.debug("App focused, not showing notification")
            return None
        logger.info(f"[SW] Received background message: {payload}")
        title, options = build_notification(payload)
        return await self.worker.registration.show_notification(title, options)

    async def on_notification_click(self, notification, action: Optional[str] = None):
        notification.close()
        if action == NotificationAction.DISMISS.value:
            return None

        clients = self.worker.clients
        for client in await clients.match_all(type="window", include_uncontrolled=True):
            if self.app_url_match in client.url and hasattr(client, "focus"):
                return await client.focus()
        if getattr(clients, "open_window", None):
            return await clients.open_window("/")
        return None

    async def on_install(self) -> None:
        logger.info("[SW] Service Worker installed")
        await self.worker.skip_waiting()

    async def on_activate(self) -> None:
        logger.info("[SW] Service Worker activated")
        await self.worker.clients.claim()
