import asyncio

import firebase_admin
from firebase_admin import credentials, exceptions, messaging

from moments.config import get_settings
from moments.schemas import PushPayload
from moments.utils.logger import get_logger

settings = get_settings()
logger = get_logger("fcm")

_firebase_ready = False


def init_firebase() -> bool:
    """Initialize the Admin SDK from the service account file; no-op mode without one."""
    global _firebase_ready
    if _firebase_ready:
        return True
    if not settings.FIREBASE_CREDENTIALS_FILE:
        logger.warning("FIREBASE_CREDENTIALS_FILE not set, push sends are skipped")
        return False
    try:
        cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS_FILE)
        firebase_admin.initialize_app(cred)
        _firebase_ready = True
    except (ValueError, OSError) as e:
        logger.error(f"Failed to initialize Firebase: {e}")
    return _firebase_ready


def _blames_token(exc: exceptions.FirebaseError) -> bool:
    # INVALID_ARGUMENT also covers bad payloads (too big, reserved keys)
    if "registration token" in str(exc).lower():
        return True
    response = exc.http_response
    if response is None:
        return False
    try:
        body = response.json()
    except ValueError:
        return False
    if not isinstance(body, dict):
        return False
    for detail in body.get("error", {}).get("details", []):
        for violation in detail.get("fieldViolations", []):
            if violation.get("field") == "message.token":
                return True
    return False


def is_invalid_token_error(exc: Exception) -> bool:
    """True when FCM reports the token itself as permanently unusable."""
    if isinstance(exc, (messaging.UnregisteredError, messaging.SenderIdMismatchError)):
        return True
    return isinstance(exc, exceptions.InvalidArgumentError) and _blames_token(exc)


class FirebasePushSender:
    """Sends one data-only message per device token."""

    async def send(self, token: str, payload: PushPayload) -> str:
        if not _firebase_ready:
            logger.info(f"[FCM:SKIP] title={payload.title} body={payload.body} token={token[:20]}...")
            return "skipped"
        message = messaging.Message(data=payload.to_data(), token=token)
        # messaging.send is blocking HTTP
        return await asyncio.to_thread(messaging.send, message)
