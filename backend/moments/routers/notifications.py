from typing import Optional

from fastapi import APIRouter, Body, Depends, Request, Response
from fastapi.responses import PlainTextResponse

from moments.config import get_settings
from moments.constants import TEST_NOTIFICATION_TAG, TEST_NOTIFICATION_TITLE
from moments.deps import get_push_sender, get_store
from moments.rate_limit import limiter
from moments.schemas import DeviceTokenIn, ManualNotificationIn, PushPayload
from moments.services.notification_service import notify_user, register_device_token
from moments.utils.logger import get_logger

logger = get_logger("notifications_router")
settings = get_settings()

router = APIRouter(tags=["notifications"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST",
    "Access-Control-Allow-Headers": "Content-Type",
}


def _text(status_code: int, body: str) -> PlainTextResponse:
    return PlainTextResponse(body, status_code=status_code, headers=CORS_HEADERS)


@router.post("/notifications/register", status_code=204)
async def register_token(payload: DeviceTokenIn, store=Depends(get_store)):
    """Register an FCM device token for push notifications."""
    await register_device_token(store, user_id=payload.user_id, token=payload.token)
    return Response(status_code=204)


MANUAL_TRIGGER_PATH = "/test-notification"


def preflight_response() -> Response:
    return Response(status_code=204, headers=CORS_HEADERS)


@router.post(MANUAL_TRIGGER_PATH, response_class=PlainTextResponse)
@limiter.limit(settings.TEST_NOTIFICATION_RATE_LIMIT)
async def test_notification(
    request: Request,
    payload: Optional[ManualNotificationIn] = Body(None),
    store=Depends(get_store),
    sender=Depends(get_push_sender),
):
    """Push a literal message to every device of a user (manual testing)."""
    if payload is None or not payload.userId or not payload.message:
        return _text(400, "Missing userId or message")

    try:
        user = await store.get_user(payload.userId)
        if not user:
            return _text(404, "User not found")

        tokens = list(user.fcm_tokens)
        logger.info(f"User {user.id} has {len(tokens)} FCM tokens")
        if not tokens:
            return _text(400, "User has no FCM tokens")

        push = PushPayload(title=TEST_NOTIFICATION_TITLE, body=payload.message, tag=TEST_NOTIFICATION_TAG)
        report = await notify_user(store, sender, user_id=user.id, tokens=tokens, payload=push)
        removed = len(report.invalid_tokens)

        if report.success_count > 0:
            return _text(
                200,
                f"Notification sent to {report.success_count} device(s). {removed} invalid token(s) removed.",
            )
        return _text(
            400,
            f"All {len(tokens)} tokens failed. {removed} invalid token(s) removed. "
            "User needs to re-enable notifications.",
        )
    except Exception as e:
        logger.error(f"Test notification error: {e}", exc_info=True)
        return _text(500, f"Error: {e}")
