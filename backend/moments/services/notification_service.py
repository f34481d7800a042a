from typing import List

from moments.schemas import DeliveryReport, PushPayload
from moments.utils.firebase import is_invalid_token_error
from moments.utils.logger import get_logger

logger = get_logger("notifications")


async def register_device_token(store, *, user_id: str, token: str) -> None:
    """Save an FCM device token for the user."""
    await store.add_token(user_id, token)
    logger.info(f"Registered token {token[:20]}... for user {user_id}")


async def deliver_to_tokens(sender, tokens: List[str], payload: PushPayload, *, user_id: str) -> DeliveryReport:
    """Send ``payload`` to every token; one token failing never stops the others."""
    report = DeliveryReport()
    for token in tokens:
        try:
            await sender.send(token, payload)
            report.success_count += 1
            logger.info(f"✅ Sent '{payload.tag}' to user {user_id} token {token[:20]}...")
        except Exception as e:
            logger.error(f"❌ Error sending to user {user_id} token {token[:20]}...: {e}")
            report.failed_tokens.append(token)
            if is_invalid_token_error(e):
                report.invalid_tokens.append(token)
    return report


async def notify_user(store, sender, *, user_id: str, tokens: List[str], payload: PushPayload) -> DeliveryReport:
    """Push to all of a user's devices, then drop the tokens FCM rejected for good."""
    report = await deliver_to_tokens(sender, tokens, payload, user_id=user_id)
    if report.invalid_tokens:
        await store.remove_tokens(user_id, report.invalid_tokens)
        logger.info(f"🧹 Removed {len(report.invalid_tokens)} invalid token(s) for user {user_id}")
    return report
