from fastapi import APIRouter, Depends, HTTPException

from moments.deps import get_store
from moments.schemas import NotificationSettings, NotificationSettingsOut

router = APIRouter(prefix="/users", tags=["settings"])


@router.get("/{user_id}/notification-settings", response_model=NotificationSettingsOut)
async def get_notification_settings(user_id: str, store=Depends(get_store)):
    """Remote copy of the user's reminder configuration."""
    stored = await store.get_notification_settings(user_id)
    if not stored:
        raise HTTPException(status_code=404, detail="Notification settings not found")
    return stored


@router.put("/{user_id}/notification-settings", response_model=NotificationSettingsOut)
async def put_notification_settings(user_id: str, payload: NotificationSettings, store=Depends(get_store)):
    return await store.save_notification_settings(user_id, payload)
