"""Notification Routes — the caller's own notifications only."""

import logging

from fastapi import APIRouter, Depends, status

from commonroom.api.dependencies import get_caller, get_notifier
from commonroom.core.authorize import Caller
from commonroom.schemas.notifications import NotificationResponse
from commonroom.services.notification_dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    caller: Caller = Depends(get_caller),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """Newest first."""
    return [
        NotificationResponse.model_validate(n)
        for n in await notifier.list_notifications(caller)
    ]


@router.get("/unread-count")
async def unread_count(
    caller: Caller = Depends(get_caller),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    return {"count": await notifier.unread_count(caller)}


@router.put("/read-all")
async def mark_all_read(
    caller: Caller = Depends(get_caller),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    return {"updated": await notifier.mark_all_read(caller)}


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    caller: Caller = Depends(get_caller),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    notification = await notifier.mark_read(caller, notification_id)
    return NotificationResponse.model_validate(notification)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: str,
    caller: Caller = Depends(get_caller),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    await notifier.delete_notification(caller, notification_id)
