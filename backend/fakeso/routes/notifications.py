"""
FakeSO Backend — Notification Route Handlers
==============================================

What:  /notification/* endpoints driving the friend-request state machine.

Real-time events published here:
    notificationUpdate  a notification landed in a user's list
                        (the request itself, or the `accept` sent back)
    clearNotification   a notification left a user's list
    addFriend           a request was accepted
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fakeso.database import get_db_session
from fakeso.schemas.common import ErrorResponse, MessageResponse
from fakeso.schemas.user import (
    NotificationActionRequest,
    NotificationRequest,
    NotificationResponse,
    NotificationUpdatePayload,
    UserFriendUpdatePayload,
    UserNotificationUpdatePayload,
)
from fakeso.services.event_bus import (
    ADD_FRIEND,
    CLEAR_NOTIFICATION,
    NOTIFICATION_UPDATE,
    event_bus,
)
from fakeso.services.notification_service import notification_service

router = APIRouter(prefix="/notification", tags=["Notifications"])


@router.post(
    "/addNotification",
    response_model=NotificationResponse,
    responses={
        400: {"description": "Invalid notification", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
        409: {"description": "Already friends or request pending", "model": ErrorResponse},
    },
    summary="Send a notification (usually a friend request)",
)
async def add_notification(
    body: NotificationRequest,
    db: AsyncSession = Depends(get_db_session),
) -> NotificationResponse:
    notification = await notification_service.add_notification(db, body.uid, body.noti)
    await event_bus.publish(
        NOTIFICATION_UPDATE,
        NotificationUpdatePayload(uid=body.uid, notification=notification),
    )
    return notification


@router.post(
    "/clearNotification",
    response_model=MessageResponse,
    responses={404: {"description": "User or notification not found", "model": ErrorResponse}},
    summary="Decline / dismiss a notification",
)
async def clear_notification(
    body: NotificationActionRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    user = await notification_service.clear_notification(db, body.uid, body.nid)
    await event_bus.publish(CLEAR_NOTIFICATION, UserNotificationUpdatePayload(user=user, nid=body.nid))
    return MessageResponse(msg="Notification cleared successfully")


@router.post(
    "/acceptNotification",
    response_model=MessageResponse,
    responses={
        400: {"description": "Not a request addressed to this user", "model": ErrorResponse},
        404: {"description": "User or notification not found", "model": ErrorResponse},
        409: {"description": "Friendship already exists", "model": ErrorResponse},
    },
    summary="Accept a friend request",
)
async def accept_notification(
    body: NotificationActionRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    result = await notification_service.accept_notification(db, body.uid, body.nid)

    await event_bus.publish(
        CLEAR_NOTIFICATION,
        UserNotificationUpdatePayload(user=result.receiver, nid=result.cleared_nid),
    )
    await event_bus.publish(
        ADD_FRIEND,
        UserFriendUpdatePayload(user=result.receiver, friend=result.sender),
    )
    await event_bus.publish(
        NOTIFICATION_UPDATE,
        NotificationUpdatePayload(uid=result.sender.id, notification=result.accept_notification),
    )
    return MessageResponse(msg=result.msg)


@router.get(
    "/getNotificationById/{nid}",
    response_model=NotificationResponse,
    responses={404: {"description": "Notification not found", "model": ErrorResponse}},
    summary="Fetch one notification",
)
async def get_notification_by_id(
    nid: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> NotificationResponse:
    return await notification_service.get_notification_by_id(db, nid)
