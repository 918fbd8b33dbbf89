"""
FakeSO Backend — Notification Service (Friend-Request State Machine)
======================================================================

What:  Sending, declining and accepting friend requests.
Why:   A friend request touches two users (the list of one, the friends of
       both), so every transition is validated up front and then applied
       inside the request's single transaction.
Who:   Called by the notification routes.

State Machine (per sender → receiver pair):

    ┌──────┐  add_notification   ┌───────────┐  accept_notification  ┌──────────┐
    │ none │────────────────────▶│ requested │──────────────────────▶│ accepted │
    └──────┘                     └───────────┘                       └──────────┘
                                       │ clear_notification
                                       ▼
                                 ┌──────────┐
                                 │ declined │ (request gone, no friend edge)
                                 └──────────┘

On accept:
    1. the request ID is removed from the receiver's list
    2. both users list each other as friends
    3. a new `accept` notification (receiver → sender) is appended
       to the original sender's list

Notification rows are never updated. Declining or accepting only removes
the ID from the owner's list; the row stays for history lookups.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fakeso.exceptions import ConflictError, DatabaseError, FakeSOError, NotFoundError, ValidationError
from fakeso.models.user import Notification, User
from fakeso.schemas.user import (
    AcceptResult,
    NotificationInput,
    NotificationResponse,
    UserResponse,
)
from fakeso.services.user_service import user_service

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = ("request", "accept")


class NotificationService:
    """Transitions of the friend-request state machine."""

    async def _user_by_id(self, db: AsyncSession, uid: UUID) -> User:
        result = await db.execute(select(User).where(User.id == uid).with_for_update())
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(uid), message="User not found")
        return user

    async def add_notification(
        self,
        db: AsyncSession,
        uid: UUID,
        data: NotificationInput,
    ) -> NotificationResponse:
        """
        Save a notification and append it to user `uid`'s list.

        For a friend request the sender must exist, must not be the
        receiver, must not already be a friend, and must not have another
        request pending in the receiver's list. A request is also refused
        while the receiver's own request to the sender is still pending.

        Raises:
            ValidationError: "Invalid notification", or the receiver is not user `uid`
            NotFoundError: user `uid` or the sender does not exist
            ConflictError: self request, existing friendship, pending duplicate,
                pending request in the opposite direction
            DatabaseError: the write failed
        """
        if not (data.sender and data.receiver and data.type in NOTIFICATION_TYPES):
            raise ValidationError(message="Invalid notification")

        try:
            receiver = await self._user_by_id(db, uid)
            if receiver.username != data.receiver:
                raise ValidationError(message="Notification receiver does not match user", field="receiver")

            if data.type == "request":
                if data.sender == data.receiver:
                    raise ConflictError(message="Users cannot be friends with themselves")
                result = await db.execute(select(User).where(User.username == data.sender))
                sender = result.scalar_one_or_none()
                if sender is None:
                    raise NotFoundError(resource="user", message="Sending user not found")
                if data.sender in receiver.friends:
                    raise ConflictError(message="Friendship already exists")

                pending = await user_service.load_notifications(db, receiver.notifications)
                if any(n.type == "request" and n.sender == data.sender for n in pending):
                    raise ConflictError(message="Friend request already pending")

                # a request the other way round must be accepted, not mirrored
                reverse = await user_service.load_notifications(db, sender.notifications)
                if any(n.type == "request" and n.sender == data.receiver for n in reverse):
                    raise ConflictError(
                        message=f"{data.receiver} already sent you a friend request",
                        context={"sender": data.sender, "receiver": data.receiver},
                    )

            notification = Notification(sender=data.sender, receiver=data.receiver, type=data.type)
            db.add(notification)
            await db.flush()

            receiver.notifications = [*receiver.notifications, str(notification.id)]
            await db.flush()

        except FakeSOError:
            raise
        except Exception as e:
            logger.error("Database error adding notification for %s: %s", uid, str(e))
            raise DatabaseError(
                message="Error when adding notification",
                context={"uid": str(uid), "error_type": type(e).__name__},
            )

        logger.info("Notification %s (%s) %s -> %s", notification.id, notification.type, notification.sender, notification.receiver)
        return NotificationResponse.from_model(notification)

    async def clear_notification(self, db: AsyncSession, uid: UUID, nid: UUID) -> UserResponse:
        """
        Remove notification `nid` from user `uid`'s list (decline).

        Raises:
            NotFoundError: no such user, or `nid` is not in the user's list
        """
        try:
            user = await self._user_by_id(db, uid)
            if str(nid) not in user.notifications:
                raise NotFoundError(resource="notification", resource_id=str(nid))

            user.notifications = [n for n in user.notifications if n != str(nid)]
            await db.flush()

            logger.info("Notification %s cleared for %s", nid, user.username)
            return await user_service.to_response(db, user)

        except FakeSOError:
            raise
        except Exception as e:
            logger.error("Database error clearing notification %s: %s", nid, str(e))
            raise DatabaseError(message="Error when clearing notification")

    async def accept_notification(self, db: AsyncSession, uid: UUID, nid: UUID) -> AcceptResult:
        """
        Accept the friend request `nid` held by user `uid`.

        Raises:
            NotFoundError: no such user, `nid` not in the list, or the sender is gone
            ValidationError: the notification is not a request addressed to `uid`
            ConflictError: the two users are already friends
            DatabaseError: a write failed
        """
        try:
            receiver = await self._user_by_id(db, uid)
            if str(nid) not in receiver.notifications:
                raise NotFoundError(resource="notification", resource_id=str(nid))

            request = await db.get(Notification, nid)
            if request is None:
                raise NotFoundError(resource="notification", resource_id=str(nid))
            if request.receiver != receiver.username:
                raise ValidationError(message="Notification is not addressed to this user")
            if request.type != "request":
                raise ValidationError(message="Only friend requests can be accepted")

            receiver, sender = await user_service.add_friends(db, request.receiver, request.sender)

            receiver.notifications = [n for n in receiver.notifications if n != str(nid)]
            accept = Notification(sender=receiver.username, receiver=sender.username, type="accept")
            db.add(accept)
            await db.flush()
            sender.notifications = [*sender.notifications, str(accept.id)]
            await db.flush()

            logger.info("%s accepted friend request %s from %s", receiver.username, nid, sender.username)
            return AcceptResult(
                msg="Notification accepted and cleared successfully, and friend added successfully",
                receiver=await user_service.to_response(db, receiver),
                sender=await user_service.to_response(db, sender),
                cleared_nid=nid,
                accept_notification=NotificationResponse.from_model(accept),
            )

        except FakeSOError:
            raise
        except Exception as e:
            logger.error("Database error accepting notification %s: %s", nid, str(e))
            raise DatabaseError(
                message="Error when accepting notification",
                context={"nid": str(nid), "error_type": type(e).__name__},
            )

    async def get_notification_by_id(self, db: AsyncSession, nid: UUID) -> NotificationResponse:
        """
        Raises:
            NotFoundError: no notification with this ID
        """
        try:
            notification = await db.get(Notification, nid)
        except Exception as e:
            logger.error("Database error fetching notification %s: %s", nid, str(e))
            raise DatabaseError(message="Error while fetching notification by id")

        if notification is None:
            raise NotFoundError(resource="notification", resource_id=str(nid))
        return NotificationResponse.from_model(notification)


notification_service = NotificationService()
