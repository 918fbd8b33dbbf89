"""
FakeSO Backend — User and Notification Schemas
================================================

What:  Request bodies, response models and real-time payloads for users,
       friendships and notifications.

Security:
    No response model carries the password or its hash. UserResponse is
    built field-by-field from the ORM object, never with from_attributes
    over the whole row.
"""

import uuid
from typing import List, Literal, Optional

from pydantic import Field

from fakeso.models.user import Notification, User
from fakeso.schemas.common import CamelModel

NotificationType = Literal["request", "accept"]


# ══════════════════════════════════════════════════════════════════════════
# Notifications
# ══════════════════════════════════════════════════════════════════════════


class NotificationInput(CamelModel):
    sender: Optional[str] = None
    receiver: Optional[str] = None
    type: Optional[str] = None


class NotificationResponse(CamelModel):
    id: uuid.UUID
    sender: str
    receiver: str
    type: NotificationType

    @classmethod
    def from_model(cls, notification: Notification) -> "NotificationResponse":
        return cls(
            id=notification.id,
            sender=notification.sender,
            receiver=notification.receiver,
            type=notification.type,
        )


# ══════════════════════════════════════════════════════════════════════════
# Users
# ══════════════════════════════════════════════════════════════════════════


class UserCreate(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    pronouns: Optional[str] = None
    image: Optional[str] = None


class UserUpdate(CamelModel):
    """Profile fields a user may change; omitted fields stay as they are."""
    name: Optional[str] = None
    email: Optional[str] = None
    pronouns: Optional[str] = None
    image: Optional[str] = None


class UserResponse(CamelModel):
    id: uuid.UUID
    username: str
    name: str
    email: str
    pronouns: str
    image: str
    friends: List[str]
    notifications: List[NotificationResponse]

    @classmethod
    def from_model(
        cls,
        user: User,
        notifications: List[Notification],
    ) -> "UserResponse":
        """
        Build the public view of a user.

        `notifications` are the resolved rows behind `user.notifications`,
        already in list order.
        """
        items = [NotificationResponse.from_model(n) for n in notifications]
        return cls(
            id=user.id,
            username=user.username,
            name=user.name,
            email=user.email,
            pronouns=user.pronouns,
            image=user.image,
            friends=list(user.friends),
            notifications=items,
        )


# ══════════════════════════════════════════════════════════════════════════
# Request bodies
# ══════════════════════════════════════════════════════════════════════════


class LoginRequest(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None


class UpdateUserRequest(CamelModel):
    username: str = Field(min_length=1)
    updated_user: UserUpdate


class ChangePasswordRequest(CamelModel):
    username: str = Field(min_length=1)
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class RemoveFriendRequest(CamelModel):
    username: str = Field(min_length=1)
    friend: str = Field(min_length=1)


class NotificationRequest(CamelModel):
    """Send a notification into the list of user `uid`."""
    uid: uuid.UUID
    noti: NotificationInput


class NotificationActionRequest(CamelModel):
    """Clear or accept notification `nid` held in user `uid`'s list."""
    uid: uuid.UUID
    nid: uuid.UUID


# ══════════════════════════════════════════════════════════════════════════
# Results and real-time payloads
# ══════════════════════════════════════════════════════════════════════════


class AuthResponse(CamelModel):
    success: bool
    message: str
    user: UserResponse


class UserFriendUpdatePayload(CamelModel):
    user: UserResponse
    friend: UserResponse


class UserNotificationUpdatePayload(CamelModel):
    user: UserResponse
    nid: uuid.UUID


class NotificationUpdatePayload(CamelModel):
    uid: uuid.UUID
    notification: NotificationResponse


class AcceptResult(CamelModel):
    """
    Everything an accepted friend request changed.

    receiver: the accepting user (request removed, sender added as friend)
    sender:   the original requester (receiver added as friend, got `accept`)
    """
    msg: str
    receiver: UserResponse
    sender: UserResponse
    cleared_nid: uuid.UUID
    accept_notification: NotificationResponse
