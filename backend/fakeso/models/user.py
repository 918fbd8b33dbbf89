"""
FakeSO Backend — User and Notification Models
===============================================

What:  ORM models for users and the notifications exchanged between them.
Who:   Used by the user and notification services.

Social Graph Storage:
    There is no separate graph table. Each user row carries:
    - friends:        JSON array of usernames (symmetric: A lists B iff B lists A)
    - notifications:  JSON array of notification IDs (as strings), in arrival order

    Both arrays are replaced wholesale on every change. Notification rows
    themselves are immutable; "clearing" a notification only drops its ID
    from the owner's list.
"""

import uuid
from typing import List

from sqlalchemy import JSON, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from fakeso.database import Base


class User(Base):
    """A registered user. `password_hash` is a bcrypt hash, never serialized."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    pronouns: Mapped[str] = mapped_column(String(50), nullable=False)
    # Pre-resolved object-store URL; the backend never touches the bytes
    image: Mapped[str] = mapped_column(String(1024), nullable=False)
    friends: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    notifications: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<User(username='{self.username}')>"


class Notification(Base):
    """
    A directed message between two users.

    type:
        'request': sender asks receiver to become friends
        'accept':  sender (the former receiver) accepted a request
    """

    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    sender: Mapped[str] = mapped_column(String(100), nullable=False)
    receiver: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)

    def __repr__(self) -> str:
        return f"<Notification({self.type}: {self.sender} -> {self.receiver})>"
