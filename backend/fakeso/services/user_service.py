"""
FakeSO Backend — User Service
===============================

What:  Registration, login, profile updates and the friend edge between users.
Why:   The friend list is symmetric and lives on both user rows; keeping the
       two-row mutations in one service guarantees both sides change together.
How:   Every method receives the request's AsyncSession. Nothing is committed
       here: get_db_session commits once the whole request has succeeded, so
       a failure after the first row was touched rolls back both rows.
Who:   Called by the user routes and by NotificationService.accept_notification.

Passwords:
    Stored as bcrypt hashes. Hashing runs in a worker thread because a
    cost-12 hash blocks for a noticeable fraction of a second. bcrypt only
    looks at the first 72 bytes of a password, so longer ones are rejected
    instead of being silently truncated.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

import bcrypt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fakeso.config import settings
from fakeso.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    FakeSOError,
    NotFoundError,
    ValidationError,
)
from fakeso.models.user import Notification, User
from fakeso.schemas.common import MessageResponse
from fakeso.schemas.user import AuthResponse, UserCreate, UserResponse, UserUpdate

logger = logging.getLogger(__name__)

MAX_PASSWORD_BYTES = 72


def _check_password_length(password: str) -> None:
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            message=f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
            field="password",
        )


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash or over-long password
        return False


class UserService:
    """
    Business logic for users and friendships.

    Responsibilities:
        - add_user() / login() / change_password() / update_user()
        - get_user_by_username(): user with notifications populated
        - add_friends() / remove_friends(): symmetric friend edge
    """

    async def _find_by_username(
        self,
        db: AsyncSession,
        username: str,
        for_update: bool = False,
    ) -> Optional[User]:
        stmt = select(User).where(User.username == username)
        if for_update:
            stmt = stmt.with_for_update()
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def _load_pair(
        self,
        db: AsyncSession,
        username_a: str,
        username_b: str,
    ) -> Tuple[Optional[User], Optional[User]]:
        """Both users locked FOR UPDATE in one statement."""
        result = await db.execute(
            select(User)
            .where(User.username.in_([username_a, username_b]))
            .with_for_update()
        )
        by_name: Dict[str, User] = {u.username: u for u in result.scalars().all()}
        return by_name.get(username_a), by_name.get(username_b)

    async def load_notifications(self, db: AsyncSession, ids: Iterable[str]) -> List[Notification]:
        """Resolve notification IDs, keeping the order of `ids` and skipping unknown ones."""
        ids = list(ids)
        if not ids:
            return []
        result = await db.execute(
            select(Notification).where(Notification.id.in_([UUID(nid) for nid in ids]))
        )
        by_id = {str(n.id): n for n in result.scalars().all()}
        return [by_id[nid] for nid in ids if nid in by_id]

    async def to_response(self, db: AsyncSession, user: User) -> UserResponse:
        """Public view of `user` with its notifications inline."""
        notifications = await self.load_notifications(db, user.notifications)
        return UserResponse.from_model(user, notifications=notifications)

    # ── Accounts ──────────────────────────────────────────────────────────

    async def add_user(self, db: AsyncSession, data: UserCreate) -> AuthResponse:
        """
        Register a new user.

        Raises:
            ValidationError: "Invalid user" when a required field is missing
            ConflictError: "Username already exists." / "Email is already in use."
            DatabaseError: the insert failed
        """
        if not (data.username and data.password and data.name and data.email and data.pronouns):
            raise ValidationError(message="Invalid user")
        _check_password_length(data.password)

        try:
            if await self._find_by_username(db, data.username) is not None:
                raise ConflictError(message="Username already exists.")
            by_email = await db.execute(select(User).where(User.email == data.email))
            if by_email.scalar_one_or_none() is not None:
                raise ConflictError(message="Email is already in use.")

            password_hash = await asyncio.to_thread(hash_password, data.password)
            user = User(
                username=data.username,
                password_hash=password_hash,
                name=data.name,
                email=data.email,
                pronouns=data.pronouns,
                image=data.image or "",
                friends=[],
                notifications=[],
            )
            db.add(user)
            await db.flush()

        except FakeSOError:
            raise
        except Exception as e:
            logger.error("Database error saving user %s: %s", data.username, str(e), exc_info=True)
            raise DatabaseError(
                message="Error when saving user",
                context={"error_type": type(e).__name__},
            )

        logger.info("User %s registered", user.username)
        return AuthResponse(
            success=True,
            message="User created successfully",
            user=UserResponse.from_model(user, notifications=[]),
        )

    async def login(self, db: AsyncSession, username: Optional[str], password: Optional[str]) -> AuthResponse:
        """
        Raises:
            ValidationError: username or password missing
            AuthenticationError: unknown user or wrong password
        """
        if not username or not password:
            raise ValidationError(message="Username and password are required")

        try:
            user = await self._find_by_username(db, username)
        except Exception as e:
            logger.error("Database error during login for %s: %s", username, str(e))
            raise DatabaseError(message="An error occurred during login")

        if user is None or not await asyncio.to_thread(verify_password, password, user.password_hash):
            logger.info("Failed login for %s", username)
            raise AuthenticationError()

        return AuthResponse(
            success=True,
            message="Login successful",
            user=await self.to_response(db, user),
        )

    async def change_password(
        self,
        db: AsyncSession,
        username: str,
        current_password: Optional[str],
        new_password: Optional[str],
    ) -> MessageResponse:
        """
        Raises:
            NotFoundError: "User not found"
            ValidationError: "Information is invalid" or the new password equals the old one
            AuthenticationError: "Old password is incorrect"
        """
        user = await self._find_by_username(db, username, for_update=True)
        if user is None:
            raise NotFoundError(resource="user", message="User not found")
        if not current_password or not new_password:
            raise ValidationError(message="Information is invalid")
        _check_password_length(new_password)

        if not await asyncio.to_thread(verify_password, current_password, user.password_hash):
            raise AuthenticationError(message="Old password is incorrect")
        if current_password == new_password:
            raise ValidationError(message="New password is the same as the old password", field="newPassword")

        try:
            user.password_hash = await asyncio.to_thread(hash_password, new_password)
            await db.flush()
        except Exception as e:
            logger.error("Database error changing password for %s: %s", username, str(e))
            raise DatabaseError(message="Error while changing password")

        logger.info("Password changed for %s", username)
        return MessageResponse(msg="Password changed successfully")

    async def update_user(self, db: AsyncSession, username: str, changes: UserUpdate) -> UserResponse:
        """
        Apply profile changes. Fields left out of `changes` keep their value.

        Raises:
            NotFoundError: "User not found"
            ValidationError: a name, email or pronouns value set to blank
            ConflictError: the new email belongs to someone else
        """
        fields = changes.model_dump(exclude_unset=True, exclude_none=True)
        for required in ("name", "email", "pronouns"):
            if required in fields and not fields[required]:
                raise ValidationError(message="Information is invalid", field=required)

        try:
            user = await self._find_by_username(db, username, for_update=True)
            if user is None:
                raise NotFoundError(resource="user", message="User not found")

            new_email = fields.get("email")
            if new_email and new_email != user.email:
                taken = await db.execute(select(User).where(User.email == new_email))
                if taken.scalar_one_or_none() is not None:
                    raise ConflictError(message="Email is already in use.")

            for key, value in fields.items():
                setattr(user, key, value)
            await db.flush()

            logger.info("User %s updated fields: %s", username, ", ".join(sorted(fields)) or "none")
            return await self.to_response(db, user)

        except FakeSOError:
            raise
        except Exception as e:
            logger.error("Database error updating user %s: %s", username, str(e))
            raise DatabaseError(message="Error while updating user")

    async def get_user_by_username(self, db: AsyncSession, username: str) -> UserResponse:
        """
        Raises:
            NotFoundError: no user with this username
        """
        try:
            user = await self._find_by_username(db, username)
            if user is None:
                raise NotFoundError(resource="user", message=f"User '{username}' was not found")
            return await self.to_response(db, user)
        except FakeSOError:
            raise
        except Exception as e:
            logger.error("Database error fetching user %s: %s", username, str(e))
            raise DatabaseError(message="Error while fetching user by username")

    # ── Friendship ────────────────────────────────────────────────────────

    async def add_friends(self, db: AsyncSession, username_a: str, username_b: str) -> Tuple[User, User]:
        """
        Make two users friends with each other.

        Raises:
            ConflictError: same user twice, or already friends
            NotFoundError: either user is missing
        """
        if username_a == username_b:
            raise ConflictError(message="Users cannot be friends with themselves")

        user_a, user_b = await self._load_pair(db, username_a, username_b)
        if user_a is None or user_b is None:
            raise NotFoundError(resource="user", message="One or both users not found")
        if username_b in user_a.friends or username_a in user_b.friends:
            raise ConflictError(message="Friendship already exists")

        user_a.friends = [*user_a.friends, username_b]
        user_b.friends = [*user_b.friends, username_a]
        await db.flush()

        logger.info("Friendship created: %s <-> %s", username_a, username_b)
        return user_a, user_b

    async def remove_friends(self, db: AsyncSession, username: str, friend: str) -> Tuple[User, User]:
        """
        Drop the friend edge in both directions.

        Removing a friendship that does not exist is not an error: both
        lists simply stay as they are.

        Raises:
            NotFoundError: either user is missing
        """
        try:
            user, other = await self._load_pair(db, username, friend)
            if user is None:
                raise NotFoundError(resource="user", message="User not found")
            if other is None:
                raise NotFoundError(resource="user", message="Friend not found")

            user.friends = [name for name in user.friends if name != friend]
            other.friends = [name for name in other.friends if name != username]
            await db.flush()

        except FakeSOError:
            raise
        except Exception as e:
            logger.error("Database error removing friend %s from %s: %s", friend, username, str(e))
            raise DatabaseError(message="Error when removing friend")

        logger.info("Friendship removed: %s <-> %s", username, friend)
        return user, other


user_service = UserService()
