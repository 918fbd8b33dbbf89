"""
FakeSO Backend — User Route Handlers
======================================

What:  /user/* endpoints: register, log in, profile, password, unfriend.

Real-time events published here:
    userUpdate    after registration and profile changes
    removeFriend  twice per unfriend, once from each user's point of view
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fakeso.database import get_db_session
from fakeso.schemas.common import ErrorResponse, MessageResponse
from fakeso.schemas.user import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    RemoveFriendRequest,
    UpdateUserRequest,
    UserCreate,
    UserFriendUpdatePayload,
    UserResponse,
)
from fakeso.services.event_bus import REMOVE_FRIEND, USER_UPDATE, event_bus
from fakeso.services.user_service import user_service

router = APIRouter(prefix="/user", tags=["Users"])


@router.post(
    "/addUser",
    response_model=AuthResponse,
    responses={
        400: {"description": "Invalid user", "model": ErrorResponse},
        409: {"description": "Username or email taken", "model": ErrorResponse},
    },
    summary="Register a new user",
)
async def add_user(
    body: UserCreate,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    result = await user_service.add_user(db, body)
    await event_bus.publish(USER_UPDATE, result.user)
    return result


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        400: {"description": "Username or password missing", "model": ErrorResponse},
        401: {"description": "Invalid username or password", "model": ErrorResponse},
    },
    summary="Check credentials and return the user",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await user_service.login(db, body.username, body.password)


@router.put(
    "/updateUser",
    response_model=UserResponse,
    responses={
        404: {"description": "User not found", "model": ErrorResponse},
        409: {"description": "Email already in use", "model": ErrorResponse},
    },
    summary="Update profile fields",
)
async def update_user(
    body: UpdateUserRequest,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    user = await user_service.update_user(db, body.username, body.updated_user)
    await event_bus.publish(USER_UPDATE, user)
    return user


@router.post(
    "/changePassword",
    response_model=MessageResponse,
    responses={
        400: {"description": "Information is invalid", "model": ErrorResponse},
        401: {"description": "Old password is incorrect", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Change a user's password",
)
async def change_password(
    body: ChangePasswordRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await user_service.change_password(
        db, body.username, body.current_password, body.new_password,
    )


@router.post(
    "/removeFriend",
    response_model=MessageResponse,
    responses={404: {"description": "User or friend not found", "model": ErrorResponse}},
    summary="Remove a friendship in both directions",
)
async def remove_friend(
    body: RemoveFriendRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    user, friend = await user_service.remove_friends(db, body.username, body.friend)
    user_view = await user_service.to_response(db, user)
    friend_view = await user_service.to_response(db, friend)
    await event_bus.publish(REMOVE_FRIEND, UserFriendUpdatePayload(user=user_view, friend=friend_view))
    await event_bus.publish(REMOVE_FRIEND, UserFriendUpdatePayload(user=friend_view, friend=user_view))
    return MessageResponse(msg="Friend removed successfully")


@router.get(
    "/getUserByUsername/{username}",
    response_model=UserResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Fetch a user with notifications populated",
)
async def get_user_by_username(
    username: str,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await user_service.get_user_by_username(db, username)
