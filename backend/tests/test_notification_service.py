"""
FakeSO Backend — Notification Service Tests
=============================================

What:  Tests for the friend-request state machine.

What we test:
    ✅ Full lifecycle: request joe→mike, mike accepts, both are friends,
       the request leaves mike's list and an `accept` lands in joe's
    ✅ Decline (clear) removes the request and creates no friend edge
    ✅ Guards: self request, existing friendship, duplicate pending request,
       a request while the other user's request is pending,
       receiver mismatch, accepting something that is not a request
    ✅ A failing accept leaves neither user changed
"""

from uuid import uuid4

import pytest

from fakeso.exceptions import ConflictError, NotFoundError, ValidationError
from fakeso.schemas.user import NotificationInput
from fakeso.services.notification_service import NotificationService
from fakeso.services.user_service import user_service


def friend_request(sender, receiver):
    return NotificationInput(sender=sender, receiver=receiver, type="request")


class TestLifecycle:

    def setup_method(self):
        self.service = NotificationService()

    @pytest.mark.asyncio
    async def test_request_then_accept(self, db_session, make_user):
        joe = await make_user("joe")
        mike = await make_user("mike")

        request = await self.service.add_notification(db_session, mike.id, friend_request("joe", "mike"))
        assert mike.notifications == [str(request.id)]
        assert joe.notifications == []

        result = await self.service.accept_notification(db_session, mike.id, request.id)

        assert joe.friends == ["mike"]
        assert mike.friends == ["joe"]
        assert mike.notifications == []
        assert len(joe.notifications) == 1

        accept = result.accept_notification
        assert (accept.sender, accept.receiver, accept.type) == ("mike", "joe", "accept")
        assert joe.notifications == [str(accept.id)]
        assert result.cleared_nid == request.id
        assert result.receiver.username == "mike"
        assert result.sender.username == "joe"
        assert [n.id for n in result.sender.notifications] == [accept.id]

    @pytest.mark.asyncio
    async def test_decline(self, db_session, make_user):
        await make_user("joe")
        mike = await make_user("mike")
        request = await self.service.add_notification(db_session, mike.id, friend_request("joe", "mike"))

        user = await self.service.clear_notification(db_session, mike.id, request.id)

        assert user.notifications == []
        assert mike.friends == []

    @pytest.mark.asyncio
    async def test_request_row_survives_clear(self, db_session, make_user):
        """Clearing only drops the ID from the list; the row is still readable."""
        await make_user("joe")
        mike = await make_user("mike")
        request = await self.service.add_notification(db_session, mike.id, friend_request("joe", "mike"))
        await self.service.clear_notification(db_session, mike.id, request.id)

        fetched = await self.service.get_notification_by_id(db_session, request.id)
        assert fetched == request


class TestAddNotificationGuards:

    def setup_method(self):
        self.service = NotificationService()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "data",
        [
            NotificationInput(receiver="mike", type="request"),
            NotificationInput(sender="joe", type="request"),
            NotificationInput(sender="joe", receiver="mike", type="poke"),
        ],
    )
    async def test_invalid_notification(self, mock_db_session, data):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.add_notification(mock_db_session, uuid4(), data)
        assert exc_info.value.message == "Invalid notification"

    @pytest.mark.asyncio
    async def test_unknown_receiver(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.add_notification(db_session, uuid4(), friend_request("joe", "mike"))

    @pytest.mark.asyncio
    async def test_receiver_mismatch(self, db_session, make_user):
        await make_user("joe")
        mike = await make_user("mike")
        with pytest.raises(ValidationError):
            await self.service.add_notification(db_session, mike.id, friend_request("joe", "sam"))

    @pytest.mark.asyncio
    async def test_self_request(self, db_session, make_user):
        joe = await make_user("joe")
        with pytest.raises(ConflictError) as exc_info:
            await self.service.add_notification(db_session, joe.id, friend_request("joe", "joe"))
        assert exc_info.value.message == "Users cannot be friends with themselves"

    @pytest.mark.asyncio
    async def test_unknown_sender(self, db_session, make_user):
        mike = await make_user("mike")
        with pytest.raises(NotFoundError):
            await self.service.add_notification(db_session, mike.id, friend_request("ghost", "mike"))

    @pytest.mark.asyncio
    async def test_already_friends(self, db_session, make_user):
        await make_user("joe", friends=["mike"])
        mike = await make_user("mike", friends=["joe"])
        with pytest.raises(ConflictError) as exc_info:
            await self.service.add_notification(db_session, mike.id, friend_request("joe", "mike"))
        assert exc_info.value.message == "Friendship already exists"

    @pytest.mark.asyncio
    async def test_duplicate_pending_request(self, db_session, make_user):
        await make_user("joe")
        mike = await make_user("mike")
        await self.service.add_notification(db_session, mike.id, friend_request("joe", "mike"))
        with pytest.raises(ConflictError):
            await self.service.add_notification(db_session, mike.id, friend_request("joe", "mike"))
        assert len(mike.notifications) == 1

    @pytest.mark.asyncio
    async def test_request_back_while_one_is_pending(self, db_session, make_user):
        """mike cannot answer joe's pending request with a request of their own."""
        joe = await make_user("joe")
        mike = await make_user("mike")
        request = await self.service.add_notification(db_session, mike.id, friend_request("joe", "mike"))

        with pytest.raises(ConflictError) as exc_info:
            await self.service.add_notification(db_session, joe.id, friend_request("mike", "joe"))
        assert exc_info.value.message == "joe already sent you a friend request"
        assert joe.notifications == []

        await self.service.accept_notification(db_session, mike.id, request.id)
        assert joe.friends == ["mike"]
        pending = await user_service.load_notifications(db_session, joe.notifications)
        assert [(n.type, n.sender) for n in pending] == [("accept", "mike")]


class TestAcceptGuards:

    def setup_method(self):
        self.service = NotificationService()

    @pytest.mark.asyncio
    async def test_nid_not_in_list(self, db_session, make_user):
        mike = await make_user("mike")
        with pytest.raises(NotFoundError):
            await self.service.accept_notification(db_session, mike.id, uuid4())

    @pytest.mark.asyncio
    async def test_accepting_an_accept_is_rejected(self, db_session, make_user):
        joe = await make_user("joe")
        mike = await make_user("mike")
        request = await self.service.add_notification(db_session, mike.id, friend_request("joe", "mike"))
        result = await self.service.accept_notification(db_session, mike.id, request.id)

        with pytest.raises(ValidationError):
            await self.service.accept_notification(db_session, joe.id, result.accept_notification.id)

    @pytest.mark.asyncio
    async def test_sender_deleted_leaves_receiver_untouched(self, db_session, make_user):
        """A failing accept must not clear the request or add a one-sided edge."""
        joe = await make_user("joe")
        mike = await make_user("mike")
        request = await self.service.add_notification(db_session, mike.id, friend_request("joe", "mike"))
        await db_session.delete(joe)
        await db_session.flush()

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.accept_notification(db_session, mike.id, request.id)
        assert exc_info.value.message == "One or both users not found"
        assert mike.notifications == [str(request.id)]
        assert mike.friends == []

    @pytest.mark.asyncio
    async def test_clear_unknown_nid(self, db_session, make_user):
        mike = await make_user("mike")
        with pytest.raises(NotFoundError):
            await self.service.clear_notification(db_session, mike.id, uuid4())

    @pytest.mark.asyncio
    async def test_get_missing_notification(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_notification_by_id(db_session, uuid4())
