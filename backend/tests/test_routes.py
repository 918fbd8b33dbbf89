"""
FakeSO Backend — API Route Tests
==================================

What:  End-to-end HTTP tests through the FastAPI app.
How:   httpx.AsyncClient over ASGITransport; every request gets its own
       session on the in-memory test database (see conftest.test_client).

What we test:
    ✅ camelCase request and response bodies
    ✅ Status codes and the {"error", "message", "details", "request_id"} body
    ✅ The friend-request lifecycle over HTTP
    ✅ Health check and the WebSocket capacity guard
"""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from fakeso.services.event_bus import event_bus
from fakeso.services.user_service import user_service

ASKED = "2024-11-01T12:00:00Z"


async def register(client, username):
    response = await client.post(
        "/user/addUser",
        json={
            "username": username,
            "password": f"{username}-pw",
            "name": username.title(),
            "email": f"{username}@example.com",
            "pronouns": "they/them",
            "image": "",
        },
    )
    assert response.status_code == 200, response.text
    return response.json()["user"]


async def ask(client, title="How do I X?", tags=("python",), asked_by="joe", public=True):
    response = await client.post(
        "/question/addQuestion",
        json={
            "title": title,
            "text": "Details about X",
            "tags": [{"name": t} for t in tags],
            "askedBy": asked_by,
            "askDateTime": ASKED,
            "public": public,
        },
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["subscribers"] == event_bus.subscriber_count

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"


class TestQuestionRoutes:

    @pytest.mark.asyncio
    async def test_add_and_list(self, test_client):
        created = await ask(test_client, tags=("python", "asyncio"))
        assert created["askedBy"] == "joe"
        assert [t["name"] for t in created["tags"]] == ["python", "asyncio"]
        assert created["upVotes"] == []

        response = await test_client.get("/question/getQuestion", params={"order": "newest"})
        assert response.status_code == 200
        assert [q["id"] for q in response.json()] == [created["id"]]

    @pytest.mark.asyncio
    async def test_search_by_tag(self, test_client):
        await ask(test_client, title="python one", tags=("python",))
        await ask(test_client, title="rust one", tags=("rust",))
        response = await test_client.get("/question/getQuestion", params={"search": "[rust]"})
        assert [q["title"] for q in response.json()] == ["rust one"]

    @pytest.mark.asyncio
    async def test_invalid_question(self, test_client):
        response = await test_client.post("/question/addQuestion", json={"title": "only a title"})
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["message"] == "Invalid question"
        assert "request_id" in body

    @pytest.mark.asyncio
    async def test_unknown_order(self, test_client):
        await ask(test_client)
        response = await test_client.get("/question/getQuestion", params={"order": "oldest"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_order_on_empty_database(self, test_client):
        response = await test_client.get("/question/getQuestion", params={"order": "oldest"})
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_blank_tag_is_invalid_question(self, test_client):
        response = await test_client.post(
            "/question/addQuestion",
            json={
                "title": "t", "text": "x", "tags": [{"name": "  "}],
                "askedBy": "joe", "askDateTime": ASKED,
            },
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid question"

    @pytest.mark.asyncio
    async def test_open_question_records_view(self, test_client):
        created = await ask(test_client)
        response = await test_client.get(
            f"/question/getQuestionById/{created['id']}", params={"username": "mike"},
        )
        assert response.status_code == 200
        assert response.json()["views"] == ["mike"]

    @pytest.mark.asyncio
    async def test_open_missing_question(self, test_client):
        response = await test_client.get(
            "/question/getQuestionById/00000000-0000-0000-0000-000000000000",
        )
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_vote_toggle(self, test_client):
        created = await ask(test_client)
        body = {"qid": created["id"], "username": "mike"}

        first = await test_client.post("/question/upvoteQuestion", json=body)
        assert first.json() == {
            "msg": "Question upvoted successfully", "upVotes": ["mike"], "downVotes": [],
        }

        second = await test_client.post("/question/downvoteQuestion", json=body)
        assert second.json()["upVotes"] == []
        assert second.json()["downVotes"] == ["mike"]

    @pytest.mark.asyncio
    async def test_private_question_hidden(self, test_client):
        await register(test_client, "joe")
        await register(test_client, "sam")
        await ask(test_client, title="secret", public=False)

        as_sam = await test_client.get("/question/getQuestion", params={"viewer": "sam"})
        as_joe = await test_client.get("/question/getQuestion", params={"viewer": "joe"})
        assert as_sam.json() == []
        assert [q["title"] for q in as_joe.json()] == ["secret"]


class TestAnswerCommentRoutes:

    @pytest.mark.asyncio
    async def test_answer_then_comment(self, test_client):
        created = await ask(test_client)
        answer = await test_client.post(
            "/answer/addAnswer",
            json={"qid": created["id"], "ans": {"text": "Try Y", "ansBy": "mike", "ansDateTime": ASKED}},
        )
        assert answer.status_code == 200
        answer_id = answer.json()["id"]

        comment = await test_client.post(
            "/comment/addComment",
            json={
                "id": answer_id,
                "type": "answer",
                "comment": {"text": "Worked!", "commentBy": "joe", "commentDateTime": ASKED},
            },
        )
        assert comment.status_code == 200
        assert comment.json()["text"] == "Worked!"

        question = await test_client.get(f"/question/getQuestionById/{created['id']}")
        answers = question.json()["answers"]
        assert answers[0]["kind"] == "inline"
        assert [c["text"] for c in answers[0]["comments"]] == ["Worked!"]

    @pytest.mark.asyncio
    async def test_listing_sends_answers_by_reference(self, test_client):
        created = await ask(test_client)
        answer = await test_client.post(
            "/answer/addAnswer",
            json={"qid": created["id"], "ans": {"text": "Try Y", "ansBy": "mike", "ansDateTime": ASKED}},
        )
        await test_client.post(
            "/comment/addComment",
            json={
                "id": created["id"],
                "type": "question",
                "comment": {"text": "Which X?", "commentBy": "sam", "commentDateTime": ASKED},
            },
        )

        listed = (await test_client.get("/question/getQuestion")).json()[0]
        assert listed["answers"] == [{"kind": "ref", "id": answer.json()["id"]}]
        assert [c["kind"] for c in listed["comments"]] == ["ref"]
        assert set(listed["comments"][0]) == {"kind", "id"}

    @pytest.mark.asyncio
    async def test_invalid_answer(self, test_client):
        created = await ask(test_client)
        response = await test_client.post(
            "/answer/addAnswer", json={"qid": created["id"], "ans": {"text": "no author"}},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid answer"


class TestTagRoutes:

    @pytest.mark.asyncio
    async def test_tag_counts_and_lookup(self, test_client):
        await ask(test_client, tags=("python", "asyncio"))
        await ask(test_client, tags=("python",))

        counts = await test_client.get("/tag/getTagsWithQuestionNumber")
        assert {c["name"]: c["qcnt"] for c in counts.json()} == {"asyncio": 1, "python": 2}

        found = await test_client.get("/tag/getTagByName/PYTHON")
        assert found.status_code == 200
        assert found.json()["name"] == "python"

        missing = await test_client.get("/tag/getTagByName/cobol")
        assert missing.status_code == 404


class TestUserRoutes:

    @pytest.mark.asyncio
    async def test_register_and_login(self, test_client):
        await register(test_client, "joe")

        ok = await test_client.post("/user/login", json={"username": "joe", "password": "joe-pw"})
        assert ok.status_code == 200
        assert ok.json()["user"]["username"] == "joe"

        bad = await test_client.post("/user/login", json={"username": "joe", "password": "nope"})
        assert bad.status_code == 401
        assert bad.json()["message"] == "Invalid username or password"

    @pytest.mark.asyncio
    async def test_duplicate_username(self, test_client):
        await register(test_client, "joe")
        response = await test_client.post(
            "/user/addUser",
            json={
                "username": "joe", "password": "x", "name": "J",
                "email": "different@example.com", "pronouns": "he/him",
            },
        )
        assert response.status_code == 409
        assert response.json()["message"] == "Username already exists."

    @pytest.mark.asyncio
    async def test_update_and_change_password(self, test_client):
        await register(test_client, "joe")

        updated = await test_client.put(
            "/user/updateUser", json={"username": "joe", "updatedUser": {"name": "Joseph"}},
        )
        assert updated.json()["name"] == "Joseph"

        changed = await test_client.post(
            "/user/changePassword",
            json={"username": "joe", "currentPassword": "joe-pw", "newPassword": "fresh-pw"},
        )
        assert changed.json() == {"msg": "Password changed successfully"}

        relogin = await test_client.post("/user/login", json={"username": "joe", "password": "fresh-pw"})
        assert relogin.status_code == 200


class TestFriendRequestFlow:

    @pytest.mark.asyncio
    async def test_request_accept_remove(self, test_client):
        joe = await register(test_client, "joe")
        mike = await register(test_client, "mike")

        sent = await test_client.post(
            "/notification/addNotification",
            json={"uid": mike["id"], "noti": {"sender": "joe", "receiver": "mike", "type": "request"}},
        )
        assert sent.status_code == 200
        nid = sent.json()["id"]

        duplicate = await test_client.post(
            "/notification/addNotification",
            json={"uid": mike["id"], "noti": {"sender": "joe", "receiver": "mike", "type": "request"}},
        )
        assert duplicate.status_code == 409

        mike_view = (await test_client.get("/user/getUserByUsername/mike")).json()
        assert [n["id"] for n in mike_view["notifications"]] == [nid]

        accepted = await test_client.post(
            "/notification/acceptNotification", json={"uid": mike["id"], "nid": nid},
        )
        assert accepted.status_code == 200

        joe_view = (await test_client.get("/user/getUserByUsername/joe")).json()
        mike_view = (await test_client.get("/user/getUserByUsername/mike")).json()
        assert joe_view["friends"] == ["mike"]
        assert mike_view["friends"] == ["joe"]
        assert mike_view["notifications"] == []
        assert joe_view["notifications"][0]["type"] == "accept"

        again = await test_client.post(
            "/notification/acceptNotification", json={"uid": mike["id"], "nid": nid},
        )
        assert again.status_code == 404

        removed = await test_client.post("/user/removeFriend", json={"username": "joe", "friend": "mike"})
        assert removed.json() == {"msg": "Friend removed successfully"}
        joe_view = (await test_client.get("/user/getUserByUsername/joe")).json()
        assert joe_view["friends"] == []
        assert joe["id"] == joe_view["id"]

    @pytest.mark.asyncio
    async def test_failed_accept_rolls_back_both_users(self, test_client, monkeypatch):
        """A failure after the friend edge is written undoes it on both sides."""
        await register(test_client, "joe")
        mike = await register(test_client, "mike")
        sent = await test_client.post(
            "/notification/addNotification",
            json={"uid": mike["id"], "noti": {"sender": "joe", "receiver": "mike", "type": "request"}},
        )
        nid = sent.json()["id"]

        async def fail(db, user):
            raise RuntimeError("connection lost")

        with monkeypatch.context() as patch:
            patch.setattr(user_service, "to_response", fail)
            accepted = await test_client.post(
                "/notification/acceptNotification", json={"uid": mike["id"], "nid": nid},
            )
        assert accepted.status_code == 500
        assert accepted.json()["error"] == "server_error"

        joe_view = (await test_client.get("/user/getUserByUsername/joe")).json()
        mike_view = (await test_client.get("/user/getUserByUsername/mike")).json()
        assert joe_view["friends"] == []
        assert mike_view["friends"] == []
        assert joe_view["notifications"] == []
        assert [n["id"] for n in mike_view["notifications"]] == [nid]

    @pytest.mark.asyncio
    async def test_decline(self, test_client):
        await register(test_client, "joe")
        mike = await register(test_client, "mike")
        sent = await test_client.post(
            "/notification/addNotification",
            json={"uid": mike["id"], "noti": {"sender": "joe", "receiver": "mike", "type": "request"}},
        )
        nid = sent.json()["id"]

        cleared = await test_client.post(
            "/notification/clearNotification", json={"uid": mike["id"], "nid": nid},
        )
        assert cleared.json() == {"msg": "Notification cleared successfully"}

        fetched = await test_client.get(f"/notification/getNotificationById/{nid}")
        assert fetched.status_code == 200
        assert fetched.json()["sender"] == "joe"


def test_websocket_rejected_at_capacity(monkeypatch):
    """A full bus accepts the socket, then closes it with 4029."""
    from fakeso.main import app

    monkeypatch.setattr(event_bus, "max_subscribers", 0)
    client = TestClient(app)
    with client.websocket_connect("/ws/events") as ws:
        with pytest.raises(WebSocketDisconnect) as exc_info:
            ws.receive_text()
    assert exc_info.value.code == 4029
