import pytest

from taskflow.models import ChatRoom, ChatRoomMember, Message


@pytest.fixture()
def room_id(client, auth, seed):
    response = client.post(
        "/chat-rooms",
        json={
            "workspace_id": seed["workspace_id"],
            "name": "general",
            "type": "channel",
            "member_ids": [seed["user_ids"]["viewer"]],
        },
        headers=auth("member"),
    )
    assert response.status_code == 201
    return response.json()["roomId"]


def _room_user_ids(db, room_id):
    db.expire_all()
    return {m.user_id for m in db.query(ChatRoomMember).filter(ChatRoomMember.room_id == room_id)}


def test_create_room_enrols_creator_and_members(client, auth, seed, room_id, db):
    assert _room_user_ids(db, room_id) == {seed["user_ids"]["member"], seed["user_ids"]["viewer"]}

    listing = client.get(f"/chat-rooms?workspaceId={seed['workspace_id']}", headers=auth("viewer"))
    assert [r["name"] for r in listing.json()] == ["general"]
    assert client.get(f"/chat-rooms?workspaceId={seed['workspace_id']}", headers=auth("manager")).json() == []


def test_create_room_with_non_member_is_rolled_back(client, auth, seed, db):
    response = client.post(
        "/chat-rooms",
        json={
            "workspace_id": seed["workspace_id"],
            "name": "leaky",
            "type": "group",
            "member_ids": [seed["user_ids"]["viewer"], seed["user_ids"]["outsider"]],
        },
        headers=auth("member"),
    )
    assert response.status_code == 400
    assert response.json() == {"error": "User is not a member of this workspace"}
    assert db.query(ChatRoom).count() == 0
    assert db.query(ChatRoomMember).count() == 0


def test_create_room_rejects_unknown_type(client, auth, seed):
    response = client.post(
        "/chat-rooms",
        json={"workspace_id": seed["workspace_id"], "name": "odd", "type": "forum"},
        headers=auth("member"),
    )
    assert response.status_code == 400


def test_room_creator_adds_member_idempotently(client, auth, seed, room_id, db):
    body = {"room_id": room_id, "user_id": seed["user_ids"]["owner"]}
    first = client.post("/chat-room-members", json=body, headers=auth("member"))
    assert first.status_code == 201
    assert first.json() == {"message": "Member added to room"}

    second = client.post("/chat-room-members", json=body, headers=auth("member"))
    assert second.status_code == 201

    db.expire_all()
    count = (
        db.query(ChatRoomMember)
        .filter(ChatRoomMember.room_id == room_id, ChatRoomMember.user_id == seed["user_ids"]["owner"])
        .count()
    )
    assert count == 1


def test_only_creator_or_manager_manages_members(client, auth, seed, room_id, db):
    body = {"room_id": room_id, "user_id": seed["user_ids"]["owner"]}
    denied = client.post("/chat-room-members", json=body, headers=auth("viewer"))
    assert denied.status_code == 403

    allowed = client.post("/chat-room-members", json=body, headers=auth("manager"))
    assert allowed.status_code == 201

    outsider = client.post(
        "/chat-room-members",
        json={"room_id": room_id, "user_id": seed["user_ids"]["outsider"]},
        headers=auth("manager"),
    )
    assert outsider.status_code == 400

    removed = client.request(
        "DELETE",
        "/chat-room-members",
        json={"room_id": room_id, "user_id": seed["user_ids"]["viewer"]},
        headers=auth("owner"),
    )
    assert removed.status_code == 200
    assert removed.json() == {"message": "Member removed from room"}
    assert _room_user_ids(db, room_id) == {seed["user_ids"]["member"], seed["user_ids"]["owner"]}


def test_list_room_members(client, auth, seed, room_id):
    response = client.get(f"/chat-room-members?roomId={room_id}", headers=auth("viewer"))
    assert response.status_code == 200
    assert [m["email"] for m in response.json()] == ["member@acme.io", "viewer@acme.io"]

    assert client.get(f"/chat-room-members?roomId={room_id}", headers=auth("owner")).status_code == 403
    assert client.get("/chat-room-members?roomId=9999", headers=auth("owner")).status_code == 404


def test_messages_come_back_oldest_first(client, auth, seed, room_id):
    for i in range(5):
        who = "member" if i % 2 == 0 else "viewer"
        response = client.post("/messages", json={"room_id": room_id, "content": f"msg {i}"}, headers=auth(who))
        assert response.status_code == 201
        assert response.json()["message"] == "Message sent successfully"
        assert response.json()["data"]["content"] == f"msg {i}"

    listing = client.get(f"/messages?roomId={room_id}", headers=auth("member"))
    assert listing.status_code == 200
    messages = listing.json()
    assert [m["content"] for m in messages] == [f"msg {i}" for i in range(5)]
    assert messages[1]["first_name"] == "Viewer"
    assert messages[0]["message_type"] == "text"

    latest = client.get(f"/messages?roomId={room_id}&limit=2", headers=auth("member")).json()
    assert [m["content"] for m in latest] == ["msg 3", "msg 4"]

    older = client.get(f"/messages?roomId={room_id}&limit=2&offset=2", headers=auth("member")).json()
    assert [m["content"] for m in older] == ["msg 1", "msg 2"]


def test_non_room_member_cannot_post(client, auth, seed, room_id, db):
    response = client.post("/messages", json={"room_id": room_id, "content": "hello"}, headers=auth("owner"))
    assert response.status_code == 403
    assert response.json() == {"error": "Not a member of this room"}
    assert db.query(Message).count() == 0

    reading = client.get(f"/messages?roomId={room_id}", headers=auth("owner"))
    assert reading.status_code == 403


def test_message_to_unknown_room(client, auth):
    response = client.post("/messages", json={"room_id": 9999, "content": "hello"}, headers=auth("member"))
    assert response.status_code == 404
    assert response.json() == {"error": "Room not found"}


def test_empty_message_is_rejected(client, auth, room_id):
    response = client.post("/messages", json={"room_id": room_id, "content": ""}, headers=auth("member"))
    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields: content"}
