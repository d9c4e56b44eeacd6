import time

import pytest
from itsdangerous import TimestampSigner

from taskflow.core.config import get_settings
from taskflow.core.tokens import Identity, extract_bearer, issue_token, verify_token
from taskflow.services.authz import can_manage_room, require_workspace_member, workspace_role
from taskflow.models import ChatRoom, User

PROTECTED = [
    ("GET", "/workspaces?"),
    ("POST", "/workspaces"),
    ("GET", "/projects?workspaceId=1"),
    ("POST", "/projects"),
    ("GET", "/milestones?workspaceId=1"),
    ("PATCH", "/milestones"),
    ("DELETE", "/milestones"),
    ("GET", "/tasks?workspaceId=1"),
    ("GET", "/chat-rooms?workspaceId=1"),
    ("POST", "/chat-rooms"),
    ("GET", "/chat-room-members?roomId=999"),
    ("POST", "/chat-room-members"),
    ("GET", "/messages?roomId=999"),
    ("POST", "/messages"),
    ("GET", "/workspace-members?workspaceId=1"),
    ("POST", "/workspace-members"),
    ("GET", "/users/search?workspaceId=1&q=ab"),
    ("GET", "/users/profile"),
    ("PATCH", "/users/profile"),
    ("GET", "/admin/employees"),
    ("POST", "/admin/employees"),
    ("GET", "/dashboard/stats?workspaceId=1"),
]


@pytest.mark.parametrize("method,url", PROTECTED)
def test_protected_endpoints_require_bearer_token(client, method, url):
    missing = client.request(method, url, json={})
    assert missing.status_code == 401
    assert missing.json() == {"error": "Unauthorized"}

    malformed = client.request(method, url, json={}, headers={"Authorization": "Token abc"})
    assert malformed.status_code == 401

    forged = client.request(method, url, json={}, headers={"Authorization": "Bearer not-a-real-token"})
    assert forged.status_code == 401
    assert forged.json() == {"error": "Invalid token"}


def test_bearer_parsing_and_verification():
    assert extract_bearer(None) is None
    assert extract_bearer("Basic xyz") is None
    assert extract_bearer("Bearer ") is None
    assert extract_bearer("Bearer abc") == "abc"
    assert verify_token("garbage") is None


def test_expired_token_is_rejected(client, db, seed, monkeypatch):
    user = db.query(User).filter(User.id == seed["user_ids"]["member"]).one()
    issued_at = int(time.time()) - get_settings().token_max_age_seconds - 60
    monkeypatch.setattr(TimestampSigner, "get_timestamp", lambda self: issued_at)
    stale = issue_token(user)
    monkeypatch.undo()

    assert verify_token(stale) is None
    response = client.get("/users/profile", headers={"Authorization": f"Bearer {stale}"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid token"}

    fresh = client.get("/users/profile", headers={"Authorization": f"Bearer {issue_token(user)}"})
    assert fresh.status_code == 200


def test_workspace_admin_is_not_application_admin(client, auth):
    # "owner" is an application employee who administers Acme HQ
    response = client.get("/admin/employees", headers=auth("owner"))
    assert response.status_code == 403
    assert response.json() == {"error": "Admin access required"}


def test_application_manager_without_membership_is_rejected(client, auth, seed):
    response = client.get(f"/workspace-members?workspaceId={seed['workspace_id']}", headers=auth("outsider"))
    assert response.status_code == 403
    assert response.json() == {"error": "Not a member of this workspace"}


def test_application_admin_bypasses_workspace_roles(client, auth, seed):
    response = client.get(f"/workspace-members?workspaceId={seed['workspace_id']}", headers=auth("sysadmin"))
    assert response.status_code == 200


def test_missing_workspace_is_not_found_before_role_check(client, auth):
    response = client.get("/projects?workspaceId=9999", headers=auth("outsider"))
    assert response.status_code == 404
    assert response.json() == {"error": "Workspace not found"}


def test_resolver_predicates(db, seed):
    ids = seed["user_ids"]
    ws = seed["workspace_id"]
    member = Identity(id=ids["member"], email="member@acme.io", role="employee")
    manager = Identity(id=ids["manager"], email="manager@acme.io", role="employee")

    assert workspace_role(db, ws, ids["viewer"]) == "viewer"
    assert workspace_role(db, ws, ids["outsider"]) is None
    assert require_workspace_member(db, manager, ws, roles={"admin", "manager"}) == "manager"

    room = ChatRoom(workspace_id=ws, name="general", type="channel", created_by=ids["member"])
    db.add(room)
    db.commit()
    assert can_manage_room(db, member, room)
    assert can_manage_room(db, manager, room)
    viewer = Identity(id=ids["viewer"], email="viewer@acme.io", role="employee")
    assert not can_manage_room(db, viewer, room)
