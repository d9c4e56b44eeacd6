import pytest

from taskflow.models import ActivityLog, Milestone


@pytest.fixture()
def project_id(client, auth, seed):
    response = client.post(
        "/projects",
        json={"workspace_id": seed["workspace_id"], "name": "Website"},
        headers=auth("manager"),
    )
    return response.json()["projectId"]


def _create_milestone(client, auth, seed, project_id, who="manager", **extra):
    body = {
        "workspace_id": seed["workspace_id"],
        "project_id": project_id,
        "title": "Beta",
        "due_date": "2030-01-01",
        **extra,
    }
    return client.post("/milestones", json=body, headers=auth(who))


def test_create_and_list_milestones(client, auth, seed, project_id):
    assert _create_milestone(client, auth, seed, project_id).status_code == 201
    response = _create_milestone(client, auth, seed, project_id, title="GA", due_date="2031-06-30", progress_percentage=10)
    assert response.status_code == 201
    assert "milestoneId" in response.json()

    listing = client.get(f"/milestones?workspaceId={seed['workspace_id']}", headers=auth("viewer"))
    assert listing.status_code == 200
    titles = [m["title"] for m in listing.json()]
    assert titles == ["GA", "Beta", "Project Created: Website"]

    first = listing.json()[0]
    assert first["project_name"] == "Website"
    assert first["first_name"] == "Manager"
    assert first["progress_percentage"] == 10


def test_list_milestones_filtered_by_project(client, auth, seed, project_id):
    other = client.post(
        "/projects",
        json={"workspace_id": seed["workspace_id"], "name": "Mobile"},
        headers=auth("manager"),
    ).json()["projectId"]
    _create_milestone(client, auth, seed, other)

    response = client.get(
        f"/milestones?workspaceId={seed['workspace_id']}&projectId={project_id}",
        headers=auth("member"),
    )
    assert [m["title"] for m in response.json()] == ["Project Created: Website"]


def test_member_cannot_create_milestone(client, auth, seed, project_id):
    response = _create_milestone(client, auth, seed, project_id, who="member")
    assert response.status_code == 403
    assert response.json() == {"error": "Insufficient permissions"}


def test_milestone_requires_project_in_workspace(client, auth, seed):
    response = _create_milestone(client, auth, seed, 9999)
    assert response.status_code == 404
    assert response.json() == {"error": "Project not found"}


def test_progress_is_bounded(client, auth, seed, project_id):
    response = _create_milestone(client, auth, seed, project_id, progress_percentage=101)
    assert response.status_code == 400


def test_member_cannot_update_milestone(client, auth, seed, project_id, db):
    milestone_id = _create_milestone(client, auth, seed, project_id).json()["milestoneId"]
    response = client.patch("/milestones", json={"id": milestone_id, "status": "completed"}, headers=auth("member"))
    assert response.status_code == 403
    assert db.query(Milestone).filter(Milestone.id == milestone_id).one().status == "pending"


def test_manager_partial_update_logs_activity(client, auth, seed, project_id, db):
    milestone_id = _create_milestone(client, auth, seed, project_id, description="first cut").json()["milestoneId"]

    response = client.patch(
        "/milestones",
        json={"id": milestone_id, "status": "in_progress", "progress_percentage": 40},
        headers=auth("owner"),
    )
    assert response.status_code == 200
    assert response.json() == {"message": "Milestone updated"}

    milestone = db.query(Milestone).filter(Milestone.id == milestone_id).one()
    assert milestone.status == "in_progress"
    assert milestone.progress_percentage == 40
    assert milestone.title == "Beta"
    assert milestone.description == "first cut"

    logs = db.query(ActivityLog).filter(ActivityLog.action == "milestone_updated").all()
    assert len(logs) == 1
    assert logs[0].entity_id == milestone_id
    assert logs[0].user_id == seed["user_ids"]["owner"]


def test_status_moves_are_unguarded(client, auth, seed, project_id):
    milestone_id = _create_milestone(client, auth, seed, project_id, status="completed").json()["milestoneId"]
    response = client.patch("/milestones", json={"id": milestone_id, "status": "pending"}, headers=auth("manager"))
    assert response.status_code == 200

    custom = client.patch("/milestones", json={"id": milestone_id, "status": "blocked"}, headers=auth("manager"))
    assert custom.status_code == 200


def test_update_rejects_empty_and_invalid_bodies(client, auth, seed, project_id):
    milestone_id = _create_milestone(client, auth, seed, project_id).json()["milestoneId"]

    empty = client.patch("/milestones", json={"id": milestone_id}, headers=auth("manager"))
    assert empty.status_code == 400
    assert empty.json() == {"error": "No fields to update"}

    null_title = client.patch("/milestones", json={"id": milestone_id, "title": None}, headers=auth("manager"))
    assert null_title.status_code == 400

    missing = client.patch("/milestones", json={"id": 9999, "status": "completed"}, headers=auth("manager"))
    assert missing.status_code == 404
    assert missing.json() == {"error": "Milestone not found"}


def test_delete_milestone(client, auth, seed, project_id, db):
    milestone_id = _create_milestone(client, auth, seed, project_id).json()["milestoneId"]

    denied = client.request("DELETE", "/milestones", json={"id": milestone_id}, headers=auth("viewer"))
    assert denied.status_code == 403

    response = client.request("DELETE", "/milestones", json={"id": milestone_id}, headers=auth("manager"))
    assert response.status_code == 200
    assert db.query(Milestone).filter(Milestone.id == milestone_id).first() is None
    assert db.query(ActivityLog).filter(ActivityLog.action == "milestone_deleted").count() == 1
