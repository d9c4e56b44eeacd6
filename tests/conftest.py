from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from taskflow.core.db import Base, get_db
from taskflow.core.security import hash_password
from taskflow.core.tokens import issue_token
from taskflow.main import app
from taskflow.models import User, Workspace, WorkspaceMember

PASSWORD = "Passw0rd!"

# name -> (application role, role in the "Acme HQ" workspace or None)
SEED_USERS = {
    "owner": ("employee", "admin"),
    "manager": ("employee", "manager"),
    "member": ("employee", "member"),
    "viewer": ("employee", "viewer"),
    "outsider": ("manager", None),
    "sysadmin": ("admin", None),
}


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    users = {}
    for name, (app_role, _) in SEED_USERS.items():
        users[name] = User(
            email=f"{name}@acme.io",
            first_name=name.capitalize(),
            last_name="Tester",
            password_hash=hash_password(PASSWORD),
            role=app_role,
        )
    db.add_all(users.values())
    db.flush()

    acme = Workspace(owner_id=users["owner"].id, name="Acme HQ")
    other = Workspace(owner_id=users["outsider"].id, name="Other Co")
    db.add_all([acme, other])
    db.flush()

    for name, (_, ws_role) in SEED_USERS.items():
        if ws_role:
            db.add(WorkspaceMember(workspace_id=acme.id, user_id=users[name].id, role=ws_role))
    db.add(WorkspaceMember(workspace_id=other.id, user_id=users["outsider"].id, role="admin"))
    db.commit()

    app.state.testing_sessionmaker = TestingSessionLocal
    app.state.seed = {
        "workspace_id": acme.id,
        "other_workspace_id": other.id,
        "user_ids": {name: u.id for name, u in users.items()},
        "tokens": {name: issue_token(u) for name, u in users.items()},
    }
    db.close()

    def override_get_db():
        test_db = TestingSessionLocal()
        try:
            yield test_db
        except Exception:
            test_db.rollback()
            raise
        finally:
            test_db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def seed(client) -> dict:
    return app.state.seed


@pytest.fixture()
def auth(seed):
    def _headers(name: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {seed['tokens'][name]}"}

    return _headers


@pytest.fixture()
def db(client):
    session = app.state.testing_sessionmaker()
    try:
        yield session
    finally:
        session.close()
