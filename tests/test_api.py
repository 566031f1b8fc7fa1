import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.db import get_db
from app.main import app

PASSWORD = "Secret123"


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def register(client, username):
    response = await client.post("/auth/register", json={
        "email": f"{username}@mail.com",
        "username": username,
        "password": PASSWORD
    })
    assert response.status_code == 201, response.text
    return response.json()


async def login(client, username):
    response = await client.post("/auth/login", json={
        "email": f"{username}@mail.com",
        "password": PASSWORD
    })
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_requests_without_token_are_rejected(client):
    response = await client.get("/notebooks/")

    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_login_with_wrong_password(client):
    await register(client, "alice")

    response = await client.post("/auth/login", json={"email": "alice@mail.com", "password": "Wrong1234"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me(client):
    await register(client, "alice")
    headers = await login(client, "alice")

    response = await client.get("/auth/me", headers=headers)

    assert response.status_code == 200
    assert response.json()["username"] == "alice"


@pytest.mark.asyncio
async def test_notebook_workflow(client):
    await register(client, "alice")
    alice = await login(client, "alice")

    response = await client.post("/notebooks/", json={"title": "Research"}, headers=alice)
    assert response.status_code == 201, response.text
    notebook = response.json()
    notebook_id = notebook["id"]
    assert notebook["pages"] == []

    response = await client.get(f"/notebooks/{notebook_id}/navigate", headers=alice)
    assert response.json()["empty"] is True

    response = await client.post(f"/notebooks/{notebook_id}/pages/", json={"title": "Intro"}, headers=alice)
    assert response.status_code == 201, response.text
    intro = response.json()
    assert intro["order"] == 0

    response = await client.get(
        f"/notebooks/{notebook_id}/navigate",
        params={"page_id": str(uuid.uuid4())},
        headers=alice
    )
    assert response.json()["redirect_to"] == intro["id"]

    response = await client.get(
        f"/notebooks/{notebook_id}/navigate",
        params={"page_id": intro["id"]},
        headers=alice
    )
    assert response.json()["page"] == intro["id"]

    response = await client.patch(
        f"/notebooks/{notebook_id}/pages/{intro['id']}",
        json={"title": "Introduction"},
        headers=alice
    )
    assert response.json()["title"] == "Introduction"

    response = await client.get("/notebooks/", headers=alice)
    summaries = response.json()["notebooks"]
    assert [summary["page_count"] for summary in summaries] == [1]


@pytest.mark.asyncio
async def test_page_errors_are_mapped_to_status_codes(client):
    await register(client, "alice")
    alice = await login(client, "alice")
    notebook_id = (await client.post("/notebooks/", json={"title": "Tree"}, headers=alice)).json()["id"]
    parent = (await client.post(f"/notebooks/{notebook_id}/pages/", json={"title": "parent"}, headers=alice)).json()
    child = (await client.post(
        f"/notebooks/{notebook_id}/pages/",
        json={"title": "child", "parent_id": parent["id"]},
        headers=alice
    )).json()

    response = await client.post(
        f"/notebooks/{notebook_id}/pages/{parent['id']}/move",
        json={"parent_id": child["id"]},
        headers=alice
    )
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "CycleDetected"

    response = await client.delete(f"/notebooks/{notebook_id}/pages/{uuid.uuid4()}", headers=alice)
    assert response.status_code == 404

    response = await client.delete(f"/notebooks/{notebook_id}/pages/{parent['id']}", headers=alice)
    assert set(response.json()["removed_ids"]) == {parent["id"], child["id"]}

    response = await client.get(f"/notebooks/{uuid.uuid4()}", headers=alice)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_sharing_workflow(client):
    await register(client, "alice")
    alice = await login(client, "alice")
    notebook_id = (await client.post("/notebooks/", json={"title": "Shared"}, headers=alice)).json()["id"]

    response = await client.post(
        f"/notebooks/{notebook_id}/collaborators/",
        json={"identifier": "bob@mail.com"},
        headers=alice
    )
    assert response.status_code == 201, response.text
    assert response.json()["pending"] is True

    response = await client.post(
        f"/notebooks/{notebook_id}/collaborators/",
        json={"identifier": "bob@mail.com"},
        headers=alice
    )
    assert response.status_code == 409

    bob_user = await register(client, "bob")
    bob = await login(client, "bob")

    response = await client.get(f"/notebooks/{notebook_id}", headers=bob)
    assert response.status_code == 200
    collaborators = response.json()["collaborators"]
    assert collaborators[0]["user_id"] == bob_user["uuid"]
    assert collaborators[0]["pending"] is False

    response = await client.delete(f"/notebooks/{notebook_id}", headers=bob)
    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "Forbidden"

    alice_id = (await client.get("/auth/me", headers=alice)).json()["uuid"]
    response = await client.delete(f"/notebooks/{notebook_id}/collaborators/{alice_id}", headers=bob)
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "CannotRevokeOwner"

    response = await client.delete(f"/notebooks/{notebook_id}/collaborators/{bob_user['uuid']}", headers=alice)
    assert response.status_code == 200

    response = await client.get(f"/notebooks/{notebook_id}", headers=bob)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_invalid_invite_identifier(client):
    await register(client, "alice")
    alice = await login(client, "alice")
    notebook_id = (await client.post("/notebooks/", json={"title": "Shared"}, headers=alice)).json()["id"]

    for identifier in ("not-a-user", "bob@"):
        response = await client.post(
            f"/notebooks/{notebook_id}/collaborators/",
            json={"identifier": identifier},
            headers=alice
        )
        assert response.status_code == 400, identifier

        response = await client.delete(f"/notebooks/{notebook_id}/collaborators/{identifier}", headers=alice)
        assert response.status_code == 400, identifier


@pytest.mark.asyncio
async def test_concurrent_edit_returns_retryable_conflict(client, concurrent_write):
    await register(client, "alice")
    alice = await login(client, "alice")
    notebook_id = (await client.post("/notebooks/", json={"title": "Busy"}, headers=alice)).json()["id"]

    concurrent_write()
    response = await client.post(f"/notebooks/{notebook_id}/pages/", json={"title": "lost"}, headers=alice)

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["error"] == "Conflict"
    assert detail["retryable"] is True

    response = await client.post(f"/notebooks/{notebook_id}/pages/", json={"title": "retried"}, headers=alice)
    assert response.status_code == 201
