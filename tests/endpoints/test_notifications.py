import pytest
from fastapi.testclient import TestClient

from tests.helpers.asserts import api_call, data_of


@pytest.fixture
def liked_project(client: TestClient, user_factory, auth_headers, project_factory, spy_delivery):
    """An author whose project has been liked by two different fans."""
    author = user_factory()
    project = project_factory(author)
    for _ in range(2):
        api_call(client, "POST", f"/api/projects/{project.id}/like", headers=auth_headers(user_factory()))
    return author, project


def test_list_notifications(client: TestClient, auth_headers, liked_project):
    author, project = liked_project
    body = data_of(api_call(client, "GET", "/api/notifications", headers=auth_headers(author)))

    assert body["total"] == 2
    assert [n["type"] for n in body["notifications"]] == ["like_project", "like_project"]
    assert all(n["project"]["id"] == project.id for n in body["notifications"])
    assert all(n["is_read"] is False for n in body["notifications"])

def test_list_is_paginated(client: TestClient, auth_headers, liked_project):
    author, _ = liked_project
    body = data_of(api_call(client, "GET", "/api/notifications?limit=1&offset=1", headers=auth_headers(author)))
    assert body["total"] == 2
    assert len(body["notifications"]) == 1

def test_unread_count(client: TestClient, auth_headers, liked_project):
    author, _ = liked_project
    body = data_of(api_call(client, "GET", "/api/notifications/count", headers=auth_headers(author)))
    assert body == {"count": 2}

def test_anonymous_unread_count_is_zero(client: TestClient):
    assert data_of(api_call(client, "GET", "/api/notifications/count")) == {"count": 0}

def test_listing_requires_authentication(client: TestClient):
    assert client.get("/api/notifications").status_code in (401, 403)

def test_mark_one_as_read(client: TestClient, auth_headers, liked_project):
    author, _ = liked_project
    headers = auth_headers(author)
    first = data_of(api_call(client, "GET", "/api/notifications", headers=headers))["notifications"][0]

    api_call(client, "PATCH", f"/api/notifications/{first['id']}", headers=headers)

    assert data_of(api_call(client, "GET", "/api/notifications/count", headers=headers))["count"] == 1
    unread = data_of(api_call(client, "GET", "/api/notifications?unread_only=true", headers=headers))
    assert first["id"] not in [n["id"] for n in unread["notifications"]]

def test_mark_all_as_read(client: TestClient, auth_headers, liked_project):
    author, _ = liked_project
    headers = auth_headers(author)

    response = api_call(client, "PATCH", "/api/notifications", headers=headers)

    assert response.json()["message"] == "2 notifications marked as read"
    assert data_of(api_call(client, "GET", "/api/notifications/count", headers=headers))["count"] == 0

def test_delete_notification(client: TestClient, auth_headers, liked_project):
    author, _ = liked_project
    headers = auth_headers(author)
    first = data_of(api_call(client, "GET", "/api/notifications", headers=headers))["notifications"][0]

    api_call(client, "DELETE", f"/api/notifications/{first['id']}", headers=headers)

    assert data_of(api_call(client, "GET", "/api/notifications", headers=headers))["total"] == 1
    assert client.delete(f"/api/notifications/{first['id']}", headers=headers).status_code == 404

def test_cannot_touch_someone_elses_notification(client: TestClient, user_factory, auth_headers, liked_project):
    author, _ = liked_project
    first = data_of(api_call(client, "GET", "/api/notifications", headers=auth_headers(author)))["notifications"][0]
    intruder = auth_headers(user_factory())

    assert client.patch(f"/api/notifications/{first['id']}", headers=intruder).status_code == 404
    assert client.delete(f"/api/notifications/{first['id']}", headers=intruder).status_code == 404
    assert data_of(api_call(client, "GET", "/api/notifications/count", headers=auth_headers(author)))["count"] == 2
