import pytest
from fastapi.testclient import TestClient

from ctrlaltvibe.core.cache_config import CacheTags
from ctrlaltvibe.core.constants import RoleEnum
from tests.helpers.asserts import api_call, data_of


@pytest.fixture
def admin_headers(user_factory, auth_headers):
    return auth_headers(user_factory(role=RoleEnum.ADMIN))


@pytest.mark.parametrize("method,path", [
    ("GET", "/api/admin/cache/stats"),
    ("POST", "/api/admin/cache/clear"),
    ("POST", "/api/admin/cache/invalidate/projects:list"),
    ("GET", "/api/admin/users"),
    ("GET", "/api/admin/projects"),
    ("DELETE", "/api/admin/users/1"),
    ("DELETE", "/api/admin/comments/1"),
])
def test_admin_routes_reject_regular_users(client: TestClient, user_factory, auth_headers, method, path):
    response = client.request(method, path, headers=auth_headers(user_factory()))
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"

def test_feature_toggle_refreshes_featured_slot(client: TestClient, user_factory, project_factory, admin_headers):
    project = project_factory(user_factory())

    api_call(client, "GET", "/api/projects/featured")
    response = api_call(client, "PATCH", f"/api/admin/projects/{project.id}/featured", headers=admin_headers, json={"featured": True})
    assert data_of(response)["featured"] is True

    featured = data_of(api_call(client, "GET", "/api/projects/featured"))
    assert featured["id"] == project.id

def test_feature_toggle_unknown_project(client: TestClient, admin_headers):
    response = client.patch("/api/admin/projects/999999/featured", headers=admin_headers, json={"featured": True})
    assert response.status_code == 404

def test_admin_may_edit_any_project(client: TestClient, user_factory, project_factory, admin_headers):
    project = project_factory(user_factory())
    response = api_call(client, "PUT", f"/api/projects/{project.id}", headers=admin_headers, json={"title": "Moderated"})
    assert data_of(response)["title"] == "Moderated"

def test_cache_stats_and_tag_invalidation(client: TestClient, admin_headers, unique_tag):
    api_call(client, "GET", f"/api/projects?tag={unique_tag}")
    api_call(client, "GET", "/api/tags")

    stats = data_of(api_call(client, "GET", "/api/admin/cache/stats", headers=admin_headers))
    assert stats["tags"][CacheTags.PROJECTS_LIST] >= 1
    assert stats["tags"][CacheTags.TAGS] == 1
    assert "timestamp" in stats

    removed = data_of(api_call(client, "POST", f"/api/admin/cache/invalidate/{CacheTags.TAGS}", headers=admin_headers))
    assert removed == {"tag": CacheTags.TAGS, "removed": 1}

    stats = data_of(api_call(client, "GET", "/api/admin/cache/stats", headers=admin_headers))
    assert CacheTags.TAGS not in stats["tags"]

def test_cache_clear(client: TestClient, admin_headers, app_state):
    api_call(client, "GET", "/api/tags")
    assert app_state.cache.size > 0

    api_call(client, "POST", "/api/admin/cache/clear", headers=admin_headers)
    assert app_state.cache.size == 0


def _comment(client, project_id, headers, content="Nice work"):
    return data_of(api_call(client, "POST", f"/api/projects/{project_id}/comments", headers=headers, json={"content": content}))


def test_list_users_hides_password_hashes(client: TestClient, user_factory, admin_headers):
    member = user_factory()
    page = data_of(api_call(client, "GET", "/api/admin/users?limit=5", headers=admin_headers))

    listed = {u["id"]: u for u in page["items"]}
    assert member.id in listed
    assert listed[member.id]["role"] == "user"
    assert "hashed_password" not in listed[member.id]
    assert page["total"] >= 2

def test_list_projects_includes_private(client: TestClient, user_factory, project_factory, admin_headers):
    hidden = project_factory(user_factory(), is_private=True)
    page = data_of(api_call(client, "GET", "/api/admin/projects?limit=5", headers=admin_headers))
    assert hidden.id in [p["id"] for p in page["items"]]

def test_promote_user_to_admin(client: TestClient, user_factory, auth_headers, admin_headers):
    member = user_factory()
    member_headers = auth_headers(member)
    assert client.get("/api/admin/cache/stats", headers=member_headers).status_code == 403

    updated = data_of(api_call(client, "PUT", f"/api/admin/users/{member.id}/role", headers=admin_headers, json={"role": "admin"}))
    assert updated["role"] == "admin"
    assert client.get("/api/admin/cache/stats", headers=member_headers).status_code == 200

def test_role_update_rejects_unknown_role_and_self_change(client: TestClient, user_factory, auth_headers):
    admin = user_factory(role=RoleEnum.ADMIN)
    headers = auth_headers(admin)
    member = user_factory()

    assert client.put(f"/api/admin/users/{member.id}/role", headers=headers, json={"role": "owner"}).status_code == 422
    own = client.put(f"/api/admin/users/{admin.id}/role", headers=headers, json={"role": "user"})
    assert own.status_code == 400
    assert own.json()["error"]["code"] == "BAD_REQUEST"
    assert client.put("/api/admin/users/999999/role", headers=headers, json={"role": "admin"}).status_code == 404

def test_delete_comment_refreshes_listing(client: TestClient, user_factory, auth_headers, project_factory, admin_headers, unique_tag, spy_delivery):
    project = project_factory(user_factory(), tags=[unique_tag])
    comment = _comment(client, project.id, auth_headers(user_factory()))
    reply_headers = auth_headers(user_factory())
    api_call(client, "POST", f"/api/comments/{comment['id']}/replies", headers=reply_headers, json={"content": "+1"})

    before = data_of(api_call(client, "GET", f"/api/projects?tag={unique_tag}"))
    assert before["items"][0]["comments_count"] == 1

    api_call(client, "DELETE", f"/api/admin/comments/{comment['id']}", headers=admin_headers)

    after = data_of(api_call(client, "GET", f"/api/projects?tag={unique_tag}"))
    assert after["items"][0]["comments_count"] == 0
    assert data_of(api_call(client, "GET", f"/api/projects/{project.id}/comments"))["items"] == []
    assert client.delete(f"/api/admin/comments/{comment['id']}", headers=admin_headers).status_code == 404

def test_admin_deletes_comment_on_private_project(client: TestClient, user_factory, auth_headers, project_factory, admin_headers, spy_delivery):
    author = user_factory()
    project = project_factory(author, is_private=True)
    comment = _comment(client, project.id, auth_headers(author))

    api_call(client, "DELETE", f"/api/admin/comments/{comment['id']}", headers=admin_headers)

    remaining = data_of(api_call(client, "GET", f"/api/projects/{project.id}/comments", headers=auth_headers(author)))
    assert remaining["total"] == 0

def test_delete_user_removes_their_content(client: TestClient, user_factory, auth_headers, project_factory, admin_headers, unique_tag, spy_delivery):
    victim, neighbour = user_factory(), user_factory()
    doomed = project_factory(victim, tags=[unique_tag])
    survivor = project_factory(neighbour, tags=[unique_tag])
    victim_id, victim_name, doomed_id = victim.id, victim.username, doomed.id
    victim_headers = auth_headers(victim)
    _comment(client, survivor.id, victim_headers)
    api_call(client, "POST", f"/api/projects/{survivor.id}/like", headers=victim_headers)

    before = data_of(api_call(client, "GET", f"/api/projects?tag={unique_tag}"))
    assert before["total"] == 2

    api_call(client, "DELETE", f"/api/admin/users/{victim_id}", headers=admin_headers)

    after = data_of(api_call(client, "GET", f"/api/projects?tag={unique_tag}"))
    assert [p["id"] for p in after["items"]] == [survivor.id]
    assert after["items"][0]["comments_count"] == 0
    assert after["items"][0]["likes_count"] == 0
    assert client.get(f"/api/projects/{doomed_id}").status_code == 404
    assert client.post("/api/login", json={"username": victim_name, "password": "testpass123"}).status_code == 401

def test_admin_cannot_delete_self(client: TestClient, user_factory, auth_headers):
    admin = user_factory(role=RoleEnum.ADMIN)
    headers = auth_headers(admin)
    assert client.delete(f"/api/admin/users/{admin.id}", headers=headers).status_code == 400
    assert client.delete("/api/admin/users/999999", headers=headers).status_code == 404
