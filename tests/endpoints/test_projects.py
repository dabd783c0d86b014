import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from ctrlaltvibe.crud.notification import notification as crud_notification
from ctrlaltvibe.crud.project import project as crud_project
from tests.helpers.asserts import api_call, data_of
from tests.helpers.fakes import CallCounter


@pytest.fixture
def list_counter(monkeypatch):
    counter = CallCounter(crud_project.get_list)
    monkeypatch.setattr(crud_project, "get_list", counter)
    return counter


def test_list_is_served_from_cache(client: TestClient, user_factory, project_factory, unique_tag, list_counter):
    author = user_factory()
    project_factory(author, tags=[unique_tag])

    first = api_call(client, "GET", f"/api/projects?tag={unique_tag}")
    second = api_call(client, "GET", f"/api/projects?tag={unique_tag}")

    assert list_counter.count == 1
    assert data_of(first) == data_of(second)
    assert data_of(first)["total"] == 1

def test_cache_key_separates_viewers(client: TestClient, user_factory, auth_headers, project_factory, unique_tag, list_counter):
    author = user_factory()
    project_factory(author, tags=[unique_tag])

    api_call(client, "GET", f"/api/projects?tag={unique_tag}")
    api_call(client, "GET", f"/api/projects?tag={unique_tag}", headers=auth_headers(author))

    assert list_counter.count == 2

def test_literal_none_filter_does_not_share_the_unfiltered_entry(client: TestClient, user_factory, project_factory):
    author = user_factory()
    tagged = project_factory(author, tags=["none"])
    untagged = project_factory(author)

    filtered = data_of(api_call(client, "GET", f"/api/projects?user={author.username}&tag=none&sort=latest"))
    unfiltered = data_of(api_call(client, "GET", f"/api/projects?user={author.username}&sort=latest"))

    assert [p["id"] for p in filtered["items"]] == [tagged.id]
    assert {p["id"] for p in unfiltered["items"]} == {tagged.id, untagged.id}

def test_like_invalidates_cached_listing(client: TestClient, user_factory, auth_headers, project_factory, unique_tag, list_counter, spy_delivery):
    author, fan = user_factory(), user_factory()
    project = project_factory(author, tags=[unique_tag])
    fan_headers = auth_headers(fan)

    before = data_of(api_call(client, "GET", f"/api/projects?tag={unique_tag}", headers=fan_headers))
    assert before["items"][0]["likes_count"] == 0

    api_call(client, "POST", f"/api/projects/{project.id}/like", headers=fan_headers)

    after = data_of(api_call(client, "GET", f"/api/projects?tag={unique_tag}", headers=fan_headers))
    assert list_counter.count == 2
    assert after["items"][0]["likes_count"] == 1
    assert after["items"][0]["is_liked"] is True

def test_like_on_featured_project_invalidates_featured(client: TestClient, user_factory, auth_headers, project_factory, monkeypatch, spy_delivery):
    author, fan = user_factory(), user_factory()
    project = project_factory(author, featured=True)
    counter = CallCounter(crud_project.get_featured)
    monkeypatch.setattr(crud_project, "get_featured", counter)

    assert data_of(api_call(client, "GET", "/api/projects/featured"))["id"] == project.id
    api_call(client, "GET", "/api/projects/featured")
    assert counter.count == 1

    api_call(client, "POST", f"/api/projects/{project.id}/like", headers=auth_headers(fan))
    featured = data_of(api_call(client, "GET", "/api/projects/featured"))
    assert counter.count == 2
    assert featured["likes_count"] == 1

def test_like_creates_one_notification_and_pushes_it(client: TestClient, db_session: Session, user_factory, auth_headers, project_factory, spy_delivery):
    author, fan = user_factory(), user_factory()
    project = project_factory(author)

    response = api_call(client, "POST", f"/api/projects/{project.id}/like", headers=auth_headers(fan))
    assert data_of(response) == {"liked": True, "likes_count": 1}

    records, total = crud_notification.get_for_user(db_session, user_id=author.id)
    assert total == 1
    assert records[0].type == "like_project"
    assert records[0].actor_id == fan.id

    assert len(spy_delivery.calls) == 1
    recipient, event = spy_delivery.calls[0]
    assert recipient == author.id
    assert event.type == "like_project"
    assert event.project.id == project.id

def test_repeated_like_does_not_notify_twice(client: TestClient, db_session: Session, user_factory, auth_headers, project_factory, spy_delivery):
    author, fan = user_factory(), user_factory()
    project = project_factory(author)
    headers = auth_headers(fan)

    api_call(client, "POST", f"/api/projects/{project.id}/like", headers=headers)
    second = api_call(client, "POST", f"/api/projects/{project.id}/like", headers=headers)

    assert data_of(second)["likes_count"] == 1
    assert crud_notification.get_unread_count(db_session, user_id=author.id) == 1
    assert len(spy_delivery.calls) == 1

def test_self_like_produces_no_notification(client: TestClient, db_session: Session, user_factory, auth_headers, project_factory, spy_delivery):
    author = user_factory()
    project = project_factory(author)

    api_call(client, "POST", f"/api/projects/{project.id}/like", headers=auth_headers(author))

    assert crud_notification.get_unread_count(db_session, user_id=author.id) == 0
    assert spy_delivery.calls == []

def test_like_pushes_to_every_open_socket_of_the_author(client: TestClient, user_factory, auth_headers, project_factory):
    author, fan, bystander = user_factory(), user_factory(), user_factory()
    project = project_factory(author)
    fan_headers = auth_headers(fan)

    with client.websocket_connect("/ws") as laptop, client.websocket_connect("/ws") as phone, \
            client.websocket_connect("/ws") as other:
        for ws, user in ((laptop, author), (phone, author), (other, bystander)):
            ws.send_json({"type": "auth", "userId": user.id})
            assert ws.receive_json()["type"] == "auth_success"

        api_call(client, "POST", f"/api/projects/{project.id}/like", headers=fan_headers)

        for ws in (laptop, phone):
            message = ws.receive_json()
            assert message["type"] == "notification"
            assert message["data"]["type"] == "like_project"
            assert message["data"]["user_id"] == author.id
            assert message["data"]["actor"]["id"] == fan.id
            assert message["data"]["project"]["id"] == project.id

        # The bystander's next frame is the reply to its own ping, not a notification
        other.send_json({"type": "ping"})
        assert other.receive_json()["type"] == "pong"

def test_like_missing_project_has_no_side_effects(client: TestClient, db_session: Session, user_factory, auth_headers, project_factory, unique_tag, list_counter, spy_delivery):
    author, fan = user_factory(), user_factory()
    project_factory(author, tags=[unique_tag])
    headers = auth_headers(fan)

    api_call(client, "GET", f"/api/projects?tag={unique_tag}")
    response = client.post("/api/projects/999999/like", headers=headers)
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"

    api_call(client, "GET", f"/api/projects?tag={unique_tag}")
    assert list_counter.count == 1
    assert spy_delivery.calls == []

def test_like_requires_authentication(client: TestClient, user_factory, project_factory):
    project = project_factory(user_factory())
    response = client.post(f"/api/projects/{project.id}/like")
    assert response.status_code in (401, 403)

def test_push_failure_does_not_fail_the_like(client: TestClient, db_session: Session, user_factory, auth_headers, project_factory):
    import main
    from ctrlaltvibe.utils import deps
    from tests.helpers.fakes import FailingDelivery

    main.app.dependency_overrides[deps.get_notification_delivery] = lambda: FailingDelivery()
    author, fan = user_factory(), user_factory()
    project = project_factory(author)

    response = api_call(client, "POST", f"/api/projects/{project.id}/like", headers=auth_headers(fan))

    assert data_of(response)["liked"] is True
    assert crud_notification.get_unread_count(db_session, user_id=author.id) == 1

def test_unlike(client: TestClient, user_factory, auth_headers, project_factory, spy_delivery):
    author, fan = user_factory(), user_factory()
    project = project_factory(author)
    headers = auth_headers(fan)

    api_call(client, "POST", f"/api/projects/{project.id}/like", headers=headers)
    response = api_call(client, "DELETE", f"/api/projects/{project.id}/like", headers=headers)

    assert data_of(response) == {"liked": False, "likes_count": 0}
    assert len(spy_delivery.calls) == 1

def test_create_project_invalidates_lists_and_tags(client: TestClient, user_factory, auth_headers, unique_tag, list_counter):
    author = user_factory()
    headers = auth_headers(author)

    assert data_of(api_call(client, "GET", f"/api/projects?tag={unique_tag}"))["total"] == 0
    api_call(client, "GET", "/api/tags")

    created = api_call(client, "POST", "/api/projects", headers=headers, json={
        "title": "Pixel Garden",
        "description": "Grow plants in your terminal",
        "project_url": "https://example.com/garden",
        "image_url": "https://example.com/garden.png",
        "tags": [unique_tag],
    })
    assert created.status_code == 201

    listing = data_of(api_call(client, "GET", f"/api/projects?tag={unique_tag}"))
    assert listing["total"] == 1
    assert listing["items"][0]["title"] == "Pixel Garden"
    assert list_counter.count == 2
    tag_names = [t["name"] for t in data_of(api_call(client, "GET", "/api/tags"))]
    assert unique_tag in tag_names

def test_create_project_uses_url_metadata_when_fields_missing(client: TestClient, user_factory, auth_headers, monkeypatch):
    from ctrlaltvibe.services.url_metadata import url_metadata_service

    async def fake_fetch(url, cache=None):
        return {"title": "Remote", "description": "Scraped description", "image_url": "https://cdn.example.com/og.png"}

    monkeypatch.setattr(url_metadata_service, "fetch", fake_fetch)
    response = api_call(client, "POST", "/api/projects", headers=auth_headers(user_factory()), json={
        "title": "Scraped",
        "project_url": "https://example.com/scraped",
    })

    project = data_of(response)
    assert project["description"] == "Scraped description"
    assert project["image_url"] == "https://cdn.example.com/og.png"

def test_create_project_survives_metadata_outage(client: TestClient, user_factory, auth_headers, monkeypatch):
    from ctrlaltvibe.core.constants import DEFAULT_PROJECT_IMAGE
    from ctrlaltvibe.services.url_metadata import url_metadata_service

    async def unreachable(url, cache=None):
        return {}

    monkeypatch.setattr(url_metadata_service, "fetch", unreachable)
    response = api_call(client, "POST", "/api/projects", headers=auth_headers(user_factory()), json={
        "title": "Offline",
        "project_url": "https://unreachable.invalid",
    })

    assert data_of(response)["image_url"] == DEFAULT_PROJECT_IMAGE

def test_only_author_can_update(client: TestClient, user_factory, auth_headers, project_factory):
    author, stranger = user_factory(), user_factory()
    project = project_factory(author)

    denied = client.put(f"/api/projects/{project.id}", headers=auth_headers(stranger), json={"title": "Hijacked"})
    assert denied.status_code == 403

    updated = api_call(client, "PUT", f"/api/projects/{project.id}", headers=auth_headers(author), json={"title": "Renamed"})
    assert data_of(updated)["title"] == "Renamed"

def test_forbidden_delete_leaves_cache_intact(client: TestClient, user_factory, auth_headers, project_factory, unique_tag, list_counter):
    author, stranger = user_factory(), user_factory()
    project = project_factory(author, tags=[unique_tag])

    api_call(client, "GET", f"/api/projects?tag={unique_tag}")
    assert client.delete(f"/api/projects/{project.id}", headers=auth_headers(stranger)).status_code == 403
    api_call(client, "GET", f"/api/projects?tag={unique_tag}")

    assert list_counter.count == 1

def test_delete_project(client: TestClient, user_factory, auth_headers, project_factory, unique_tag):
    author = user_factory()
    project = project_factory(author, tags=[unique_tag])
    headers = auth_headers(author)

    assert data_of(api_call(client, "GET", f"/api/projects?tag={unique_tag}"))["total"] == 1
    api_call(client, "DELETE", f"/api/projects/{project.id}", headers=headers)

    assert data_of(api_call(client, "GET", f"/api/projects?tag={unique_tag}"))["total"] == 0
    assert client.get(f"/api/projects/{project.id}").status_code == 404

def test_private_project_hidden_from_others(client: TestClient, user_factory, auth_headers, project_factory):
    author, stranger = user_factory(), user_factory()
    project = project_factory(author, is_private=True)

    assert client.get(f"/api/projects/{project.id}", headers=auth_headers(stranger)).status_code == 404
    own = api_call(client, "GET", f"/api/projects/{project.id}", headers=auth_headers(author))
    assert data_of(own)["is_private"] is True

def test_profile_listing_includes_own_private_projects(client: TestClient, user_factory, auth_headers, project_factory):
    author = user_factory()
    project_factory(author)
    project_factory(author, is_private=True)

    public_view = data_of(api_call(client, "GET", f"/api/projects?user={author.username}"))
    own_view = data_of(api_call(client, "GET", f"/api/projects?user={author.username}", headers=auth_headers(author)))

    assert public_view["total"] == 1
    assert own_view["total"] == 2

def test_get_project_counts_views(client: TestClient, user_factory, project_factory):
    project = project_factory(user_factory())
    api_call(client, "GET", f"/api/projects/{project.id}")
    second = api_call(client, "GET", f"/api/projects/{project.id}")
    assert data_of(second)["views_count"] == 2

def test_trending_prefers_viewed_projects(client: TestClient, db_session: Session, user_factory, project_factory):
    author = user_factory()
    quiet = project_factory(author)
    busy = project_factory(author)
    for _ in range(50):
        crud_project.increment_views(db_session, db_obj=busy)

    trending = data_of(api_call(client, "GET", "/api/projects/trending?limit=20"))
    ids = [p["id"] for p in trending]
    assert ids[0] == busy.id
    if quiet.id in ids:
        assert ids.index(busy.id) < ids.index(quiet.id)

def test_bookmark_round_trip(client: TestClient, user_factory, auth_headers, project_factory, unique_tag):
    author, reader = user_factory(), user_factory()
    project = project_factory(author, tags=[unique_tag])
    headers = auth_headers(reader)

    api_call(client, "GET", f"/api/projects?tag={unique_tag}", headers=headers)
    api_call(client, "POST", f"/api/projects/{project.id}/bookmark", headers=headers)
    listing = data_of(api_call(client, "GET", f"/api/projects?tag={unique_tag}", headers=headers))
    assert listing["items"][0]["is_bookmarked"] is True

    api_call(client, "DELETE", f"/api/projects/{project.id}/bookmark", headers=headers)
    listing = data_of(api_call(client, "GET", f"/api/projects?tag={unique_tag}", headers=headers))
    assert listing["items"][0]["is_bookmarked"] is False

def test_share_notifies_author(client: TestClient, user_factory, auth_headers, project_factory, spy_delivery):
    author, sharer = user_factory(), user_factory()
    project = project_factory(author)

    response = api_call(client, "POST", f"/api/projects/{project.id}/share", headers=auth_headers(sharer), json={"platform": "twitter"})

    assert data_of(response)["shares_count"] == 1
    assert [event.type for _, event in spy_delivery.calls] == ["share_project"]

def test_anonymous_share_is_counted_without_notification(client: TestClient, user_factory, project_factory, spy_delivery):
    project = project_factory(user_factory())
    response = api_call(client, "POST", f"/api/projects/{project.id}/share", json={"platform": "copy_link"})
    assert data_of(response)["shares_count"] == 1
    assert spy_delivery.calls == []

def test_share_refreshes_cached_listing(client: TestClient, user_factory, project_factory, unique_tag, list_counter, spy_delivery):
    project = project_factory(user_factory(), tags=[unique_tag])

    before = data_of(api_call(client, "GET", f"/api/projects?tag={unique_tag}"))
    assert before["items"][0]["shares_count"] == 0

    api_call(client, "POST", f"/api/projects/{project.id}/share", json={"platform": "reddit"})

    after = data_of(api_call(client, "GET", f"/api/projects?tag={unique_tag}"))
    assert list_counter.count == 2
    assert after["items"][0]["shares_count"] == 1

def test_invalid_sort_is_rejected(client: TestClient):
    response = client.get("/api/projects?sort=random")
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
