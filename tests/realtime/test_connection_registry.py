from datetime import datetime, timezone

import pytest

from ctrlaltvibe.core.constants import ConnectionStateEnum
from ctrlaltvibe.realtime.registry import ConnectionRegistry
from ctrlaltvibe.schemas.notification import ActorSummary, LikeProjectEvent, ProjectSummary
from tests.helpers.fakes import FakeConnection


def _like_event(recipient_id: int) -> LikeProjectEvent:
    return LikeProjectEvent(
        id=1,
        user_id=recipient_id,
        actor=ActorSummary(id=7, username="fan"),
        project=ProjectSummary(id=3, title="Synth"),
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )

@pytest.fixture
def registry():
    return ConnectionRegistry()


def test_new_connection_starts_unauthenticated(registry):
    conn = FakeConnection()
    registration = registry.register_connection(conn)
    assert registration.state == ConnectionStateEnum.OPEN
    assert registration.user_id is None
    assert registry.connection_count == 1
    assert registry.user_count == 0

def test_authenticate_binds_user(registry):
    conn = FakeConnection()
    registry.register_connection(conn)
    registration = registry.authenticate(conn, 42)
    assert registration.is_authenticated
    assert registry.connections_for(42) == [conn]
    assert registry.is_connected(42)

def test_second_device_does_not_replace_first(registry):
    a, b = FakeConnection(), FakeConnection()
    for conn in (a, b):
        registry.register_connection(conn)
        registry.authenticate(conn, 42)
    assert len(registry.connections_for(42)) == 2

def test_reauthenticating_moves_connection_to_new_user(registry):
    conn = FakeConnection()
    registry.register_connection(conn)
    registry.authenticate(conn, 1)
    registry.authenticate(conn, 2)
    assert registry.connections_for(1) == []
    assert registry.connections_for(2) == [conn]
    assert registry.user_count == 1

def test_deregister_last_connection_removes_user(registry):
    a, b = FakeConnection(), FakeConnection()
    for conn in (a, b):
        registry.register_connection(conn)
        registry.authenticate(conn, 42)
    registry.deregister(a)
    assert registry.connections_for(42) == [b]
    registry.deregister(b)
    assert not registry.is_connected(42)
    assert registry.user_count == 0
    assert registry.connection_count == 0
    # Closing twice is harmless
    registry.deregister(b)

@pytest.mark.asyncio
async def test_deliver_fans_out_to_every_device(registry):
    a, b, c = FakeConnection(), FakeConnection(), FakeConnection()
    for conn, user_id in ((a, 42), (b, 42), (c, 7)):
        registry.register_connection(conn)
        registry.authenticate(conn, user_id)

    delivered = await registry.deliver(42, _like_event(42))

    assert delivered == 2
    for conn in (a, b):
        assert len(conn.sent) == 1
        message = conn.sent[0]
        assert message["type"] == "notification"
        assert message["data"]["type"] == "like_project"
        assert message["data"]["project"] == {"id": 3, "title": "Synth"}
    assert c.sent == []

@pytest.mark.asyncio
async def test_deliver_without_connections_is_silent(registry):
    assert await registry.deliver(99, _like_event(99)) == 0
    assert registry.user_count == 0

@pytest.mark.asyncio
async def test_unauthenticated_connection_gets_no_push(registry):
    conn = FakeConnection()
    registry.register_connection(conn)
    assert await registry.deliver(42, _like_event(42)) == 0
    assert conn.sent == []

@pytest.mark.asyncio
async def test_failed_send_drops_only_that_connection(registry):
    dead, alive = FakeConnection(fail=True), FakeConnection()
    for conn in (dead, alive):
        registry.register_connection(conn)
        registry.authenticate(conn, 42)

    delivered = await registry.deliver(42, _like_event(42))

    assert delivered == 1
    assert len(alive.sent) == 1
    assert registry.connections_for(42) == [alive]
    assert registry.get_registration(dead) is None

@pytest.mark.asyncio
async def test_unserializable_event_is_not_pushed(registry):
    conn = FakeConnection()
    registry.register_connection(conn)
    registry.authenticate(conn, 42)
    assert await registry.deliver(42, {"bad": object()}) == 0
    assert conn.sent == []

@pytest.mark.asyncio
async def test_send_never_raises(registry):
    conn = FakeConnection(fail=True)
    registry.register_connection(conn)
    assert await registry.send(conn, {"type": "pong", "time": "now"}) is False

def test_close_all_empties_registry(registry):
    for user_id in (1, 2, 3):
        conn = FakeConnection()
        registry.register_connection(conn)
        registry.authenticate(conn, user_id)
    registry.close_all()
    assert registry.connection_count == 0
    assert registry.user_count == 0
