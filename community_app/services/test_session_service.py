# community_app/services/test_session_service.py
from datetime import timedelta

import pytest
from community_app.models.subject import ANONYMOUS, Subject
from community_app.services.session_service import SessionRegistry, favorite_key, like_key

ALICE = Subject(uid="alice", verified=True)

@pytest.fixture
def registry(store):
    store.seed("communities/c1/posts/p1", {'title': "t", 'likesCount': 0})
    return SessionRegistry(store)

def test_keys_point_at_membership_documents():
    assert like_key("c1", "p1", "alice").path == "communities/c1/posts/p1/likes/alice"
    assert favorite_key("alice", "c1").path == "users/alice/favorites/c1"

def test_same_subject_shares_one_session(registry):
    assert registry.session_for(ALICE) is registry.session_for(ALICE)
    assert registry.active_uids() == {"alice"}

def test_anonymous_sessions_are_not_kept(registry):
    session = registry.session_for(ANONYMOUS)
    assert session.likes.toggle(like_key("c1", "p1", "")) is False
    assert registry.active_uids() == set()

def test_subject_change_closes_previous_session(registry, store):
    first = registry.session_for(Subject(uid="alice", verified=False))
    first.likes.watch([like_key("c1", "p1", "alice")])
    assert store.watcher_count() == 1

    second = registry.session_for(ALICE)

    assert second is not first
    assert store.watcher_count() == 0

def test_end_tears_down_watches(registry, store):
    registry.session_for(ALICE).likes.watch([like_key("c1", "p1", "alice")])

    assert registry.end("alice") is True
    assert store.watcher_count() == 0
    assert registry.end("alice") is False
    assert registry.end(None) is False

class Clock:
    """수동으로 진행시키는 monotonic 시계"""
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

@pytest.fixture
def clock():
    return Clock()

@pytest.fixture
def idle_registry(registry, clock):
    registry.idle_timeout = timedelta(minutes=30)
    registry.clock = clock
    return registry

def test_idle_session_is_evicted(idle_registry, clock, store):
    idle_registry.session_for(ALICE).likes.watch([like_key("c1", "p1", "alice")])
    assert store.watcher_count() == 1

    clock.now += 30 * 60
    assert idle_registry.evict_idle() == []

    clock.now += 1
    assert idle_registry.evict_idle() == ["alice"]
    assert store.watcher_count() == 0
    assert idle_registry.active_uids() == set()

def test_activity_keeps_session_alive(idle_registry, clock):
    first = idle_registry.session_for(ALICE)
    for _ in range(3):
        clock.now += 20 * 60
        assert idle_registry.session_for(ALICE) is first

def test_other_users_requests_sweep_idle_sessions(idle_registry, clock, store):
    idle_registry.session_for(ALICE).likes.watch([like_key("c1", "p1", "alice")])
    clock.now += 31 * 60

    idle_registry.session_for(Subject(uid="bob", verified=True))

    assert idle_registry.active_uids() == {"bob"}
    assert store.watcher_count() == 0

def test_returning_after_eviction_gets_fresh_session(idle_registry, clock):
    first = idle_registry.session_for(ALICE)
    clock.now += 31 * 60
    assert idle_registry.session_for(ALICE) is not first
    assert idle_registry.active_uids() == {"alice"}
