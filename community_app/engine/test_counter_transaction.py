# community_app/engine/test_counter_transaction.py
import pytest
from community_app.engine.counter_transaction import CounterTransaction

POST = "communities/c1/posts/p1"
LIKE = f"{POST}/likes/alice"

@pytest.fixture
def counter(store):
    store.seed("communities/c1", {'name': "猫好きの会"})
    store.seed(POST, {'title': "t", 'likesCount': 0})
    return CounterTransaction(store, POST)

def test_create_increments_counter(store, counter):
    result = counter.adjust(1, LIKE, create=True)

    assert result.is_member is True and result.applied is True
    assert store.exists(LIKE)
    assert store.get(POST)['likesCount'] == 1
    assert 'createdAt' in store.get(LIKE)

def test_delete_decrements_counter(store, counter):
    counter.adjust(1, LIKE, create=True)
    result = counter.adjust(-1, LIKE, create=False)

    assert result.is_member is False and result.applied is True
    assert not store.exists(LIKE)
    assert store.get(POST)['likesCount'] == 0

def test_repeated_create_is_a_no_op(store, counter):
    """같은 사용자의 거의 동시 요청 두 개가 둘 다 생성하지 않습니다."""
    counter.adjust(1, LIKE, create=True)
    result = counter.adjust(1, LIKE, create=True)

    assert result.applied is False and result.is_member is True
    assert store.get(POST)['likesCount'] == 1

def test_delete_of_missing_membership_is_a_no_op(store, counter):
    result = counter.adjust(-1, LIKE, create=False)

    assert result.applied is False and result.is_member is False
    assert store.get(POST)['likesCount'] == 0

def test_missing_owner_is_treated_as_not_member(store):
    store.seed(LIKE, {})  # 게시글은 이미 삭제되고 좋아요 문서만 남은 상태
    counter = CounterTransaction(store, POST)

    result = counter.adjust(1, LIKE, create=True)

    assert result.is_member is False and result.applied is False
    assert not store.exists(LIKE)
    assert not store.exists(POST)

def test_failed_commit_changes_nothing(store, counter):
    store.fail_writes = True
    with pytest.raises(RuntimeError):
        counter.adjust(1, LIKE, create=True)

    assert not store.exists(LIKE)
    assert store.get(POST)['likesCount'] == 0

@pytest.mark.parametrize("delta, create", [(2, True), (0, True), (1, False), (-1, True)])
def test_invalid_arguments_are_rejected(counter, delta, create):
    with pytest.raises(ValueError):
        counter.adjust(delta, LIKE, create=create)
