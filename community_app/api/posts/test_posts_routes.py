# community_app/api/posts/test_posts_routes.py
from datetime import datetime, timezone

import pytest

POSTS = '/api/communities/c1/posts'

def at(day):
    return datetime(2024, 4, day, tzinfo=timezone.utc)

@pytest.fixture
def blog(store):
    store.seed("communities/c1", {'name': "猫好きの会", 'createdBy': "alice"})
    store.seed("communities/c1/posts/old", {'title': "古い記事", 'body': "b", 'likesCount': 0,
                                           'isPinned': True, 'createdAt': at(1)})
    store.seed("communities/c1/posts/new", {'title': "新しい記事", 'body': "b", 'likesCount': 0,
                                           'createdAt': at(3)})
    store.seed("communities/c1/posts/mid", {'title': "中間の記事", 'body': "b", 'likesCount': 0,
                                           'createdAt': at(2)})

def ids(response):
    return [item['id'] for item in response.get_json()['items']]

def test_pinned_first_then_newest(client, blog):
    response = client.get(POSTS)
    assert response.status_code == 200
    assert ids(response) == ["old", "new", "mid"]
    assert all(item['is_liked'] is False for item in response.get_json()['items'])

def test_posts_of_missing_community(client):
    assert client.get('/api/communities/none/posts').status_code == 404

def test_editor_creates_post(client, store, login, blog):
    headers, _ = login("alice")

    response = client.post(POSTS, headers=headers, json={'title': " お知らせ ", 'body': "本文", 'timeline': True})
    body = response.get_json()

    assert response.status_code == 201
    assert body['title'] == "お知らせ"
    assert body['likesCount'] == 0
    assert body['timeline'] is True
    assert store.get(f"communities/c1/posts/{body['id']}")['isPinned'] is False

def test_stranger_cannot_post(client, login, blog):
    headers, _ = login("mallory")
    response = client.post(POSTS, headers=headers, json={'title': "t", 'body': "b"})
    assert response.status_code == 403

def test_post_requires_title_and_body(client, login, blog):
    headers, _ = login("alice")
    response = client.post(POSTS, headers=headers, json={'title': ""})
    assert response.status_code == 400
    assert set(response.get_json()['details']) == {'title', 'body'}

def test_pin_toggle_and_update(client, login, blog):
    headers, _ = login("alice")

    pinned = client.post(f"{POSTS}/mid/pin", headers=headers).get_json()
    assert pinned['isPinned'] is True

    updated = client.patch(f"{POSTS}/mid", headers=headers, json={'title': "改題"}).get_json()
    assert updated['title'] == "改題"
    assert updated['isPinned'] is True

def test_delete_post_removes_likes(client, store, login, blog):
    headers, _ = login("alice")
    store.seed("communities/c1/posts/new/likes/bob", {})

    assert client.delete(f"{POSTS}/new", headers=headers).status_code == 200
    assert not store.exists("communities/c1/posts/new")
    assert not store.exists("communities/c1/posts/new/likes/bob")


# --- 좋아요 ---
def test_like_round_trip_updates_counter(client, store, login, blog):
    headers, _ = login("bob")

    liked = client.post(f"{POSTS}/new/like", headers=headers).get_json()
    assert liked == {'post_id': "new", 'is_liked': True, 'likesCount': 1}
    assert store.exists("communities/c1/posts/new/likes/bob")

    listed = {item['id']: item for item in client.get(POSTS, headers=headers).get_json()['items']}
    assert listed['new']['is_liked'] is True
    assert listed['new']['likesCount'] == 1

    unliked = client.post(f"{POSTS}/new/like", headers=headers).get_json()
    assert unliked['is_liked'] is False
    assert unliked['likesCount'] == 0

def test_likes_from_two_users_add_up(client, login, blog):
    alice, _ = login("alice")
    bob, _ = login("bob")

    client.post(f"{POSTS}/new/like", headers=alice)
    response = client.post(f"{POSTS}/new/like", headers=bob)

    assert response.get_json()['likesCount'] == 2

def test_failed_like_keeps_previous_state(client, store, login, blog):
    headers, _ = login("bob")
    store.fail_writes = True

    response = client.post(f"{POSTS}/new/like", headers=headers)

    assert response.status_code == 503
    assert response.get_json()['message'] == "いいねの更新に失敗しました"
    store.fail_writes = False
    assert store.get("communities/c1/posts/new")['likesCount'] == 0
    listed = {item['id']: item for item in client.get(POSTS, headers=headers).get_json()['items']}
    assert listed['new']['is_liked'] is False

def test_like_on_missing_post(client, login, blog):
    headers, _ = login("bob")
    assert client.post(f"{POSTS}/ghost/like", headers=headers).status_code == 404

def test_like_requires_login(client, blog):
    assert client.post(f"{POSTS}/new/like").status_code == 401

def test_like_from_another_device_is_reflected(client, store, login, blog):
    headers, _ = login("bob")
    client.get(POSTS, headers=headers)

    # 같은 사용자가 다른 기기에서 좋아요를 누른 경우
    store.seed("communities/c1/posts/mid/likes/bob", {})

    listed = {item['id']: item for item in client.get(POSTS, headers=headers).get_json()['items']}
    assert listed['mid']['is_liked'] is True
