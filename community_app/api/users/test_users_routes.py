# community_app/api/users/test_users_routes.py
from datetime import datetime, timezone

import pytest

@pytest.fixture
def people(store):
    store.seed("users/u1", {'email': "yamada@u.tsukuba.ac.jp", 'username': "yamada"})
    store.seed("users/u2", {'email': "yamamoto@u.tsukuba.ac.jp", 'username': "yamamoto"})
    store.seed("users/u3", {'email': "tanaka@u.tsukuba.ac.jp", 'username': "tanaka"})

def test_search_by_username_prefix(client, login, people):
    headers, _ = login("alice")

    response = client.get('/api/users/search?q=yama', headers=headers)

    assert response.status_code == 200
    assert [u['username'] for u in response.get_json()] == ["yamada", "yamamoto"]

def test_search_by_exact_email(client, login, people):
    headers, _ = login("alice")

    found = client.get('/api/users/search?q=Tanaka@u.tsukuba.ac.jp', headers=headers).get_json()
    partial = client.get('/api/users/search?q=tana@u.tsukuba.ac.jp', headers=headers).get_json()

    assert [u['uid'] for u in found] == ["u3"]
    assert partial == []

def test_search_requires_query(client, login):
    headers, _ = login("alice")
    assert client.get('/api/users/search', headers=headers).status_code == 400

def test_search_requires_login(client, people):
    assert client.get('/api/users/search?q=yama').status_code == 401

def test_my_communities_and_favorites(client, store, login):
    headers, _ = login("alice")
    store.seed("communities/mine", {'name': "自分の会", 'createdBy': "alice",
                                    'createdAt': datetime(2024, 4, 1, tzinfo=timezone.utc)})
    store.seed("communities/other", {'name': "他人の会", 'createdBy': "bob",
                                     'createdAt': datetime(2024, 4, 2, tzinfo=timezone.utc)})
    client.post('/api/communities/other/favorite', headers=headers)

    mine = client.get('/api/me/communities', headers=headers).get_json()['items']
    favorites = client.get('/api/me/favorites', headers=headers).get_json()['items']

    assert [c['id'] for c in mine] == ["mine"]
    assert [c['id'] for c in favorites] == ["other"]
