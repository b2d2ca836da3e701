# community_app/api/tags/test_tags_routes.py

def resolve(client, headers, name):
    return client.post('/api/tags', headers=headers, json={'name': name})

def test_resolve_deduplicates_by_normalized_name(client, store, login):
    headers, _ = login("alice")

    created = resolve(client, headers, "プログラミング").get_json()
    again = resolve(client, headers, "ぷろぐらみんぐ").get_json()

    assert again['id'] == created['id']
    assert again['name'] == "プログラミング"
    assert len(store.query("tags")) == 1

def test_blank_tag_is_rejected(client, store, login):
    headers, _ = login("alice")
    response = resolve(client, headers, "   ")
    assert response.status_code == 400
    assert response.get_json()['error_code'] == "INVALID_TAG"
    assert store.query("tags") == []

def test_resolve_requires_login(client):
    assert client.post('/api/tags', json={'name': "猫"}).status_code == 401

def test_suggestions(client, login):
    headers, _ = login("alice")
    for name in ["プログラミング", "プロレス", "映画"]:
        resolve(client, headers, name)

    items = client.get('/api/tags?q=ぷろ').get_json()['items']

    assert [item['name'] for item in items] == ["プロレス", "プログラミング"]
    assert client.get('/api/tags').get_json()['items'] == []
