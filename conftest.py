# conftest.py
"""
테스트 공용 픽스처.

Firestore 대신 쓰는 인메모리 DocumentStore와 Firebase Authentication 대신 쓰는 가짜
IdentityService를 제공합니다. 감시(subscribe) 콜백은 구독 직후와 매 쓰기 직후에 동기적으로
호출됩니다.
"""
import copy
import itertools
import threading
from datetime import datetime, timedelta, timezone

import pytest
from firebase_admin import auth as firebase_auth

from community_app import create_app
from community_app.services.firestore_service import DocumentStore, StoreTransaction, StoredDocument
from community_app.services.identity_service import IdentityService


class StoreUnavailable(RuntimeError):
    """주입된 저장소 장애"""


class _ServerTimestamp:
    def __repr__(self):
        return 'SERVER_TIMESTAMP'

SERVER_TIMESTAMP = _ServerTimestamp()


class Increment:
    def __init__(self, amount):
        self.amount = amount


_OPS = {
    '==': lambda a, b: a == b,
    '!=': lambda a, b: a != b,
    '<': lambda a, b: a < b,
    '<=': lambda a, b: a <= b,
    '>': lambda a, b: a > b,
    '>=': lambda a, b: a >= b,
    'in': lambda a, b: a in b,
    'array_contains': lambda a, b: isinstance(a, list) and b in a,
}


class InMemoryTransaction(StoreTransaction):
    def __init__(self, store):
        self.store = store
        self.writes = []

    def get(self, path):
        return self.store._read(path)

    def set(self, path, fields, merge=False):
        self.writes.append(('set', path, fields, merge))

    def update(self, path, fields):
        self.writes.append(('update', path, fields, False))

    def delete(self, path):
        self.writes.append(('delete', path, None, False))


class InMemoryDocumentStore(DocumentStore):
    """
    경로 -> dict 로 문서를 보관하는 가짜 저장소.

    - fail_writes = True 이면 모든 쓰기/트랜잭션 커밋이 StoreUnavailable로 실패합니다.
    - fail_reads = True 이면 get/query가 실패합니다.
    - server_timestamp()는 호출할 때마다 1초씩 증가하는 시각으로 채워집니다.
    """
    def __init__(self):
        self.docs = {}
        self.fail_writes = False
        self.fail_reads = False
        self.transaction_count = 0
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)
        self._base_time = datetime(2024, 4, 1, tzinfo=timezone.utc)
        self._doc_watchers = {}
        self._query_watchers = {}
        self._watch_ids = itertools.count(1)
        self._lock = threading.RLock()

    # --- 테스트 보조 ---
    def seed(self, path, fields):
        """센티널 없이 문서를 그대로 넣습니다 (감시 알림 포함)."""
        self._commit([('set', path, fields, False)], check_failure=False)

    def exists(self, path):
        return path in self.docs

    def watcher_count(self):
        return sum(len(w) for w in self._doc_watchers.values())

    # --- 내부 ---
    def _read(self, path):
        if self.fail_reads:
            raise StoreUnavailable(f"read failed: {path}")
        data = self.docs.get(path)
        return copy.deepcopy(data) if data is not None else None

    def _now(self):
        return self._base_time + timedelta(seconds=next(self._clock))

    def _resolve(self, existing, fields):
        result = dict(existing or {})
        for key, value in fields.items():
            if value is SERVER_TIMESTAMP:
                result[key] = self._now()
            elif isinstance(value, Increment):
                result[key] = (result.get(key) or 0) + value.amount
            else:
                result[key] = copy.deepcopy(value)
        return result

    def _commit(self, writes, check_failure=True):
        if check_failure and self.fail_writes:
            raise StoreUnavailable("write failed")
        changed = []
        with self._lock:
            # 전부 적용되거나 하나도 적용되지 않도록 사본에 먼저 씁니다.
            docs = dict(self.docs)
            for op, path, fields, merge in writes:
                if op == 'set':
                    base = docs.get(path) if merge else None
                    docs[path] = self._resolve(base, fields)
                elif op == 'update':
                    if path not in docs:
                        raise LookupError(f"No document to update: {path}")
                    docs[path] = self._resolve(docs[path], fields)
                elif op == 'delete':
                    docs.pop(path, None)
                changed.append(path)
            self.docs = docs
        self._notify(changed)

    def _notify(self, paths):
        for path in paths:
            for callback in list(self._doc_watchers.get(path, {}).values()):
                callback(copy.deepcopy(self.docs.get(path)))
        for collection_path, callback, args in list(self._query_watchers.values()):
            callback(self._run_query(collection_path, *args))

    def _in_collection(self, path, collection_path, group):
        segments = path.split('/')
        if group:
            return len(segments) >= 2 and segments[-2] == collection_path
        parent = '/'.join(segments[:-1])
        return parent == collection_path

    def _run_query(self, collection_path, predicates=(), order_by=(), limit=None, group=False):
        matched = []
        for path in sorted(self.docs):
            if not self._in_collection(path, collection_path, group):
                continue
            data = self.docs[path]
            ok = True
            for field, op, value in predicates:
                if field not in data:
                    ok = False
                    break
                try:
                    if not _OPS[op](data[field], value):
                        ok = False
                        break
                except TypeError:
                    ok = False
                    break
            if ok:
                matched.append(StoredDocument(id=path.split('/')[-1], path=path, data=copy.deepcopy(data)))

        for field, direction in reversed(list(order_by)):
            matched = [d for d in matched if field in d.data]
            matched.sort(key=lambda d: d.data[field], reverse=(direction == 'desc'))
        if limit is not None:
            matched = matched[:limit]
        return matched

    # --- DocumentStore ---
    def get(self, path):
        return self._read(path)

    def set(self, path, fields, merge=False):
        self._commit([('set', path, fields, merge)])

    def add(self, collection_path, fields):
        doc_id = f"doc{next(self._ids):04d}"
        self._commit([('set', f"{collection_path}/{doc_id}", fields, False)])
        return doc_id

    def update(self, path, fields):
        self._commit([('update', path, fields, False)])

    def delete(self, path):
        self._commit([('delete', path, None, False)])

    def query(self, collection_path, predicates=(), order_by=(), limit=None, group=False):
        if self.fail_reads:
            raise StoreUnavailable(f"query failed: {collection_path}")
        return self._run_query(collection_path, predicates, order_by, limit, group)

    def subscribe(self, path, callback):
        watch_id = next(self._watch_ids)
        self._doc_watchers.setdefault(path, {})[watch_id] = callback
        callback(copy.deepcopy(self.docs.get(path)))

        def unsubscribe():
            self._doc_watchers.get(path, {}).pop(watch_id, None)
        return unsubscribe

    def subscribe_query(self, collection_path, callback, predicates=(), order_by=(), limit=None, group=False):
        watch_id = next(self._watch_ids)
        args = (tuple(predicates), tuple(order_by), limit, group)
        self._query_watchers[watch_id] = (collection_path, callback, args)
        callback(self._run_query(collection_path, *args))

        def unsubscribe():
            self._query_watchers.pop(watch_id, None)
        return unsubscribe

    def run_transaction(self, fn):
        self.transaction_count += 1
        tx = InMemoryTransaction(self)
        result = fn(tx)
        self._commit(tx.writes)
        return result

    def server_timestamp(self):
        return SERVER_TIMESTAMP

    def increment(self, amount):
        return Increment(amount)


class FakeIdentityService(IdentityService):
    """등록된 토큰 문자열 -> 클레임 매핑으로 ID 토큰 검증을 흉내냅니다."""
    def __init__(self):
        super().__init__()
        self.tokens = {}

    def register(self, token, uid, email=None, email_verified=True, name=None):
        self.tokens[token] = {
            'uid': uid,
            'email': email or f"{uid}@u.tsukuba.ac.jp",
            'email_verified': email_verified,
            'name': name,
        }

    def decode(self, id_token):
        if id_token not in self.tokens:
            raise firebase_auth.InvalidIdTokenError(f"unknown token: {id_token}")
        return dict(self.tokens[id_token])


@pytest.fixture
def store():
    return InMemoryDocumentStore()

@pytest.fixture
def identity():
    return FakeIdentityService()

@pytest.fixture
def app(store, identity):
    app = create_app('testing', document_store=store, identity_service=identity)
    yield app
    app.services['communities'].stop_live_updates()
    app.services['sessions'].close_all()

@pytest.fixture
def client(app):
    return app.test_client()

@pytest.fixture
def login(client, identity, store):
    """
    login(uid, admin=False) -> (headers, tokens)
    사용자 문서를 준비하고 /api/auth/session 으로 JWT를 발급받습니다.
    """
    def _login(uid, admin=False, username=None):
        if admin:
            store.seed(f"users/{uid}", {
                'email': f"{uid}@u.tsukuba.ac.jp",
                'username': username or uid,
                'isAdmin': True,
            })
        token = f"id-token-{uid}"
        identity.register(token, uid)
        response = client.post('/api/auth/session', json={'id_token': token, 'username': username or uid})
        assert response.status_code == 200, response.get_json()
        tokens = response.get_json()
        return {'Authorization': f"Bearer {tokens['access_token']}"}, tokens
    return _login
