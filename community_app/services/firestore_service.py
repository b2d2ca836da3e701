# community_app/services/firestore_service.py
"""
Firestore 문서 저장소 어댑터.

엔진(community_app.engine)은 Firestore SDK를 직접 다루지 않고 `DocumentStore`
인터페이스만 사용합니다. 경로는 Firestore와 같은 계층형 문자열입니다.

    communities/{id}
    communities/{id}/posts/{id}
    communities/{id}/posts/{id}/likes/{uid}
    users/{uid}/favorites/{communityId}
    tags/{id}
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

# --- 컬렉션 이름 (Firestore에는 DDL이 없으므로 여기가 스키마의 기준점입니다) ---
COMMUNITIES = 'communities'
POSTS = 'posts'
LIKES = 'likes'
USERS = 'users'
FAVORITES = 'favorites'
TAGS = 'tags'
REVOKED_TOKENS = 'revoked_tokens'

# (field, op, value) 형식의 조회 조건. op는 Firestore 연산자('==', '>=', 'in' 등)
Predicate = Tuple[str, str, Any]
# (field, 'asc' | 'desc')
OrderBy = Tuple[str, str]


def community_path(community_id: str) -> str:
    return f"{COMMUNITIES}/{community_id}"

def post_path(community_id: str, post_id: str) -> str:
    return f"{COMMUNITIES}/{community_id}/{POSTS}/{post_id}"

def user_path(uid: str) -> str:
    return f"{USERS}/{uid}"


@dataclass
class StoredDocument:
    """조회 결과 한 건. path로 상위 문서(예: 게시글의 커뮤니티)를 복원할 수 있습니다."""
    id: str
    path: str
    data: Dict[str, Any]

    @property
    def parent_id(self) -> Optional[str]:
        """'communities/{cid}/posts/{pid}' -> 'cid' (상위 컬렉션의 상위 문서 ID)"""
        segments = self.path.split('/')
        return segments[-3] if len(segments) >= 4 else None


class StoreTransaction(ABC):
    """run_transaction 안에서만 유효한 트랜잭션 핸들"""

    @abstractmethod
    def get(self, path: str) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    def set(self, path: str, fields: Dict[str, Any], merge: bool = False) -> None: ...

    @abstractmethod
    def update(self, path: str, fields: Dict[str, Any]) -> None: ...

    @abstractmethod
    def delete(self, path: str) -> None: ...


class DocumentStore(ABC):
    """엔진이 의존하는 문서 저장소 기능 집합"""

    @abstractmethod
    def get(self, path: str) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    def set(self, path: str, fields: Dict[str, Any], merge: bool = False) -> None: ...

    @abstractmethod
    def add(self, collection_path: str, fields: Dict[str, Any]) -> str: ...

    @abstractmethod
    def update(self, path: str, fields: Dict[str, Any]) -> None: ...

    @abstractmethod
    def delete(self, path: str) -> None: ...

    @abstractmethod
    def query(self, collection_path: str, predicates: Sequence[Predicate] = (),
              order_by: Sequence[OrderBy] = (), limit: Optional[int] = None,
              group: bool = False) -> List[StoredDocument]: ...

    @abstractmethod
    def subscribe(self, path: str, callback: Callable[[Optional[Dict[str, Any]]], None]) -> Callable[[], None]:
        """문서 감시를 시작하고 해제 함수를 반환합니다. 콜백은 문서가 없으면 None을 받습니다."""

    @abstractmethod
    def subscribe_query(self, collection_path: str, callback: Callable[[List[StoredDocument]], None],
                        predicates: Sequence[Predicate] = (), order_by: Sequence[OrderBy] = (),
                        limit: Optional[int] = None, group: bool = False) -> Callable[[], None]: ...

    @abstractmethod
    def run_transaction(self, fn: Callable[[StoreTransaction], Any]) -> Any: ...

    @abstractmethod
    def server_timestamp(self) -> Any: ...

    @abstractmethod
    def increment(self, amount: int) -> Any: ...


class _FirestoreTransaction(StoreTransaction):
    def __init__(self, db, transaction, timeout: Optional[float]):
        self.db = db
        self.transaction = transaction
        self.timeout = timeout

    def get(self, path):
        snapshot = self.db.document(path).get(transaction=self.transaction, timeout=self.timeout)
        return snapshot.to_dict() if snapshot.exists else None

    def set(self, path, fields, merge=False):
        self.transaction.set(self.db.document(path), fields, merge=merge)

    def update(self, path, fields):
        self.transaction.update(self.db.document(path), fields)

    def delete(self, path):
        self.transaction.delete(self.db.document(path))


class FirestoreDocumentStore(DocumentStore):
    """
    firebase_admin의 Firestore 클라이언트를 사용하는 DocumentStore 구현.
    모든 호출에 고정 타임아웃을 적용하며, 만료 시 SDK 예외가 그대로 전파됩니다.
    """
    def __init__(self, timeout: Optional[float] = None):
        self.db = None
        self.timeout = timeout

    def init_app(self, app):
        """앱 초기화 과정에서 호출되어 실제 DB 연결을 완료합니다."""
        self.db = firestore.client()
        self.timeout = app.config.get('STORE_TIMEOUT_SECONDS', self.timeout)
        logging.info("FirestoreDocumentStore: Firestore 클라이언트가 초기화되었습니다.")

    def get(self, path):
        snapshot = self.db.document(path).get(timeout=self.timeout)
        return snapshot.to_dict() if snapshot.exists else None

    def set(self, path, fields, merge=False):
        self.db.document(path).set(fields, merge=merge, timeout=self.timeout)

    def add(self, collection_path, fields):
        _, doc_ref = self.db.collection(collection_path).add(fields, timeout=self.timeout)
        return doc_ref.id

    def update(self, path, fields):
        self.db.document(path).update(fields, timeout=self.timeout)

    def delete(self, path):
        self.db.document(path).delete(timeout=self.timeout)

    def _build_query(self, collection_path, predicates, order_by, limit, group):
        query = self.db.collection_group(collection_path) if group else self.db.collection(collection_path)
        for field, op, value in predicates:
            query = query.where(filter=FieldFilter(field, op, value))
        for field, direction in order_by:
            query = query.order_by(
                field,
                direction=firestore.Query.DESCENDING if direction == 'desc' else firestore.Query.ASCENDING
            )
        if limit is not None:
            query = query.limit(limit)
        return query

    def query(self, collection_path, predicates=(), order_by=(), limit=None, group=False):
        query = self._build_query(collection_path, predicates, order_by, limit, group)
        return [
            StoredDocument(id=doc.id, path=doc.reference.path, data=doc.to_dict() or {})
            for doc in query.stream(timeout=self.timeout)
        ]

    def subscribe(self, path, callback):
        def on_snapshot(doc_snapshots, changes, read_time):
            # 문서가 아직 없거나 삭제된 경우 스냅샷 목록이 비어 있을 수 있습니다.
            if not doc_snapshots:
                callback(None)
                return
            for snapshot in doc_snapshots:
                callback(snapshot.to_dict() if snapshot.exists else None)

        watch = self.db.document(path).on_snapshot(on_snapshot)
        return watch.unsubscribe

    def subscribe_query(self, collection_path, callback, predicates=(), order_by=(), limit=None, group=False):
        query = self._build_query(collection_path, predicates, order_by, limit, group)

        def on_snapshot(query_snapshot, changes, read_time):
            callback([
                StoredDocument(id=doc.id, path=doc.reference.path, data=doc.to_dict() or {})
                for doc in query_snapshot
            ])

        watch = query.on_snapshot(on_snapshot)
        return watch.unsubscribe

    def run_transaction(self, fn):
        transaction = self.db.transaction()

        @firestore.transactional
        def _run_in_transaction(transaction):
            return fn(_FirestoreTransaction(self.db, transaction, self.timeout))

        return _run_in_transaction(transaction)

    def server_timestamp(self):
        return firestore.SERVER_TIMESTAMP

    def increment(self, amount):
        return firestore.Increment(amount)
