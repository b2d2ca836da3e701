# community_app/api/timeline/services.py
import logging
import threading
from typing import Any, Dict, FrozenSet, List, Optional

from community_app.engine.list_query import ListQueryEngine, TimelineOrder, TimelinePost, query_timeline
from community_app.services.firestore_service import POSTS, DocumentStore, community_path

DELETED_COMMUNITY_NAME = "（削除済み）"
UNNAMED_COMMUNITY_NAME = "（無名コミュニティ）"


class TimelineService:
    """
    커뮤니티를 가로지르는 타임라인.
    timeline=true 인 게시글을 collection group 조회로 최신순 최대 N건 가져옵니다.
    """
    def __init__(self, store: Optional[DocumentStore] = None, fetch_limit: int = 50):
        self.store = store
        self.fetch_limit = fetch_limit
        self.engine: ListQueryEngine[TimelinePost] = ListQueryEngine(self._load_posts, name='timeline')
        # 커뮤니티 이름 캐시 (id -> name). 한 번 조회한 id는 다시 읽지 않습니다.
        self._names: Dict[str, str] = {}
        self._names_lock = threading.Lock()

    def init_app(self, app, store: DocumentStore):
        self.store = store
        self.fetch_limit = app.config.get('TIMELINE_FETCH_LIMIT', self.fetch_limit)

    def _load_posts(self) -> List[TimelinePost]:
        docs = self.store.query(
            POSTS,
            predicates=[('timeline', '==', True)],
            order_by=[('createdAt', 'desc')],
            limit=self.fetch_limit,
            group=True,
        )
        return [TimelinePost.from_document(doc.id, doc.parent_id, doc.data) for doc in docs]

    def community_names(self, community_ids) -> Dict[str, str]:
        with self._names_lock:
            missing = [cid for cid in set(community_ids) if cid and cid not in self._names]
        for cid in missing:
            data = self.store.get(community_path(cid))
            if data is None:
                name = DELETED_COMMUNITY_NAME
            else:
                name = data.get('name') or UNNAMED_COMMUNITY_NAME
            with self._names_lock:
                self._names[cid] = name
        with self._names_lock:
            return {cid: self._names.get(cid, DELETED_COMMUNITY_NAME) for cid in community_ids}

    def get_timeline(self, order: TimelineOrder, favorites_only: bool = False,
                     favorite_community_ids: FrozenSet[str] = frozenset()) -> List[Dict[str, Any]]:
        # 다시 조회합니다. 실패하면 직전 스냅샷이 그대로 쓰입니다.
        if not self.engine.refresh():
            logging.warning("타임라인 재조회 실패, 이전 스냅샷으로 응답합니다.")
        # 방금 재조회했으므로 ensure_loaded로 한 번 더 읽지 않습니다.
        posts = query_timeline(self.engine.snapshot(), order, favorites_only, favorite_community_ids)
        names = self.community_names([p.community_id for p in posts])
        return [
            {
                'id': p.id,
                'communityId': p.community_id,
                'communityName': names.get(p.community_id, DELETED_COMMUNITY_NAME),
                'title': p.title,
                'body': p.body,
                'imageUrl': p.image_url,
                'isPinned': p.is_pinned,
                'likesCount': p.likes_count,
                'createdAt': p.created_at_millis,
            }
            for p in posts
        ]
