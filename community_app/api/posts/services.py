# community_app/api/posts/services.py
import logging
from typing import Any, Dict, List, Optional, Tuple

from community_app.api.communities.services import NotFoundError
from community_app.engine.counter_transaction import CounterTransaction
from community_app.models.post import Post
from community_app.models.subject import Subject
from community_app.services.firestore_service import LIKES, POSTS, DocumentStore, community_path, post_path
from community_app.services.session_service import SessionRegistry, like_key
from community_app.utils.datetime_utils import to_millis

LIKES_COUNT_FIELD = 'likesCount'


def post_response(community_id: str, post_id: str, data: Dict[str, Any], is_liked: bool = False) -> Dict[str, Any]:
    return {
        'id': post_id,
        'communityId': community_id,
        'title': data.get('title') or '',
        'body': data.get('body') or '',
        'imageUrl': data.get('imageUrl') or '',
        'isPinned': bool(data.get('isPinned', False)),
        'timeline': bool(data.get('timeline', False)),
        'likesCount': max(0, int(data.get(LIKES_COUNT_FIELD) or 0)),
        'createdAt': to_millis(data.get('createdAt')),
        'is_liked': is_liked,
    }


class PostService:
    """
    커뮤니티 블로그 게시글 관련 비즈니스 로직.
    좋아요는 likes 하위 컬렉션의 멤버십 문서 + likesCount 카운터를 하나의 트랜잭션으로 바꿉니다.
    """
    def __init__(self, store: Optional[DocumentStore] = None, sessions: Optional[SessionRegistry] = None,
                 community_service=None):
        self.store = store
        self.sessions = sessions
        self.community_service = community_service

    def init_app(self, app, store: DocumentStore):
        self.store = store

    def _community_or_raise(self, community_id: str) -> Dict[str, Any]:
        data = self.store.get(community_path(community_id))
        if data is None:
            raise NotFoundError("コミュニティが見つかりません。")
        return data

    def _post_or_raise(self, community_id: str, post_id: str) -> Dict[str, Any]:
        data = self.store.get(post_path(community_id, post_id))
        if data is None:
            raise NotFoundError("ブログ記事が見つかりません。")
        return data

    def _require_editor(self, community_id: str, subject: Subject) -> None:
        community = self._community_or_raise(community_id)
        if not self.community_service.can_edit(community, subject):
            raise PermissionError("このコミュニティのブログを編集する権限がありません。")

    def list_posts(self, community_id: str, subject: Subject) -> List[Dict[str, Any]]:
        """고정 글 먼저, 그다음 최신순. 로그인 상태면 반환한 게시글들의 좋아요 감시를 엽니다."""
        self._community_or_raise(community_id)
        docs = self.store.query(f"{community_path(community_id)}/{POSTS}")
        docs.sort(key=lambda d: (bool(d.data.get('isPinned', False)), to_millis(d.data.get('createdAt')) or 0),
                  reverse=True)

        if not subject.is_authenticated:
            return [post_response(community_id, d.id, d.data) for d in docs]

        likes = self.sessions.session_for(subject).likes
        keys = [like_key(community_id, d.id, subject.uid) for d in docs]
        # 화면에 보이는 게시글 집합이 바뀌었으므로 감시 집합도 갱신합니다.
        likes.watch(keys)
        return [
            post_response(community_id, d.id, d.data, is_liked=likes.state(key))
            for d, key in zip(docs, keys)
        ]

    def create_post(self, community_id: str, subject: Subject, data: Dict[str, Any]) -> Dict[str, Any]:
        self._require_editor(community_id, subject)
        post = Post(
            title=data['title'].strip(),
            body=data['body'],
            image_url=data.get('imageUrl') or '',
            timeline=bool(data.get('timeline', False)),
        )
        fields = post.to_firestore()
        fields['createdAt'] = self.store.server_timestamp()
        post_id = self.store.add(f"{community_path(community_id)}/{POSTS}", fields)
        logging.info(f"게시글 생성 완료 (community: {community_id}, post: {post_id})")
        return post_response(community_id, post_id, self._post_or_raise(community_id, post_id))

    def update_post(self, community_id: str, post_id: str, subject: Subject, data: Dict[str, Any]) -> Dict[str, Any]:
        self._require_editor(community_id, subject)
        self._post_or_raise(community_id, post_id)
        if data:
            self.store.update(post_path(community_id, post_id), dict(data))
        return post_response(community_id, post_id, self._post_or_raise(community_id, post_id))

    def toggle_pin(self, community_id: str, post_id: str, subject: Subject) -> Dict[str, Any]:
        self._require_editor(community_id, subject)
        current = self._post_or_raise(community_id, post_id)
        self.store.update(post_path(community_id, post_id), {'isPinned': not current.get('isPinned', False)})
        return post_response(community_id, post_id, self._post_or_raise(community_id, post_id))

    def delete_post(self, community_id: str, post_id: str, subject: Subject) -> None:
        self._require_editor(community_id, subject)
        path = post_path(community_id, post_id)
        self._post_or_raise(community_id, post_id)
        # Firestore는 하위 컬렉션을 자동으로 지우지 않습니다.
        for like in self.store.query(f"{path}/{LIKES}"):
            self.store.delete(like.path)
        self.store.delete(path)
        logging.info(f"게시글 삭제 완료 (community: {community_id}, post: {post_id})")

    def toggle_like(self, community_id: str, post_id: str, subject: Subject) -> Tuple[bool, int]:
        """
        좋아요를 반전하고 (확정된 좋아요 여부, 최신 likesCount)를 반환합니다.
        원격 반영에 실패하면 로컬 상태를 되돌린 뒤 ToggleFailedError가 전파됩니다.
        """
        self._post_or_raise(community_id, post_id)
        likes = self.sessions.session_for(subject).likes
        counter = CounterTransaction(self.store, post_path(community_id, post_id), LIKES_COUNT_FIELD)
        is_liked = likes.toggle(like_key(community_id, post_id, subject.uid), counter=counter)

        latest = self.store.get(post_path(community_id, post_id)) or {}
        return is_liked, max(0, int(latest.get(LIKES_COUNT_FIELD) or 0))
