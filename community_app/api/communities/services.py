# community_app/api/communities/services.py
import logging
from typing import Any, Dict, FrozenSet, List, Optional

from community_app.engine.list_query import (
    CommunitySummary, ListCriteria, ListQueryEngine, query_communities
)
from community_app.engine.paginator import ROWS_PER_PAGE, Page, build_page, measure_items_per_row
from community_app.models.community import PENDING, Community, LinkItem, clean_links, resolve_thumbnail
from community_app.models.subject import Subject
from community_app.services.firestore_service import (
    COMMUNITIES, FAVORITES, POSTS, LIKES, DocumentStore, community_path, user_path
)
from community_app.services.session_service import SessionRegistry, favorite_key
from community_app.utils.datetime_utils import to_millis

# 편집 폼의 필수 항목과 누락 시 메시지
REQUIRED_FIELDS = [
    ('name', "コミュニティ名は必須です。"),
    ('activityDescription', "活動内容は必須です。"),
    ('activityLocation', "活動場所は必須です。"),
    ('activityTime', "活動頻度は必須です。"),
    ('joinDescription', "参加方法は必須です。"),
    ('memberCount', "メンバー数は必須です。"),
]

class NotFoundError(ValueError):
    """대상 문서(커뮤니티, 사용자)가 없음"""


def _is_blank(value) -> bool:
    return not value or not str(value).strip()

def validate_community_form(data: Dict[str, Any]) -> Optional[str]:
    """저장 직전 검사. 문제가 없으면 None, 있으면 첫 번째 오류 메시지."""
    for key, message in REQUIRED_FIELDS:
        if _is_blank(data.get(key)):
            return message
    has_thumb = not _is_blank(data.get('thumbnailUrl'))
    has_images = any(not _is_blank(u) for u in data.get('imageUrls') or [])
    if not has_thumb and not has_images:
        return "コミュニティ画像は必須です。"
    return None


def community_response(doc_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    response = dict(data)
    response['id'] = doc_id
    response['createdAt'] = to_millis(data.get('createdAt'))
    response.pop('updatedAt', None)
    return response

def summary_response(summary: CommunitySummary) -> Dict[str, Any]:
    return {
        'id': summary.id,
        'name': summary.name,
        'message': summary.message,
        'memberCount': summary.member_count_label,
        'activityTime': summary.activity_time,
        'tags': list(summary.tags),
        'official': summary.official,
        'createdAt': summary.created_at_millis,
        'thumbnailUrl': summary.thumbnail_url,
    }


class CommunityService:
    """
    커뮤니티 목록/상세/편집과 즐겨찾기 토글.

    목록은 컬렉션 전체를 ListQueryEngine 스냅샷으로 들고 있으며, 실시간 감시가 켜져 있으면
    변경 알림마다 스냅샷이 교체됩니다.
    """
    def __init__(self, store: Optional[DocumentStore] = None, sessions: Optional[SessionRegistry] = None,
                 user_service=None, rows_per_page: int = ROWS_PER_PAGE):
        self.store = store
        self.sessions = sessions
        self.user_service = user_service
        self.rows_per_page = rows_per_page
        self.engine: ListQueryEngine[CommunitySummary] = ListQueryEngine(self._load_summaries, name='communities')

    def init_app(self, app, store: DocumentStore):
        self.store = store
        self.rows_per_page = app.config.get('ROWS_PER_PAGE', self.rows_per_page)

    # --- 목록 ---
    def _load_summaries(self) -> List[CommunitySummary]:
        return [CommunitySummary.from_document(doc.id, doc.data) for doc in self.store.query(COMMUNITIES)]

    def _on_collection_change(self, docs) -> None:
        self.engine.replace(CommunitySummary.from_document(doc.id, doc.data) for doc in docs)

    def start_live_updates(self) -> None:
        """communities 컬렉션 전체를 감시해서 목록 스냅샷을 최신으로 유지합니다."""
        unsubscribe = self.store.subscribe_query(COMMUNITIES, self._on_collection_change)
        self.engine.attach(unsubscribe)
        logging.info("커뮤니티 목록 실시간 감시 시작")

    def stop_live_updates(self) -> None:
        self.engine.detach()

    def favorite_ids(self, subject: Subject) -> FrozenSet[str]:
        if not subject.is_authenticated:
            return frozenset()
        docs = self.store.query(f"{user_path(subject.uid)}/{FAVORITES}")
        return frozenset(doc.id for doc in docs)

    def list_communities(self, subject: Subject, args: Dict[str, Any]) -> Page:
        """검색/필터/정렬 후 측정된 한 줄 카드 수 기준으로 페이지를 잘라 반환합니다."""
        favorites_only = bool(args.get('favorites_only'))
        criteria = ListCriteria(
            keyword=args.get('q') or '',
            statuses=args.get('status'),
            favorites_only=favorites_only,
            favorite_ids=self.favorite_ids(subject) if favorites_only else frozenset(),
            sort_key=args['sort'],
            sort_order=args['order'],
        )
        items = self.engine.results(lambda snapshot: query_communities(snapshot, criteria))

        items_per_row = args.get('items_per_row') or measure_items_per_row(args.get('row_offsets'))
        return build_page(items, args.get('page', 1), items_per_row, self.rows_per_page)

    def list_favorites(self, subject: Subject) -> List[Dict[str, Any]]:
        ids = self.favorite_ids(subject)
        snapshot = self.engine.ensure_loaded()
        return [summary_response(c) for c in snapshot if c.id in ids]

    def list_created_by(self, subject: Subject) -> List[Dict[str, Any]]:
        if not subject.is_authenticated:
            return []
        docs = self.store.query(COMMUNITIES, predicates=[('createdBy', '==', subject.uid)])
        items = [CommunitySummary.from_document(doc.id, doc.data) for doc in docs]
        items.sort(key=lambda c: c.created_at_millis or 0, reverse=True)
        return [summary_response(c) for c in items]

    # --- 상세 ---
    def _get_or_raise(self, community_id: str) -> Dict[str, Any]:
        data = self.store.get(community_path(community_id))
        if data is None:
            raise NotFoundError("コミュニティが見つかりません。")
        return data

    def can_edit(self, data: Dict[str, Any], subject: Subject) -> bool:
        if not subject.is_authenticated:
            return False
        if data.get('createdBy') == subject.uid or data.get('ownerId') == subject.uid:
            return True
        return self.user_service.is_admin(subject.uid)

    def _require_editor(self, data: Dict[str, Any], subject: Subject) -> None:
        if not self.can_edit(data, subject):
            raise PermissionError("このコミュニティを編集する権限がありません。")

    def get_community(self, community_id: str, subject: Subject) -> Dict[str, Any]:
        data = self._get_or_raise(community_id)
        response = community_response(community_id, data)
        response['can_edit'] = self.can_edit(data, subject)
        if subject.is_authenticated:
            favorites = self.sessions.session_for(subject).favorites
            key = favorite_key(subject.uid, community_id)
            # 상세 화면에 보이는 커뮤니티가 바뀌었으므로 즐겨찾기 감시도 이 키로 교체합니다.
            favorites.watch([key])
            response['is_favorite'] = favorites.state(key)
        else:
            response['is_favorite'] = False
        return response

    # --- 생성/편집/삭제 ---
    def create_community(self, subject: Subject, form: Dict[str, Any]) -> Dict[str, Any]:
        image_urls = [u for u in form.get('imageUrls') or [] if not _is_blank(u)]
        # 공인 여부는 관리자 심사 대상이므로 폼의 official 값은 무시하고 심사 중(2)으로 시작합니다.
        community = Community(
            name=(form.get('name') or '').strip(),
            message=form.get('message') or '',
            member_count=form.get('memberCount') or '',
            activity_description=form.get('activityDescription') or '',
            activity_time=form.get('activityTime') or '',
            activity_location=form.get('activityLocation') or '',
            join_description=form.get('joinDescription') or '',
            contact=form.get('contact') or '',
            url=form.get('url') or '',
            image_urls=image_urls,
            thumbnail_url=resolve_thumbnail(image_urls, form.get('thumbnailUrl')),
            tags=list(dict.fromkeys(form.get('tags') or [])),
            sns_urls=[LinkItem(**link) for link in clean_links(form.get('snsUrls'))],
            join_urls=[LinkItem(**link) for link in clean_links(form.get('joinUrls'))],
            official=PENDING,
            created_by=subject.uid,
        )
        data = community.to_firestore()

        error = validate_community_form(data)
        if error:
            raise ValueError(error)

        data['createdAt'] = self.store.server_timestamp()
        community_id = self.store.add(COMMUNITIES, data)
        logging.info(f"커뮤니티 생성 완료 (id: {community_id}, uid: {subject.uid})")
        self.engine.refresh()
        return community_response(community_id, self._get_or_raise(community_id))

    def update_community(self, community_id: str, subject: Subject, form: Dict[str, Any]) -> Dict[str, Any]:
        current = self._get_or_raise(community_id)
        self._require_editor(current, subject)

        if 'official' in form and form['official'] != current.get('official') \
                and not self.user_service.is_admin(subject.uid):
            raise PermissionError("公認ステータスは管理者のみ変更できます。")

        merged = dict(current)
        merged.update(form)
        if 'imageUrls' in form:
            merged['imageUrls'] = [u for u in form['imageUrls'] if not _is_blank(u)]
        merged['thumbnailUrl'] = resolve_thumbnail(merged.get('imageUrls') or [], merged.get('thumbnailUrl'))

        error = validate_community_form(merged)
        if error:
            raise ValueError(error)

        updates = dict(form)
        updates['thumbnailUrl'] = merged['thumbnailUrl']
        if 'imageUrls' in form:
            updates['imageUrls'] = merged['imageUrls']
        if 'snsUrls' in form:
            updates['snsUrls'] = clean_links(form['snsUrls'])
        if 'joinUrls' in form:
            updates['joinUrls'] = clean_links(form['joinUrls'])
        if 'tags' in form:
            updates['tags'] = list(dict.fromkeys(form['tags']))

        self.store.update(community_path(community_id), updates)
        logging.info(f"커뮤니티 수정 완료 (id: {community_id}, uid: {subject.uid})")
        self.engine.refresh()
        return community_response(community_id, self._get_or_raise(community_id))

    def delete_community(self, community_id: str, subject: Subject) -> int:
        """커뮤니티와 하위 게시글(및 좋아요 문서)을 모두 삭제하고, 삭제한 게시글 수를 반환합니다."""
        current = self._get_or_raise(community_id)
        self._require_editor(current, subject)

        posts_path = f"{community_path(community_id)}/{POSTS}"
        posts = self.store.query(posts_path)
        for post in posts:
            for like in self.store.query(f"{post.path}/{LIKES}"):
                self.store.delete(like.path)
            self.store.delete(post.path)
        self.store.delete(community_path(community_id))
        logging.info(f"커뮤니티 삭제 완료 (id: {community_id}, posts: {len(posts)})")
        self.engine.refresh()
        return len(posts)

    def assign_owner(self, community_id: str, subject: Subject, owner_id: str) -> Dict[str, Any]:
        current = self._get_or_raise(community_id)
        self._require_editor(current, subject)
        if self.user_service.get_user(owner_id) is None:
            raise NotFoundError("指定されたユーザーが見つかりません。")
        self.store.update(community_path(community_id), {'ownerId': owner_id})
        logging.info(f"대표자 변경 (community: {community_id}, owner: {owner_id})")
        return community_response(community_id, self._get_or_raise(community_id))

    # --- 즐겨찾기 ---
    def toggle_favorite(self, community_id: str, subject: Subject) -> bool:
        """즐겨찾기를 반전하고 확정 상태를 반환합니다. 실패 시 ToggleFailedError (이미 롤백됨)."""
        self._get_or_raise(community_id)
        session = self.sessions.session_for(subject)
        return session.favorites.toggle(favorite_key(subject.uid, community_id))
