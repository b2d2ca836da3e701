# community_app/engine/list_query.py
"""
커뮤니티 목록 / 타임라인의 검색·필터·정렬 파이프라인.

컬렉션 전체를 한 번에 가져온 뒤 메모리에서 처리합니다. 입력이 바뀔 때마다 전체를 다시
계산하며(증분 diff 없음), 같은 입력에는 항상 같은 결과를 냅니다.
"""
import logging
import re
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Generic, Iterable, List, Optional, TypeVar

from community_app.engine.normalizer import normalize
from community_app.utils.datetime_utils import to_millis

logger = logging.getLogger(__name__)

T = TypeVar('T')

_DIGITS = re.compile(r'\d+')


class SortKey(Enum):
    CREATED_AT = 'createdAt'
    MEMBER_COUNT = 'memberCount'

class SortOrder(Enum):
    ASC = 'asc'
    DESC = 'desc'

class TimelineOrder(Enum):
    NEWEST = 'newest'
    MOST_LIKED = 'likes'


@dataclass(frozen=True)
class CommunitySummary:
    """목록 화면에 필요한 커뮤니티 필드만 담은 투영(projection)"""
    id: str
    name: str
    message: str = ''
    member_count_label: str = ''
    activity_time: str = ''
    tags: tuple = ()
    official: int = 0
    created_at_millis: Optional[int] = None
    thumbnail_url: Optional[str] = None

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> 'CommunitySummary':
        """Firestore 문서에서 변환. 빠지거나 깨진 값은 기본값으로 채웁니다."""
        try:
            official = int(data.get('official') or 0)
        except (TypeError, ValueError):
            official = 0
        image_urls = data.get('imageUrls') or []
        return cls(
            id=doc_id,
            name=str(data.get('name') or ''),
            message=str(data.get('message') or ''),
            member_count_label=str(data.get('memberCount') or ''),
            activity_time=str(data.get('activityTime') or ''),
            tags=tuple(str(t) for t in (data.get('tags') or [])),
            official=official,
            created_at_millis=to_millis(data.get('createdAt')),
            thumbnail_url=data.get('thumbnailUrl') or (image_urls[0] if image_urls else None),
        )


@dataclass(frozen=True)
class ListCriteria:
    keyword: str = ''
    statuses: Optional[FrozenSet[int]] = None   # None = 상태 필터 없음
    favorites_only: bool = False
    favorite_ids: FrozenSet[str] = frozenset()
    sort_key: SortKey = SortKey.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC


def member_count_value(label: Optional[str]) -> int:
    """'11~20人' -> 11, '51人以上' -> 51. 숫자가 없으면 0."""
    match = _DIGITS.search(label or '')
    return int(match.group(0)) if match else 0


def _sort_value(item: CommunitySummary, key: SortKey) -> int:
    if key is SortKey.CREATED_AT:
        return item.created_at_millis or 0
    return member_count_value(item.member_count_label)


def matches_keyword(name: str, tags: Iterable[str], keyword: str) -> bool:
    """
    이름 또는 태그 중 하나라도 키워드를 포함하면 True.
    이름은 대소문자만 무시하는 부분 일치, 태그는 normalize 후 부분 일치입니다.
    """
    trimmed = keyword.strip()
    if not trimmed:
        return True
    if trimmed.lower() in name.lower():
        return True
    needle = normalize(trimmed)
    return any(needle in normalize(tag) for tag in tags)


def query_communities(items: Iterable[CommunitySummary], criteria: ListCriteria) -> List[CommunitySummary]:
    """정렬 -> 상태 필터 -> 키워드 필터 -> 즐겨찾기 필터. 필터끼리는 순서와 무관합니다."""
    # sorted()는 안정 정렬이고 reverse=True도 동일 키의 원래 순서를 유지합니다.
    ordered = sorted(
        items,
        key=lambda c: _sort_value(c, criteria.sort_key),
        reverse=criteria.sort_order is SortOrder.DESC,
    )

    keyword = criteria.keyword.strip()
    result = []
    for c in ordered:
        if criteria.statuses is not None and c.official not in criteria.statuses:
            continue
        if keyword and not matches_keyword(c.name, c.tags, keyword):
            continue
        if criteria.favorites_only and c.id not in criteria.favorite_ids:
            continue
        result.append(c)
    return result


# --- 타임라인 ---

@dataclass(frozen=True)
class TimelinePost:
    id: str
    community_id: str
    title: str = ''
    body: str = ''
    image_url: str = ''
    created_at_millis: Optional[int] = None
    is_pinned: bool = False
    likes_count: int = 0

    @classmethod
    def from_document(cls, doc_id: str, community_id: str, data: Dict[str, Any]) -> 'TimelinePost':
        try:
            likes = max(0, int(data.get('likesCount') or 0))
        except (TypeError, ValueError):
            likes = 0
        return cls(
            id=doc_id,
            community_id=community_id or '',
            title=str(data.get('title') or ''),
            body=str(data.get('body') or ''),
            image_url=str(data.get('imageUrl') or ''),
            created_at_millis=to_millis(data.get('createdAt')),
            is_pinned=bool(data.get('isPinned', False)),
            likes_count=likes,
        )


def query_timeline(posts: Iterable[TimelinePost], order: TimelineOrder = TimelineOrder.NEWEST,
                   favorites_only: bool = False,
                   favorite_community_ids: FrozenSet[str] = frozenset()) -> List[TimelinePost]:
    """최신순 또는 좋아요순(동률이면 최신순) + 즐겨찾기 커뮤니티 필터"""
    if order is TimelineOrder.MOST_LIKED:
        ordered = sorted(posts, key=lambda p: (p.likes_count, p.created_at_millis or 0), reverse=True)
    else:
        ordered = sorted(posts, key=lambda p: p.created_at_millis or 0, reverse=True)

    if favorites_only:
        ordered = [p for p in ordered if p.community_id in favorite_community_ids]
    return ordered


class ListQueryEngine(Generic[T]):
    """
    전체 컬렉션 스냅샷을 들고 있다가 조건이 주어지면 파이프라인을 다시 계산합니다.

    - refresh(): loader로 다시 가져옵니다. 실패하면 마지막 성공 스냅샷을 그대로 유지합니다.
    - replace(): 실시간 감시 알림으로 받은 새 스냅샷으로 교체합니다.
    """
    def __init__(self, loader: Callable[[], List[T]], name: str = 'list'):
        self.loader = loader
        self.name = name
        self._items: List[T] = []
        self._loaded = False
        self._lock = threading.Lock()
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def loaded(self) -> bool:
        return self._loaded

    def snapshot(self) -> List[T]:
        with self._lock:
            return list(self._items)

    def replace(self, items: Iterable[T]) -> None:
        with self._lock:
            self._items = list(items)
            self._loaded = True

    def refresh(self) -> bool:
        try:
            items = self.loader()
        except Exception as e:
            logger.error(f"{self.name} 목록 재조회 실패, 이전 스냅샷 유지: {e}", exc_info=True)
            return False
        self.replace(items)
        logger.info(f"{self.name} 목록 재조회 완료 ({len(items)}건)")
        return True

    def ensure_loaded(self) -> List[T]:
        if not self._loaded:
            self.refresh()
        return self.snapshot()

    def attach(self, unsubscribe: Callable[[], None]) -> None:
        """실시간 감시 해제 함수를 보관합니다 (detach 시 호출)."""
        self.detach()
        self._unsubscribe = unsubscribe

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def results(self, pipeline: Callable[[List[T]], List[T]]) -> List[T]:
        return pipeline(self.ensure_loaded())
