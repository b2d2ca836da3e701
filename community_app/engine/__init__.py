# community_app/engine/__init__.py
"""
목록/상호작용 엔진 패키지

좋아요·즐겨찾기 낙관적 토글, 카운터 트랜잭션, 목록 검색/정렬/페이지네이션,
태그 정규화와 중복 제거를 담당합니다. HTTP 계층(community_app.api)이 호출자입니다.
"""

from .normalizer import normalize
from .counter_transaction import AdjustResult, CounterTransaction
from .toggle_store import MembershipKey, ToggleFailedError, ToggleStore
from .watches import WatchCoordinator
from .list_query import (
    CommunitySummary, ListCriteria, ListQueryEngine,
    SortKey, SortOrder, TimelineOrder, TimelinePost,
    member_count_value, query_communities, query_timeline
)
from .paginator import (
    ROWS_PER_PAGE, Page,
    build_page, clamp_page, measure_items_per_row, page_size, paginate, total_pages
)
from .tags import Tag, resolve_or_create_tag, suggest_tags

__all__ = [
    'normalize',
    'AdjustResult', 'CounterTransaction',
    'MembershipKey', 'ToggleFailedError', 'ToggleStore',
    'WatchCoordinator',
    'CommunitySummary', 'ListCriteria', 'ListQueryEngine',
    'SortKey', 'SortOrder', 'TimelineOrder', 'TimelinePost',
    'member_count_value', 'query_communities', 'query_timeline',
    'ROWS_PER_PAGE', 'Page',
    'build_page', 'clamp_page', 'measure_items_per_row', 'page_size', 'paginate', 'total_pages',
    'Tag', 'resolve_or_create_tag', 'suggest_tags'
]
