# community_app/engine/paginator.py
import math
from dataclasses import dataclass
from typing import Generic, List, Optional, Sequence, TypeVar

T = TypeVar('T')

ROWS_PER_PAGE = 10


def measure_items_per_row(row_offsets: Optional[Sequence[float]]) -> int:
    """
    화면에 그려진 카드들의 행 시작 위치(offsetTop) 목록에서 한 줄에 몇 개가 들어가는지 셉니다.
    첫 카드와 같은 위치에서 시작하는 선두 카드 수이며, 최소 1입니다.
    """
    if not row_offsets:
        return 1
    first = row_offsets[0]
    count = 0
    for offset in row_offsets:
        if offset != first:
            break
        count += 1
    return max(1, count)


def page_size(items_per_row: int, rows_per_page: int = ROWS_PER_PAGE) -> int:
    return max(1, items_per_row) * max(1, rows_per_page)


def total_pages(item_count: int, size: int) -> int:
    return max(1, math.ceil(item_count / size))


def clamp_page(page: int, pages: int) -> int:
    """필터로 목록이 줄어 범위를 벗어난 페이지를 [1, pages]로 당겨옵니다."""
    return min(max(1, page), pages)


def paginate(items: Sequence[T], page: int, items_per_row: int,
             rows_per_page: int = ROWS_PER_PAGE) -> List[T]:
    size = page_size(items_per_row, rows_per_page)
    pages = total_pages(len(items), size)
    if page < 1 or page > pages:
        raise ValueError(f"페이지 범위를 벗어났습니다: {page} (1~{pages})")
    start = (page - 1) * size
    return list(items[start:start + size])


@dataclass
class Page(Generic[T]):
    items: List[T]
    page: int
    page_size: int
    total_pages: int
    total_items: int

    def meta(self) -> dict:
        return {
            'page': self.page,
            'page_size': self.page_size,
            'total_pages': self.total_pages,
            'total_items': self.total_items,
        }


def build_page(items: Sequence[T], requested_page: int, items_per_row: int,
               rows_per_page: int = ROWS_PER_PAGE) -> Page:
    """요청 페이지를 범위 안으로 보정한 뒤 잘라냅니다."""
    size = page_size(items_per_row, rows_per_page)
    pages = total_pages(len(items), size)
    page = clamp_page(requested_page, pages)
    return Page(
        items=paginate(items, page, items_per_row, rows_per_page),
        page=page,
        page_size=size,
        total_pages=pages,
        total_items=len(items),
    )
