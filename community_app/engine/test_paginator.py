# community_app/engine/test_paginator.py
import pytest
from community_app.engine.paginator import (
    build_page, clamp_page, measure_items_per_row, page_size, paginate, total_pages
)

ITEMS = list(range(23))

def test_page_size_and_total_pages():
    size = page_size(2, 10)
    assert size == 20
    assert total_pages(len(ITEMS), size) == 2

def test_slices():
    assert paginate(ITEMS, 1, 2, 10) == list(range(20))
    assert paginate(ITEMS, 2, 2, 10) == [20, 21, 22]

def test_out_of_range_page_is_rejected_by_raw_function():
    with pytest.raises(ValueError):
        paginate(ITEMS, 3, 2, 10)
    with pytest.raises(ValueError):
        paginate(ITEMS, 0, 2, 10)

def test_caller_clamps_out_of_range_page():
    assert clamp_page(3, 2) == 2
    assert clamp_page(0, 2) == 1
    page = build_page(ITEMS, 3, 2, 10)
    assert page.page == 2
    assert page.items == [20, 21, 22]
    assert page.meta() == {'page': 2, 'page_size': 20, 'total_pages': 2, 'total_items': 23}

def test_empty_list_has_one_page():
    assert total_pages(0, 20) == 1
    assert build_page([], 5, 3).items == []

@pytest.mark.parametrize("offsets, expected", [
    ([0, 0, 0, 310, 310, 310], 3),
    ([0, 0, 250], 2),
    ([12.5], 1),
    ([], 1),
    (None, 1),
])
def test_measure_items_per_row(offsets, expected):
    assert measure_items_per_row(offsets) == expected

def test_remeasure_changes_page_size():
    # 화면이 좁아져 한 줄 3개 -> 1개가 되면 페이지 크기도 30 -> 10
    wide = build_page(ITEMS, 1, measure_items_per_row([0, 0, 0, 400]))
    narrow = build_page(ITEMS, 1, measure_items_per_row([0, 300, 600]))
    assert wide.page_size == 30 and wide.total_pages == 1
    assert narrow.page_size == 10 and narrow.total_pages == 3
