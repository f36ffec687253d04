from __future__ import annotations

import pytest

from condorecon.domain.reconciliation import Page, normalize_paging


@pytest.mark.parametrize(
    ("page", "limit", "expected"),
    [
        (1, 20, (1, 20)),
        (0, 20, (1, 20)),
        (-5, 50, (1, 50)),
        (3, 0, (3, 20)),
        (3, 101, (3, 20)),
        (2, 100, (2, 100)),
        (2, 1, (2, 1)),
    ],
)
def test_normalize_paging(page: int, limit: int, expected: tuple[int, int]) -> None:
    assert normalize_paging(page, limit) == expected


@pytest.mark.parametrize(
    ("total", "limit", "pages"),
    [(0, 20, 0), (1, 20, 1), (40, 20, 2), (41, 20, 3)],
)
def test_page_total_pages_rounds_up(total: int, limit: int, pages: int) -> None:
    assert Page[int](total_count=total, page=1, limit=limit).total_pages == pages
