import pytest

from bookstore.core.pagination import build_pagination_meta, page_offset


@pytest.mark.parametrize("page", [1, 2, 3, 7])
@pytest.mark.parametrize("limit", [1, 5, 10])
@pytest.mark.parametrize("total", [0, 1, 9, 10, 11, 30])
def test_next_and_prev_page_laws(page, limit, total):
    meta = build_pagination_meta(page, limit, total)

    assert (meta.next_page is None) == (total <= page * limit)
    assert (meta.prev_page is None) == (page <= 1)
    if meta.next_page is not None:
        assert meta.next_page == page + 1
    if meta.prev_page is not None:
        assert meta.prev_page == page - 1


def test_exact_fit_has_no_next_page():
    meta = build_pagination_meta(page=2, limit=5, total=10)

    assert meta.next_page is None
    assert meta.prev_page == 1


def test_meta_serializes_with_snake_case_keys():
    meta = build_pagination_meta(page=1, limit=10, total=25)

    assert meta.model_dump() == {
        "page": 1,
        "limit": 10,
        "total": 25,
        "next_page": 2,
        "prev_page": None,
    }


def test_page_and_limit_are_clamped():
    meta = build_pagination_meta(page=0, limit=0, total=3)

    assert meta.page == 1
    assert meta.limit == 1
    assert meta.prev_page is None
    assert meta.next_page == 2


@pytest.mark.parametrize(
    "page, limit, expected",
    [(1, 10, 0), (2, 10, 10), (3, 4, 8), (0, 10, 0)],
)
def test_page_offset(page, limit, expected):
    assert page_offset(page, limit) == expected
