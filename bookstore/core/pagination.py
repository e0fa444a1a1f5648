from bookstore.schemas.common import PaginationMeta


def page_offset(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * max(limit, 1)


def build_pagination_meta(page: int, limit: int, total: int) -> PaginationMeta:
    """
    Build list metadata.

    next_page is None iff total <= page * limit; prev_page is None iff page <= 1.
    """
    page = max(page, 1)
    limit = max(limit, 1)
    return PaginationMeta(
        page=page,
        limit=limit,
        total=total,
        next_page=page + 1 if total > page * limit else None,
        prev_page=page - 1 if page > 1 else None,
    )
