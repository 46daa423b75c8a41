"""
common.pagination
~~~~~~~~~~~~~~~~~
The pagination contract shared by every ``filter`` endpoint::

    {"items": [...], "total_count": 42, "page": 1, "page_size": 20}

Pages are 1-based.  Asking for a page past the end yields an empty ``items``
list rather than an error, so clients can walk pages until they run dry.
"""
from __future__ import annotations

from django.conf import settings
from django.core.paginator import EmptyPage, Paginator
from django.db.models import QuerySet


def clamp_page_size(page_size: int | None) -> int:
    if not page_size or page_size < 1:
        return settings.DEFAULT_PAGE_SIZE
    return min(page_size, settings.MAX_PAGE_SIZE)


def paginate(
    queryset: QuerySet,
    *,
    page: int = 1,
    page_size: int | None = None,
    serializer_class=None,
) -> dict:
    """
    Slice *queryset* into one page and wrap it in the pagination contract.

    Args:
        queryset: An **ordered** queryset; unordered querysets paginate
            inconsistently.
        page: 1-based page number.  Values below 1 are treated as 1.
        page_size: Requested page size, clamped to ``settings.MAX_PAGE_SIZE``.
        serializer_class: Optional DRF serializer used to render each item.
            When omitted the raw model instances are returned.

    Returns:
        ``{"items", "total_count", "page", "page_size"}``.
    """
    size = clamp_page_size(page_size)
    number = max(page or 1, 1)
    paginator = Paginator(queryset, size)

    try:
        items = list(paginator.page(number).object_list)
    except EmptyPage:
        items = []

    if serializer_class is not None:
        items = serializer_class(items, many=True).data

    return {
        "items": items,
        "total_count": paginator.count,
        "page": number,
        "page_size": size,
    }
