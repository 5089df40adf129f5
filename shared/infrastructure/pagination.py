"""Page/limit pagination shared by every list endpoint.

Responses look like ``{<results_key>: [...], "pagination": {"total",
"page", "limit", "pages"}}``. Non-numeric or out-of-range parameters fall
back to the defaults instead of failing the request, and pages past the
end are simply empty.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List

from rest_framework.pagination import BasePagination  # type: ignore
from rest_framework.response import Response  # type: ignore

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def _positive_int(raw, default: int, maximum: int | None = None) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    if value < 1:
        return default
    if maximum is not None:
        value = min(value, maximum)
    return value


@dataclass
class Page:
    items: List[Any]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0

    def meta(self) -> dict:
        return {"total": self.total, "page": self.page, "limit": self.limit, "pages": self.pages}


def paginate(queryset, page=None, limit=None) -> Page:
    """Slice an ordered queryset into a ``Page``.

    The queryset must carry a total ordering (ending in a unique column)
    so that consecutive pages neither repeat nor skip rows.
    """
    page_number = _positive_int(page, DEFAULT_PAGE)
    page_size = _positive_int(limit, DEFAULT_LIMIT, MAX_LIMIT)
    total = queryset.count()
    offset = (page_number - 1) * page_size
    items = list(queryset[offset:offset + page_size])
    return Page(items=items, total=total, page=page_number, limit=page_size)


class PageLimitPagination(BasePagination):
    """DRF pagination class reading ``?page=`` and ``?limit=``."""

    results_key = "results"

    def paginate_queryset(self, queryset, request, view=None):  # type: ignore
        self.page = paginate(
            queryset,
            request.query_params.get("page"),
            request.query_params.get("limit"),
        )
        return self.page.items

    def get_paginated_response(self, data):  # type: ignore
        return Response({self.results_key: data, "pagination": self.page.meta()})

    def get_paginated_response_schema(self, schema):  # type: ignore
        return {
            "type": "object",
            "properties": {
                self.results_key: schema,
                "pagination": {
                    "type": "object",
                    "properties": {
                        "total": {"type": "integer"},
                        "page": {"type": "integer"},
                        "limit": {"type": "integer"},
                        "pages": {"type": "integer"},
                    },
                },
            },
        }


def pagination_for(key: str) -> type[PageLimitPagination]:
    """Build a pagination class whose results live under ``key``."""
    return type(f"{key.title()}Pagination", (PageLimitPagination,), {"results_key": key})
