"""
Page/limit pagination shared by list endpoints.

Out-of-range values are clamped: page >= 1, 1 <= limit <= 100.
"""

from __future__ import annotations

from typing import Callable


DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def clamp_page(page: int | None) -> int:
    return max(page or 1, 1)


def clamp_limit(limit: int | None) -> int:
    if not limit or limit < 1:
        return DEFAULT_LIMIT
    return min(limit, MAX_LIMIT)


def paginate(query, *, page: int | None, limit: int | None, serialize: Callable) -> dict:
    page = clamp_page(page)
    limit = clamp_limit(limit)

    total = query.order_by(None).count()
    total_pages = (total + limit - 1) // limit if total > 0 else 0
    rows = query.offset((page - 1) * limit).limit(limit).all()

    return {
        "items": [serialize(row) for row in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": total_pages,
        },
    }
