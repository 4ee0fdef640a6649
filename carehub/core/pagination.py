from typing import Any, Dict, Optional, Tuple
import math

from .config import settings


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def get_pagination_params(
    page: Any = None,
    limit: Any = None,
    default_limit: Optional[int] = None,
    max_limit: Optional[int] = None,
) -> Tuple[int, int, int]:
    """Normalize raw page/limit values into (page, limit, skip)."""
    default_limit = default_limit or settings.DEFAULT_PAGINATION_LIMIT
    max_limit = max_limit or settings.MAX_PAGINATION_LIMIT

    page_number = max(1, _to_int(page) or 1)
    limit_value = _to_int(limit) or default_limit
    limit_value = min(max(limit_value, 1), max_limit)
    skip = (page_number - 1) * limit_value

    return page_number, limit_value, skip


def get_pagination_meta(total: int, page: int, limit: int) -> Dict[str, Any]:
    """Pagination metadata returned alongside list responses."""
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit) or 1,
        "has_next": page * limit < total,
        "has_prev": page > 1,
    }
