import math
from typing import Any, Dict, List, Tuple

from sqlalchemy.orm import Query


def pagination_meta(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "current": page,
        "pages": math.ceil(total / limit) if limit else 0,
        "total": total,
        "limit": limit,
    }


def paginate(query: Query, page: int, limit: int) -> Tuple[List[Any], Dict[str, int]]:
    """Run ``query`` for one page; returns the rows and the pagination block."""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, pagination_meta(page, limit, total)
