from typing import Any, Dict, Iterable, Optional, Type

from fastapi import Query
from pydantic import BaseModel


def success(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def page(items: Iterable[Any], pagination: Dict[str, int], schema: Type[BaseModel]) -> Dict[str, Any]:
    return {"items": [schema.model_validate(item) for item in items], "pagination": pagination}


class PageParams:
    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=100),
    ):
        self.page = page
        self.limit = limit


SORT_ORDER = Query("desc", alias="sortOrder", pattern="^(asc|desc)$")
