"""
Shared list parameters, ordering and pagination headers
"""

import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from fastapi import Query, Response
from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from club_manager.core.exceptions import ValidationError

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class ListParams:
    """page / pageSize / orderBy / orderDirection / recherche query parameters"""

    default_page_size = DEFAULT_PAGE_SIZE

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number starting from 1"),
        page_size: Optional[int] = Query(
            None, alias="pageSize", ge=1, le=MAX_PAGE_SIZE, description="Items per page"
        ),
        order_by: Optional[str] = Query(None, alias="orderBy"),
        order_direction: str = Query("asc", alias="orderDirection"),
        recherche: Optional[str] = Query(None, description="Free text search"),
    ):
        direction = order_direction.strip().lower()
        if direction not in ("asc", "desc"):
            raise ValidationError("orderDirection must be 'asc' or 'desc'")

        self.page = page
        self.page_size = page_size or self.default_page_size
        self.order_by = order_by.strip().lower() if order_by else None
        self.descending = direction == "desc"
        self.recherche = recherche.strip() if recherche and recherche.strip() else None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.page_size) if total > 0 else 0


class ReportListParams(ListParams):
    default_page_size = 50


def search_filter(term: Optional[str], *columns):
    """Case-insensitive contains over any of the columns"""
    if not term:
        return None
    pattern = f"%{term.lower()}%"
    return or_(*(func.lower(column).like(pattern) for column in columns))


def apply_ordering(query, params: ListParams, columns: Dict[str, Any], default: str):
    """Order by a whitelisted column; unknown keys fall back to the default"""
    column = columns.get(params.order_by or default, columns[default])
    ordered = column.desc() if params.descending else column.asc()
    return query.order_by(ordered)


async def paginate(
    session: AsyncSession, query, params: ListParams, scalars: bool = True
) -> Tuple[List[Any], int]:
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await session.execute(count_query)).scalar_one()

    result = await session.execute(query.offset(params.offset).limit(params.page_size))
    items = result.scalars().all() if scalars else result.all()
    return list(items), total


def set_pagination_headers(response: Response, params: ListParams, total: int):
    response.headers["X-Total-Count"] = str(total)
    response.headers["X-Page"] = str(params.page)
    response.headers["X-Page-Size"] = str(params.page_size)
    response.headers["X-Total-Pages"] = str(params.total_pages(total))


def page_slice(items: Sequence[Any], params: ListParams) -> List[Any]:
    """Paginate an already materialized list"""
    return list(items[params.offset : params.offset + params.page_size])
