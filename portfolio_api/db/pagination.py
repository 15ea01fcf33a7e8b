from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from portfolio_api.services.errors import BadRequestError

DEFAULT_LIMIT = 10
DEFAULT_PAGE = 1
DEFAULT_SORT_FIELD = "created_at"

# Real columns that are never usable as a sort key.
_UNSORTABLE = frozenset({"password_hash"})


@dataclass(frozen=True)
class QueryOptions:
    """
    Paging options as received from the query string.

    sort_by: "field:desc,other:asc" (direction defaults to asc).
    """

    sort_by: str | None = None
    limit: int | None = None
    page: int | None = None


class QueryResult:
    """
    One page of ORM rows plus paging totals.

    A plain object (not a dataclass) so response models can read the rows
    through attribute access instead of copying them.
    """

    def __init__(self, results: list[Any], page: int, limit: int, total_pages: int, total_results: int) -> None:
        self.results = results
        self.page = page
        self.limit = limit
        self.total_pages = total_pages
        self.total_results = total_results


def _order_by(model: type[Any], sort_by: str | None) -> list[Any]:
    criteria: list[Any] = []
    seen: set[str] = set()

    for part in (sort_by or DEFAULT_SORT_FIELD).split(","):
        part = part.strip()
        if not part:
            continue
        key, _, direction = part.partition(":")
        key = key.strip()
        direction = (direction.strip() or "asc").lower()

        if key in _UNSORTABLE or key not in model.__table__.columns or key in seen:
            raise BadRequestError(f"Invalid sort field: {key}")
        if direction not in ("asc", "desc"):
            raise BadRequestError(f"Invalid sort order: {direction}")

        column = getattr(model, key)
        criteria.append(column.desc() if direction == "desc" else column.asc())
        seen.add(key)

    # Stable order for rows sharing the same sort key.
    if "id" not in seen:
        criteria.append(model.id.asc())
    return criteria


def paginate(db: Session, stmt: Select, model: type[Any], options: QueryOptions | None = None) -> QueryResult:
    """
    Run `stmt` (a select of `model`, already filtered) one page at a time.

    Counting and fetching use the same WHERE clause, so `total_results`
    always reflects the caller's filters and authorization scope.
    """

    options = options or QueryOptions()
    limit = options.limit if options.limit and options.limit > 0 else DEFAULT_LIMIT
    page = options.page if options.page and options.page > 0 else DEFAULT_PAGE

    total_results = db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0
    total_pages = math.ceil(total_results / limit)

    page_stmt = stmt.order_by(*_order_by(model, options.sort_by)).limit(limit).offset((page - 1) * limit)
    results = list(db.scalars(page_stmt).all())

    return QueryResult(
        results=results,
        page=page,
        limit=limit,
        total_pages=total_pages,
        total_results=total_results,
    )
