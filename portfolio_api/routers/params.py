from __future__ import annotations

from fastapi import Query

from portfolio_api.db.pagination import QueryOptions


def get_query_options(
    sort_by: str | None = Query(None, alias="sortBy", description="field:(asc|desc), comma separated"),
    limit: int | None = Query(None, ge=1),
    page: int | None = Query(None, ge=1),
) -> QueryOptions:
    return QueryOptions(sort_by=sort_by, limit=limit, page=page)
