from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """Wire shape of every list endpoint: {results, page, limit, totalPages, totalResults}."""

    model_config = ConfigDict(from_attributes=True)

    results: list[T]
    page: int
    limit: int
    total_pages: int = Field(serialization_alias="totalPages")
    total_results: int = Field(serialization_alias="totalResults")
