from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _check_partial_update(model: BaseModel, nullable: frozenset[str] = frozenset()) -> None:
    """At least one field sent, and none of the sent ones explicitly null."""
    if not model.model_fields_set:
        raise ValueError("at least one field must be provided")
    for name in sorted(model.model_fields_set - nullable):
        if getattr(model, name) is None:
            raise ValueError(f"{name} must not be null")


class PortfolioCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=200)
    public: bool


class PortfolioUpdate(BaseModel):
    # `owner` is accepted here only so the service can reject it explicitly.
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=200)
    public: bool | None = None
    owner: int | None = None

    @model_validator(mode="after")
    def _not_empty(self) -> "PortfolioUpdate":
        _check_partial_update(self, nullable=frozenset({"owner"}))
        return self


class PortfolioOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    owner: int = Field(validation_alias="owner_id")
    public: bool


class InstrumentCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    symbol: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)


class InstrumentUpdate(BaseModel):
    # `portfolio` is accepted here only so the service can reject it explicitly.
    model_config = ConfigDict(extra="forbid")

    symbol: str | None = Field(default=None, min_length=1, max_length=50)
    name: str | None = Field(default=None, min_length=1, max_length=200)
    portfolio: int | None = None

    @model_validator(mode="after")
    def _not_empty(self) -> "InstrumentUpdate":
        _check_partial_update(self, nullable=frozenset({"portfolio"}))
        return self


class InstrumentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    symbol: str
    name: str
    portfolio: int = Field(validation_alias="portfolio_id")
