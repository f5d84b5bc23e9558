"""Shared schema types: backend wire base, pagination, mutation results."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class BackendModel(BaseModel):
    """Backend documents travel as camelCase JSON; unknown keys are dropped."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Page(BaseModel, Generic[T]):
    items: list[T]
    page: int
    page_size: int
    page_count: int
    total: int


class MutationResult(BaseModel):
    modified: bool
    message: str | None = None
