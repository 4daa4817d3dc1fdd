"""Request bodies accepted by the HTTP API."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class MatchRequest(BaseModel):
    names: list[str] = Field(min_length=1)


class ReconcileRequest(BaseModel):
    """Recognition batch; candidates are validated by the service."""

    source_batch_id: str
    recognized_ingredients: list[dict[str, Any]]


class RecipePayload(BaseModel):
    """Recipe as produced by the LLM provider."""

    id: UUID | None = None
    title: str = Field(min_length=1, max_length=100)
    ingredients: list[str | dict[str, Any]] = Field(default_factory=list)


class ShoppingListRequest(BaseModel):
    recipes: list[RecipePayload]
    group_by_category: bool = True


class ShoppingListItemPatch(BaseModel):
    """Versioned edit of a shopping list item."""

    version: int = Field(ge=1)
    is_checked: bool | None = None
    quantity: float | None = None
