"""Domain models for shopping lists."""

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from fridge_inventory.domain.ingredients import AmbiguousRecord, UnmatchedRecord


class ShoppingListStatus(str, Enum):
    """Progress of a shopping list."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class ShoppingListDraft:
    """Header of a shopping list before persistence."""

    user_id: UUID
    title: str
    note: str
    recipe_id: UUID | None = None
    status: ShoppingListStatus = ShoppingListStatus.PENDING


@dataclass(frozen=True)
class ShoppingItemDraft:
    """Consolidated line item before persistence."""

    ingredient_id: UUID | None
    ingredient_name: str
    quantity: float
    unit: str
    category: str


@dataclass(frozen=True)
class ShoppingList:
    """Persisted shopping list header."""

    id: UUID
    user_id: UUID
    title: str
    note: str
    status: ShoppingListStatus
    recipe_id: UUID | None = None


@dataclass(frozen=True)
class ShoppingListItem:
    """Persisted shopping list line item."""

    id: UUID
    shopping_list_id: UUID
    ingredient_id: UUID | None
    ingredient_name: str
    quantity: float
    unit: str
    is_checked: bool = False
    category: str = "others"
    version: int = 1


@dataclass
class ShoppingListResult:
    """Built shopping list together with resolution diagnostics."""

    shopping_list: ShoppingList
    items: list[ShoppingListItem]
    unmatched_ingredients: list[UnmatchedRecord] = field(default_factory=list)
    ambiguous_matches: list[AmbiguousRecord] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
