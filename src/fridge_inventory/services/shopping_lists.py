"""Item checks and progress tracking for persisted shopping lists."""

import logging
from dataclasses import dataclass
from uuid import UUID

from fridge_inventory.domain.shopping import (
    ShoppingList,
    ShoppingListItem,
    ShoppingListStatus,
)
from fridge_inventory.errors import (
    InvalidInputError,
    NotFoundError,
    VersionConflictError,
)
from fridge_inventory.services.shopping import ShoppingListRepository

MAX_ITEM_QUANTITY = 9999.99

_logger = logging.getLogger(__name__)


@dataclass
class ShoppingListService:
    """Application service for editing shopping lists after creation."""

    repository: ShoppingListRepository

    def check_item(self, item_id: UUID, expected_version: int) -> ShoppingListItem:
        """Mark an item as bought."""
        return self.update_item(item_id, expected_version, is_checked=True)

    def uncheck_item(self, item_id: UUID, expected_version: int) -> ShoppingListItem:
        """Mark an item as not bought."""
        return self.update_item(item_id, expected_version, is_checked=False)

    def update_item(
        self,
        item_id: UUID,
        expected_version: int,
        is_checked: bool | None = None,
        quantity: float | None = None,
    ) -> ShoppingListItem:
        """Apply a check state and/or quantity change to an item.

        The change is only written when the item is still at
        ``expected_version``; otherwise VersionConflictError is raised.
        """
        changes: dict[str, object] = {}
        if is_checked is not None:
            changes["is_checked"] = is_checked
        if quantity is not None:
            if quantity <= 0 or quantity > MAX_ITEM_QUANTITY:
                raise InvalidInputError(
                    [f"quantity must be in (0, {MAX_ITEM_QUANTITY}]"]
                )
            changes["quantity"] = round(quantity, 2)
        if not changes:
            raise InvalidInputError(["no changes given"])

        item = self.repository.get_item(item_id)
        if item is None:
            raise NotFoundError(f"shopping list item {item_id} not found")
        if item.version != expected_version:
            raise VersionConflictError(
                f"shopping list item {item_id} is at version {item.version}, "
                f"expected {expected_version}"
            )
        updated = self.repository.update_item(item_id, changes, expected_version)
        _logger.info("Shopping list item %s updated: %s", item_id, changes)
        return updated

    def completion_percentage(self, list_id: UUID) -> float:
        """Return the share of checked items, 0 for an empty list."""
        items = self._items(list_id)
        if not items:
            return 0.0
        checked = sum(1 for item in items if item.is_checked)
        return round(checked / len(items) * 100, 1)

    def can_be_completed(self, list_id: UUID) -> bool:
        """Return True when the list has items and all are checked."""
        items = self._items(list_id)
        return bool(items) and all(item.is_checked for item in items)

    def mark_in_progress(self, list_id: UUID) -> ShoppingList:
        self._get_list(list_id)
        return self.repository.update_list_status(
            list_id, ShoppingListStatus.IN_PROGRESS
        )

    def mark_completed(self, list_id: UUID) -> ShoppingList:
        self._get_list(list_id)
        shopping_list = self.repository.update_list_status(
            list_id, ShoppingListStatus.COMPLETED
        )
        _logger.info("Shopping list %s completed", list_id)
        return shopping_list

    def _items(self, list_id: UUID) -> list[ShoppingListItem]:
        self._get_list(list_id)
        return self.repository.list_items(list_id)

    def _get_list(self, list_id: UUID) -> ShoppingList:
        shopping_list = self.repository.get_list(list_id)
        if shopping_list is None:
            raise NotFoundError(f"shopping list {list_id} not found")
        return shopping_list
