"""Supabase implementation of the shopping-list repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from fridge_inventory.adapters.supabase_errors import translate_api_errors
from fridge_inventory.domain.shopping import (
    ShoppingItemDraft,
    ShoppingList,
    ShoppingListDraft,
    ShoppingListItem,
    ShoppingListStatus,
)
from fridge_inventory.errors import (
    NotFoundError,
    PersistenceError,
    VersionConflictError,
)
from fridge_inventory.services.shopping import ShoppingListRepository


@dataclass
class SupabaseShoppingListRepository(ShoppingListRepository):
    """Supabase-backed repository for shopping lists and items."""

    client: Client

    def create_list(
        self, draft: ShoppingListDraft, items: list[ShoppingItemDraft]
    ) -> tuple[ShoppingList, list[ShoppingListItem]]:
        """Create the list and its items in one database function call."""
        payload = {
            "p_list": {
                "user_id": str(draft.user_id),
                "title": draft.title,
                "note": draft.note,
                "status": draft.status.value,
                "recipe_id": str(draft.recipe_id) if draft.recipe_id else None,
            },
            "p_items": [
                {
                    "ingredient_id": (
                        str(item.ingredient_id) if item.ingredient_id else None
                    ),
                    "ingredient_name": item.ingredient_name,
                    "quantity": item.quantity,
                    "unit": item.unit,
                    "category": item.category,
                }
                for item in items
            ],
        }
        with translate_api_errors("shopping list create"):
            response = self.client.rpc(
                "create_shopping_list_with_items", payload
            ).execute()
        data = response.data
        if not isinstance(data, dict) or not data.get("list"):
            raise PersistenceError("Failed to create shopping list")
        return (
            _parse_list(data["list"]),
            [_parse_item(row) for row in data.get("items") or []],
        )

    def get_list(self, list_id: UUID) -> ShoppingList | None:
        """Return a list by id, if present."""
        with translate_api_errors("shopping list fetch"):
            response = (
                self.client.table("shopping_lists")
                .select("*")
                .eq("id", str(list_id))
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_list(response.data[0])

    def list_items(self, list_id: UUID) -> list[ShoppingListItem]:
        """Return all items of a list."""
        with translate_api_errors("shopping list items"):
            response = (
                self.client.table("shopping_list_items")
                .select("*")
                .eq("shopping_list_id", str(list_id))
                .order("created_at")
                .execute()
            )
        return [_parse_item(row) for row in response.data or []]

    def get_item(self, item_id: UUID) -> ShoppingListItem | None:
        """Return an item by id, if present."""
        with translate_api_errors("shopping list item fetch"):
            response = (
                self.client.table("shopping_list_items")
                .select("*")
                .eq("id", str(item_id))
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_item(response.data[0])

    def update_item(
        self, item_id: UUID, changes: dict[str, object], expected_version: int
    ) -> ShoppingListItem:
        """Update an item if its version matches and return the new state."""
        payload = {**changes, "version": expected_version + 1}
        with translate_api_errors("shopping list item update"):
            response = (
                self.client.table("shopping_list_items")
                .update(payload)
                .eq("id", str(item_id))
                .eq("version", expected_version)
                .execute()
            )
        if response.data:
            return _parse_item(response.data[0])
        if self.get_item(item_id) is None:
            raise NotFoundError(f"shopping list item {item_id} not found")
        raise VersionConflictError(
            f"shopping list item {item_id} changed since version {expected_version}"
        )

    def update_list_status(
        self, list_id: UUID, status: ShoppingListStatus
    ) -> ShoppingList:
        """Set the status of a list and return it."""
        with translate_api_errors("shopping list status update"):
            response = (
                self.client.table("shopping_lists")
                .update({"status": status.value})
                .eq("id", str(list_id))
                .execute()
            )
        if not response.data:
            raise NotFoundError(f"shopping list {list_id} not found")
        return _parse_list(response.data[0])


def _parse_list(row: dict[str, object]) -> ShoppingList:
    """Parse a shopping_lists row into a domain model."""
    recipe_id = row.get("recipe_id")
    return ShoppingList(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        title=str(row.get("title") or ""),
        note=str(row.get("note") or ""),
        status=ShoppingListStatus(row.get("status", ShoppingListStatus.PENDING.value)),
        recipe_id=UUID(str(recipe_id)) if recipe_id else None,
    )


def _parse_item(row: dict[str, object]) -> ShoppingListItem:
    """Parse a shopping_list_items row into a domain model."""
    ingredient_id = row.get("ingredient_id")
    return ShoppingListItem(
        id=UUID(str(row["id"])),
        shopping_list_id=UUID(str(row["shopping_list_id"])),
        ingredient_id=UUID(str(ingredient_id)) if ingredient_id else None,
        ingredient_name=str(row.get("ingredient_name") or ""),
        quantity=float(row.get("quantity", 0.0)),
        unit=str(row.get("unit") or ""),
        is_checked=bool(row.get("is_checked", False)),
        category=str(row.get("category") or "others"),
        version=int(row.get("version", 1)),
    )
