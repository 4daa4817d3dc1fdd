"""Supabase implementation of the ingredient catalog."""

from dataclasses import dataclass
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from fridge_inventory.adapters.supabase_errors import (
    UNIQUE_VIOLATION,
    translate_api_errors,
)
from fridge_inventory.domain.ingredients import Ingredient
from fridge_inventory.errors import DuplicateIngredientError, PersistenceError
from fridge_inventory.services.matcher import IngredientCatalog, MatchMode
from fridge_inventory.services.normalizer import normalize

_COLUMNS = "id, name, category, unit"


@dataclass
class SupabaseIngredientCatalog(IngredientCatalog):
    """Catalog backed by the ``ingredients`` table.

    Rows carry a ``normalized_name`` column holding ``normalize(name)`` with a
    unique index, so lookups never normalize on the database side.
    """

    client: Client

    def find_by_normalized_name(self, key: str, mode: MatchMode) -> list[Ingredient]:
        """Return entries whose normalized name matches the key."""
        if not key:
            return []
        query = self.client.table("ingredients").select(_COLUMNS)
        if mode == MatchMode.EXACT:
            query = query.eq("normalized_name", key)
        elif mode == MatchMode.PREFIX:
            query = query.like("normalized_name", f"{_escape_like(key)}%")
        else:
            query = query.like("normalized_name", f"%{_escape_like(key)}%")
        with translate_api_errors("ingredient lookup"):
            response = query.order("name").execute()
        return [_parse_ingredient(row) for row in response.data or []]

    def get_by_ids(self, ingredient_ids: list[UUID]) -> list[Ingredient]:
        """Return entries for the given ids."""
        if not ingredient_ids:
            return []
        with translate_api_errors("ingredient fetch"):
            response = (
                self.client.table("ingredients")
                .select(_COLUMNS)
                .in_("id", [str(ingredient_id) for ingredient_id in ingredient_ids])
                .execute()
            )
        return [_parse_ingredient(row) for row in response.data or []]

    def create_ingredient(self, name: str, category: str, unit: str) -> Ingredient:
        """Create an entry, raising DuplicateIngredientError on a name clash."""
        try:
            response = (
                self.client.table("ingredients")
                .insert(
                    {
                        "name": name,
                        "normalized_name": normalize(name),
                        "category": category,
                        "unit": unit,
                    }
                )
                .execute()
            )
        except APIError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise DuplicateIngredientError(name) from exc
            raise PersistenceError(f"ingredient create failed: {exc.message}") from exc
        if not response.data:
            raise PersistenceError("Failed to create ingredient")
        return _parse_ingredient(response.data[0])


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _parse_ingredient(row: dict[str, object]) -> Ingredient:
    """Parse an ingredients row into a domain model."""
    return Ingredient(
        id=UUID(str(row["id"])),
        name=str(row.get("name", "")),
        category=str(row.get("category") or "others"),
        unit=str(row.get("unit") or ""),
    )
