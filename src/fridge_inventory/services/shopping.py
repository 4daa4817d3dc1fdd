"""Shopping-list generation from recipe requirements and current stock."""

import logging
from collections import defaultdict
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from fridge_inventory.domain.ingredients import Category, Ingredient
from fridge_inventory.domain.recipes import Recipe, RecipeIngredientRequirement
from fridge_inventory.domain.shopping import (
    ShoppingItemDraft,
    ShoppingList,
    ShoppingListDraft,
    ShoppingListItem,
    ShoppingListResult,
    ShoppingListStatus,
)
from fridge_inventory.errors import InvalidInputError, PersistenceError
from fridge_inventory.services import units
from fridge_inventory.services.matcher import IngredientCatalog, IngredientMatcher
from fridge_inventory.services.normalizer import normalize
from fridge_inventory.services.reconciliation import InventoryRepository

DEFAULT_AMOUNT = 1.0
DEFAULT_UNIT = units.base_unit_for(units.Dimension.COUNT)
CATEGORY_ORDER: tuple[str, ...] = tuple(category.value for category in Category)

_logger = logging.getLogger(__name__)


class ShoppingListRepository(Protocol):
    """Persistence interface for shopping lists and their items."""

    def create_list(
        self, draft: ShoppingListDraft, items: list[ShoppingItemDraft]
    ) -> tuple[ShoppingList, list[ShoppingListItem]]:
        """Create the header and every item in one transaction."""

    def get_list(self, list_id: UUID) -> ShoppingList | None:
        """Return a list by id, if present."""

    def list_items(self, list_id: UUID) -> list[ShoppingListItem]:
        """Return all items of a list."""

    def get_item(self, item_id: UUID) -> ShoppingListItem | None:
        """Return an item by id, if present."""

    def update_item(
        self, item_id: UUID, changes: dict[str, object], expected_version: int
    ) -> ShoppingListItem:
        """Update an item if its version matches and return the new state."""

    def update_list_status(
        self, list_id: UUID, status: ShoppingListStatus
    ) -> ShoppingList:
        """Set the status of a list and return it."""


@dataclass
class ShoppingListBuilder:
    """Builds one consolidated shopping list for one or more recipes."""

    catalog: IngredientCatalog
    inventory: InventoryRepository
    repository: ShoppingListRepository
    matcher_factory: Callable[[], IngredientMatcher]

    def build(
        self,
        user_id: UUID | None,
        recipes: Sequence[Recipe],
        group_by_category: bool = True,
    ) -> ShoppingListResult:
        """Compute missing quantities and persist them as a shopping list.

        Requirements are summed per ingredient in the catalog unit before the
        user's available stock is subtracted once. Requirements whose unit
        cannot be converted are listed with their recipe quantity and unit,
        without touching stock, and produce a warning.
        """
        _validate(user_id, recipes)
        matcher = self.matcher_factory()
        warnings: list[str] = []
        resolved = self._resolve_ingredients(recipes, matcher)

        lines: list[ShoppingItemDraft | None] = []
        positions: dict[UUID, int] = {}
        totals: dict[UUID, float] = defaultdict(float)
        ingredients: dict[UUID, Ingredient] = {}
        raw_counts: dict[UUID, int] = defaultdict(int)

        for recipe in recipes:
            for requirement in recipe.ingredients:
                if requirement.is_optional:
                    continue
                amount = _required_amount(requirement)
                ingredient = resolved.get(_requirement_key(requirement))
                if ingredient is None:
                    lines.append(
                        ShoppingItemDraft(
                            ingredient_id=None,
                            ingredient_name=requirement.ingredient_name.strip(),
                            quantity=amount,
                            unit=_clean_unit(requirement.unit) or DEFAULT_UNIT,
                            category=Category.OTHERS.value,
                        )
                    )
                    continue

                target_unit = ingredient.unit or DEFAULT_UNIT
                recipe_unit = _clean_unit(requirement.unit) or target_unit
                converted = units.convert(amount, recipe_unit, target_unit)
                if converted is None:
                    message = (
                        f"Cannot convert {amount:g}{recipe_unit} of {ingredient.name} "
                        f"in {recipe.title} to {target_unit}; stock not subtracted"
                    )
                    _logger.warning(message)
                    warnings.append(message)
                    raw_counts[ingredient.id] += 1
                    lines.append(
                        ShoppingItemDraft(
                            ingredient_id=ingredient.id,
                            ingredient_name=ingredient.name,
                            quantity=amount,
                            unit=recipe_unit,
                            category=_category_of(ingredient),
                        )
                    )
                    continue
                if ingredient.id not in positions:
                    positions[ingredient.id] = len(lines)
                    lines.append(None)
                ingredients[ingredient.id] = ingredient
                totals[ingredient.id] += converted

        available = self._available_stock(user_id, ingredients, warnings)
        for ingredient_id, required in totals.items():
            ingredient = ingredients[ingredient_id]
            shortage = required - available.get(ingredient_id, 0.0)
            if raw_counts.get(ingredient_id):
                message = (
                    f"{ingredient.name}: {raw_counts[ingredient_id]} requirement(s) "
                    "in non-convertible units are listed separately"
                )
                _logger.warning(message)
                warnings.append(message)
            if shortage <= 0:
                continue
            lines[positions[ingredient_id]] = ShoppingItemDraft(
                ingredient_id=ingredient_id,
                ingredient_name=ingredient.name,
                quantity=shortage,
                unit=ingredient.unit or DEFAULT_UNIT,
                category=_category_of(ingredient),
            )

        items = consolidate([line for line in lines if line is not None])
        if group_by_category:
            items = group_by_category_order(items)

        draft = _list_draft(user_id, recipes)
        try:
            shopping_list, persisted = self.repository.create_list(draft, items)
        except PersistenceError:
            _logger.exception("Failed to persist shopping list for user %s", user_id)
            raise
        _logger.info(
            "Shopping list %s created with %s items for user %s",
            shopping_list.id,
            len(persisted),
            user_id,
        )
        return ShoppingListResult(
            shopping_list=shopping_list,
            items=persisted,
            unmatched_ingredients=matcher.unmatched_ingredients,
            ambiguous_matches=matcher.ambiguous_matches,
            warnings=warnings,
        )

    def _resolve_ingredients(
        self, recipes: Sequence[Recipe], matcher: IngredientMatcher
    ) -> dict[object, Ingredient]:
        """Map requirement keys to catalog entries by id, then by name."""
        requirements = [
            requirement
            for recipe in recipes
            for requirement in recipe.ingredients
            if not requirement.is_optional
        ]
        refs = list(
            {
                requirement.ingredient_ref
                for requirement in requirements
                if requirement.ingredient_ref is not None
            }
        )
        by_id = {
            ingredient.id: ingredient
            for ingredient in (self.catalog.get_by_ids(refs) if refs else [])
        }
        resolved: dict[object, Ingredient] = {}
        pending_names: list[str] = []
        for requirement in requirements:
            ref = requirement.ingredient_ref
            if ref is not None and ref in by_id:
                resolved[ref] = by_id[ref]
            else:
                pending_names.append(requirement.ingredient_name)

        if pending_names:
            for name, result in matcher.match_batch(pending_names).items():
                if result is not None:
                    resolved[normalize(name)] = result.ingredient
        for requirement in requirements:
            ref = requirement.ingredient_ref
            if ref is not None and ref not in resolved:
                match = resolved.get(normalize(requirement.ingredient_name))
                if match is not None:
                    resolved[ref] = match
        return resolved

    def _available_stock(
        self,
        user_id: UUID,
        ingredients: dict[UUID, Ingredient],
        warnings: list[str],
    ) -> dict[UUID, float]:
        """Sum the user's available rows in each ingredient's catalog unit."""
        if not ingredients:
            return {}
        available: dict[UUID, float] = defaultdict(float)
        for row in self.inventory.list_available(user_id, list(ingredients)):
            ingredient = ingredients.get(row.ingredient_id)
            if ingredient is None:
                continue
            target_unit = ingredient.unit or DEFAULT_UNIT
            quantity = units.convert(row.quantity, row.unit or target_unit, target_unit)
            if quantity is None:
                message = (
                    f"Stock of {ingredient.name} in {row.unit} cannot be compared "
                    f"with {target_unit}"
                )
                _logger.warning(message)
                warnings.append(message)
                continue
            available[row.ingredient_id] += quantity
        return available


def consolidate(lines: list[ShoppingItemDraft]) -> list[ShoppingItemDraft]:
    """Merge lines sharing an ingredient (or name) and unit, then round."""
    merged: dict[tuple[object, str], ShoppingItemDraft] = {}
    for line in lines:
        identity = line.ingredient_id or normalize(line.ingredient_name)
        key = (identity or line.ingredient_name, line.unit)
        current = merged.get(key)
        if current is None:
            merged[key] = line
            continue
        merged[key] = ShoppingItemDraft(
            ingredient_id=current.ingredient_id,
            ingredient_name=current.ingredient_name,
            quantity=current.quantity + line.quantity,
            unit=current.unit,
            category=current.category,
        )
    return [
        ShoppingItemDraft(
            ingredient_id=item.ingredient_id,
            ingredient_name=item.ingredient_name,
            quantity=normalize_quantity(item.quantity),
            unit=item.unit,
            category=item.category,
        )
        for item in merged.values()
    ]


def normalize_quantity(amount: float) -> float:
    """Coerce non-positive amounts to 1.0 and round to 2 decimals."""
    if amount <= 0:
        return 1.0
    return round(float(amount), 2)


def group_by_category_order(items: list[ShoppingItemDraft]) -> list[ShoppingItemDraft]:
    """Order items by the fixed category order, then by name."""
    grouped: dict[str, list[ShoppingItemDraft]] = defaultdict(list)
    for item in items:
        grouped[item.category or Category.OTHERS.value].append(item)
    extra = sorted(category for category in grouped if category not in CATEGORY_ORDER)
    ordered: list[ShoppingItemDraft] = []
    for category in (*CATEGORY_ORDER, *extra):
        ordered.extend(
            sorted(grouped.get(category, []), key=lambda item: item.ingredient_name)
        )
    return ordered


def _validate(user_id: UUID | None, recipes: Sequence[Recipe]) -> None:
    messages: list[str] = []
    if user_id is None:
        messages.append("user is required")
    if not recipes:
        messages.append("at least one recipe is required")
    for recipe in recipes or []:
        if not recipe.ingredients:
            messages.append(f"recipe {recipe.title!r} has no ingredients")
        if user_id is not None and recipe.user_id != user_id:
            messages.append(f"recipe {recipe.title!r} does not belong to the user")
    if messages:
        raise InvalidInputError(messages)


def _list_draft(user_id: UUID, recipes: Sequence[Recipe]) -> ShoppingListDraft:
    if len(recipes) == 1:
        title = f"Shopping list for {recipes[0].title}"
        recipe_id = recipes[0].id
    else:
        title = f"Shopping list for {len(recipes)} recipes"
        recipe_id = None
    note = "Recipes: " + ", ".join(recipe.title for recipe in recipes)
    return ShoppingListDraft(
        user_id=user_id, title=title, note=note, recipe_id=recipe_id
    )


def _required_amount(requirement: RecipeIngredientRequirement) -> float:
    if requirement.amount is not None and requirement.amount > 0:
        return float(requirement.amount)
    return DEFAULT_AMOUNT


def _requirement_key(requirement: RecipeIngredientRequirement) -> object:
    if requirement.ingredient_ref is not None:
        return requirement.ingredient_ref
    return normalize(requirement.ingredient_name)


def _clean_unit(unit: str | None) -> str:
    return unit.strip() if unit else ""


def _category_of(ingredient: Ingredient) -> str:
    category = ingredient.category
    if isinstance(category, Category):
        return category.value
    return category or Category.OTHERS.value
