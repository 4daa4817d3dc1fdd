"""Dependency container wiring for the application."""

from collections.abc import Callable
from dataclasses import dataclass
from functools import partial

from supabase import create_client

from fridge_inventory.adapters.supabase_catalog_repository import (
    SupabaseIngredientCatalog,
)
from fridge_inventory.adapters.supabase_inventory_repository import (
    SupabaseInventoryRepository,
)
from fridge_inventory.adapters.supabase_shopping_list_repository import (
    SupabaseShoppingListRepository,
)
from fridge_inventory.config import Settings, matcher_settings
from fridge_inventory.services.matcher import IngredientCatalog, IngredientMatcher
from fridge_inventory.services.reconciliation import (
    InventoryRepository,
    ReconciliationService,
)
from fridge_inventory.services.recipe_parsing import RecipeIngredientParser
from fridge_inventory.services.shopping import (
    ShoppingListBuilder,
    ShoppingListRepository,
)
from fridge_inventory.services.shopping_lists import ShoppingListService
from fridge_inventory.services.stock import StockService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    matcher_factory: Callable[[], IngredientMatcher]
    reconciliation_service: ReconciliationService
    recipe_parser: RecipeIngredientParser
    shopping_list_builder: ShoppingListBuilder
    shopping_list_service: ShoppingListService
    stock_service: StockService


def wire_services(
    settings: Settings,
    catalog: IngredientCatalog,
    inventory_repository: InventoryRepository,
    shopping_list_repository: ShoppingListRepository,
) -> AppContainer:
    """Build services on top of the given repositories."""
    matcher_factory = partial(
        IngredientMatcher, catalog=catalog, settings=matcher_settings(settings)
    )
    return AppContainer(
        settings=settings,
        matcher_factory=matcher_factory,
        reconciliation_service=ReconciliationService(
            repository=inventory_repository,
            matcher_factory=matcher_factory,
            min_confidence=settings.ingredient_min_confidence,
            retry_delay_seconds=settings.reconcile_retry_delay_seconds,
        ),
        recipe_parser=RecipeIngredientParser(matcher_factory),
        shopping_list_builder=ShoppingListBuilder(
            catalog=catalog,
            inventory=inventory_repository,
            repository=shopping_list_repository,
            matcher_factory=matcher_factory,
        ),
        shopping_list_service=ShoppingListService(shopping_list_repository),
        stock_service=StockService(
            inventory_repository, expiring_soon_days=settings.expiring_soon_days
        ),
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    return wire_services(
        resolved_settings,
        catalog=SupabaseIngredientCatalog(supabase_client),
        inventory_repository=SupabaseInventoryRepository(supabase_client),
        shopping_list_repository=SupabaseShoppingListRepository(supabase_client),
    )
