"""FastAPI application factory."""

import logging
from dataclasses import asdict
from uuid import UUID, uuid4

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from fridge_inventory.api.models import (
    MatchRequest,
    ReconcileRequest,
    ShoppingListItemPatch,
    ShoppingListRequest,
)
from fridge_inventory.app_logging import configure_logging
from fridge_inventory.containers import AppContainer
from fridge_inventory.domain.ingredients import MatchResult
from fridge_inventory.domain.inventory import ReconcileReport
from fridge_inventory.domain.recipes import Recipe
from fridge_inventory.errors import (
    InvalidInputError,
    NotFoundError,
    PersistenceError,
    TransientStoreError,
    VersionConflictError,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    app = FastAPI()
    app.state.container = container

    @app.exception_handler(InvalidInputError)
    async def invalid_input(_: Request, exc: InvalidInputError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": exc.messages},
        )

    @app.exception_handler(NotFoundError)
    async def not_found(_: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)}
        )

    @app.exception_handler(VersionConflictError)
    async def version_conflict(_: Request, exc: VersionConflictError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
        )

    @app.exception_handler(PersistenceError)
    @app.exception_handler(TransientStoreError)
    async def store_failure(_: Request, exc: Exception) -> JSONResponse:
        logger.error("Store failure: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/ingredients/match")
    async def match_ingredients(
        body: MatchRequest, request: Request
    ) -> dict[str, object]:
        """Resolve free-text names against the catalog."""
        state_container: AppContainer = request.app.state.container
        matcher = state_container.matcher_factory()
        results = matcher.match_batch(body.names)
        return {
            "matches": {
                name: _match_payload(result) for name, result in results.items()
            },
            "unmatched_ingredients": [
                asdict(record) for record in matcher.unmatched_ingredients
            ],
            "ambiguous_matches": [
                asdict(record) for record in matcher.ambiguous_matches
            ],
        }

    @app.post("/users/{user_id}/inventory/reconcile")
    async def reconcile_inventory(
        user_id: UUID, body: ReconcileRequest, request: Request
    ) -> dict[str, object]:
        """Merge a recognition batch into the user's inventory."""
        state_container: AppContainer = request.app.state.container
        report = state_container.reconciliation_service.reconcile(
            user_id, body.recognized_ingredients, body.source_batch_id
        )
        return _report_payload(report)

    @app.post("/users/{user_id}/shopping-lists", status_code=status.HTTP_201_CREATED)
    async def create_shopping_list(
        user_id: UUID, body: ShoppingListRequest, request: Request
    ) -> dict[str, object]:
        """Build a shopping list for one or more LLM recipes."""
        state_container: AppContainer = request.app.state.container
        recipes: list[Recipe] = []
        warnings: list[str] = []
        for payload in body.recipes:
            parsed = state_container.recipe_parser.parse(payload.ingredients)
            warnings.extend(parsed.warnings)
            recipes.append(
                Recipe(
                    id=payload.id or uuid4(),
                    user_id=user_id,
                    title=payload.title.strip(),
                    ingredients=parsed.requirements,
                )
            )
        result = state_container.shopping_list_builder.build(
            user_id, recipes, group_by_category=body.group_by_category
        )
        return {
            "shopping_list": asdict(result.shopping_list),
            "items": [asdict(item) for item in result.items],
            "warnings": warnings + result.warnings,
            "unmatched_ingredients": [
                asdict(record) for record in result.unmatched_ingredients
            ],
            "ambiguous_matches": [
                asdict(record) for record in result.ambiguous_matches
            ],
        }

    @app.patch("/shopping-list-items/{item_id}")
    async def update_shopping_list_item(
        item_id: UUID, body: ShoppingListItemPatch, request: Request
    ) -> dict[str, object]:
        """Check, uncheck or resize an item at a known version."""
        state_container: AppContainer = request.app.state.container
        item = state_container.shopping_list_service.update_item(
            item_id,
            body.version,
            is_checked=body.is_checked,
            quantity=body.quantity,
        )
        return {"item": asdict(item)}

    return app


def _match_payload(result: MatchResult | None) -> dict[str, object] | None:
    if result is None:
        return None
    return {
        "ingredient": asdict(result.ingredient),
        "confidence": result.confidence,
        "tier": result.tier.value,
    }


def _report_payload(report: ReconcileReport) -> dict[str, object]:
    return {
        "success": report.success,
        "message": report.message,
        "already_processed": report.already_processed,
        "metrics": report.metrics(),
        "unmatched_ingredients": [asdict(record) for record in report.unmatched_names],
        "ambiguous_matches": [asdict(record) for record in report.ambiguous_matches],
    }
