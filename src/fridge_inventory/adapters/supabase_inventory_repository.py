"""Supabase implementation of the user inventory repository."""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from uuid import UUID

from supabase import Client

from fridge_inventory.adapters.supabase_errors import translate_api_errors
from fridge_inventory.domain.inventory import (
    InventoryChangeSet,
    InventoryStatus,
    UserIngredient,
)
from fridge_inventory.errors import NotFoundError, VersionConflictError
from fridge_inventory.services.reconciliation import InventoryRepository

_TABLE = "user_ingredients"
_BATCH_TABLE = "inventory_batches"


@dataclass
class SupabaseInventoryRepository(InventoryRepository):
    """Supabase-backed repository for ``user_ingredients`` rows."""

    client: Client

    def batch_exists(self, user_id: UUID, source_batch_id: str) -> bool:
        """Return True when the batch is recorded in ``inventory_batches``."""
        with translate_api_errors("batch lookup"):
            response = (
                self.client.table(_BATCH_TABLE)
                .select("source_batch_id")
                .eq("user_id", str(user_id))
                .eq("source_batch_id", source_batch_id)
                .limit(1)
                .execute()
            )
        return bool(response.data)

    def list_available(
        self, user_id: UUID, ingredient_ids: list[UUID] | None = None
    ) -> list[UserIngredient]:
        """Return available rows, optionally limited to some ingredients."""
        query = (
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .eq("status", InventoryStatus.AVAILABLE.value)
        )
        if ingredient_ids is not None:
            if not ingredient_ids:
                return []
            query = query.in_("ingredient_id", [str(value) for value in ingredient_ids])
        with translate_api_errors("inventory listing"):
            response = query.order("created_at").execute()
        return [_parse_row(row) for row in response.data or []]

    def apply_changes(self, changes: InventoryChangeSet) -> None:
        """Apply inserts and updates through one database function call.

        ``apply_inventory_changes`` runs in a single transaction, bumps
        ``version`` on every updated row and records the batch id in
        ``inventory_batches``.
        """
        payload = {
            "p_user_id": _serialize(changes.user_id),
            "p_batch_id": changes.source_batch_id,
            "p_inserts": [
                {
                    "user_id": str(row.user_id),
                    "ingredient_id": str(row.ingredient_id),
                    "quantity": row.quantity,
                    "unit": row.unit,
                    "expiry_date": _serialize(row.expiry_date),
                    "source_batch_id": row.source_batch_id,
                    "status": InventoryStatus.AVAILABLE.value,
                }
                for row in changes.inserts
            ],
            "p_updates": [
                {
                    "id": str(update.row_id),
                    "quantity": update.quantity,
                    "source_batch_id": update.source_batch_id,
                    "expiry_date": _serialize(update.expiry_date),
                }
                for update in changes.updates
            ],
        }
        with translate_api_errors("inventory change set"):
            self.client.rpc("apply_inventory_changes", payload).execute()

    def get_row(self, row_id: UUID) -> UserIngredient | None:
        """Return a row by id, if present."""
        with translate_api_errors("inventory fetch"):
            response = (
                self.client.table(_TABLE)
                .select("*")
                .eq("id", str(row_id))
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def update_row(
        self,
        row_id: UUID,
        changes: dict[str, object],
        expected_version: int,
    ) -> UserIngredient:
        """Update a row if its version matches and return the new state."""
        payload = {key: _serialize(value) for key, value in changes.items()}
        payload["version"] = expected_version + 1
        with translate_api_errors("inventory update"):
            response = (
                self.client.table(_TABLE)
                .update(payload)
                .eq("id", str(row_id))
                .eq("version", expected_version)
                .execute()
            )
        if response.data:
            return _parse_row(response.data[0])
        if self.get_row(row_id) is None:
            raise NotFoundError(f"inventory row {row_id} not found")
        raise VersionConflictError(
            f"inventory row {row_id} changed since version {expected_version}"
        )


def _serialize(value: object) -> object:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    return value


def _parse_row(row: dict[str, object]) -> UserIngredient:
    """Parse a user_ingredients row into a domain model."""
    expiry_raw = row.get("expiry_date")
    batch = row.get("source_batch_id")
    return UserIngredient(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        ingredient_id=UUID(str(row["ingredient_id"])),
        quantity=float(row.get("quantity", 0.0)),
        unit=str(row.get("unit") or ""),
        status=InventoryStatus(row.get("status", InventoryStatus.AVAILABLE.value)),
        expiry_date=(
            date.fromisoformat(expiry_raw)
            if isinstance(expiry_raw, str) and expiry_raw
            else None
        ),
        source_batch_id=str(batch) if batch else None,
        version=int(row.get("version", 1)),
    )
