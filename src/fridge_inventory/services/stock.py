"""Read and edit a user's inventory rows outside reconciliation."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from uuid import UUID

from fridge_inventory.domain.inventory import InventoryStatus, UserIngredient
from fridge_inventory.errors import (
    InvalidInputError,
    NotFoundError,
    VersionConflictError,
)
from fridge_inventory.services.reconciliation import InventoryRepository

_logger = logging.getLogger(__name__)


def _today_utc() -> date:
    return datetime.now(tz=UTC).date()


@dataclass
class StockService:
    """Application service for inventory queries and item-level edits."""

    repository: InventoryRepository
    expiring_soon_days: int = 3
    today: Callable[[], date] = _today_utc

    def available_count(self, user_id: UUID) -> int:
        """Return the number of available rows for a user."""
        return len(self.repository.list_available(user_id))

    def expiring_within(
        self, user_id: UUID, days: int | None = None
    ) -> list[UserIngredient]:
        """Return available rows expiring within ``days``, soonest first."""
        window = self.expiring_soon_days if days is None else days
        cutoff = self.today() + timedelta(days=window)
        rows = [
            row
            for row in self.repository.list_available(user_id)
            if row.expiry_date is not None and row.expiry_date <= cutoff
        ]
        return sorted(rows, key=lambda row: row.expiry_date)

    def days_until_expiry(self, row: UserIngredient) -> int | None:
        """Return days left before expiry (negative once passed)."""
        if row.expiry_date is None:
            return None
        return (row.expiry_date - self.today()).days

    def adjust_quantity(
        self, row_id: UUID, quantity: float, expected_version: int
    ) -> UserIngredient:
        """Set a new quantity on an available row."""
        if quantity <= 0:
            raise InvalidInputError(["quantity must be greater than 0"])
        row = self._get_current(row_id, expected_version)
        if row.status != InventoryStatus.AVAILABLE:
            raise InvalidInputError([f"row is {row.status.value}, not available"])
        return self.repository.update_row(
            row_id, {"quantity": quantity}, expected_version
        )

    def mark_used(self, row_id: UUID, expected_version: int) -> UserIngredient:
        """Move an available row to used."""
        return self._transition(row_id, InventoryStatus.USED, expected_version)

    def mark_expired(self, row_id: UUID, expected_version: int) -> UserIngredient:
        """Move an available row to expired."""
        return self._transition(row_id, InventoryStatus.EXPIRED, expected_version)

    def _transition(
        self, row_id: UUID, status: InventoryStatus, expected_version: int
    ) -> UserIngredient:
        row = self._get_current(row_id, expected_version)
        if row.status != InventoryStatus.AVAILABLE:
            raise InvalidInputError(
                [f"cannot mark a {row.status.value} row as {status.value}"]
            )
        updated = self.repository.update_row(
            row_id, {"status": status}, expected_version
        )
        _logger.info("Inventory row %s marked %s", row_id, status.value)
        return updated

    def _get_current(self, row_id: UUID, expected_version: int) -> UserIngredient:
        row = self.repository.get_row(row_id)
        if row is None:
            raise NotFoundError(f"inventory row {row_id} not found")
        if row.version != expected_version:
            raise VersionConflictError(
                f"inventory row {row_id} is at version {row.version}, "
                f"expected {expected_version}"
            )
        return row
