"""Domain models for a user's ingredient inventory."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from uuid import UUID

from fridge_inventory.domain.ingredients import AmbiguousRecord, UnmatchedRecord


class InventoryStatus(str, Enum):
    """Lifecycle state of an inventory row."""

    AVAILABLE = "available"
    USED = "used"
    EXPIRED = "expired"


@dataclass(frozen=True)
class UserIngredient:
    """Inventory row holding a quantity of one ingredient for a user."""

    id: UUID
    user_id: UUID
    ingredient_id: UUID
    quantity: float
    unit: str
    status: InventoryStatus
    expiry_date: date | None
    source_batch_id: str | None
    version: int = 1


@dataclass(frozen=True)
class NewInventoryRow:
    """Row to insert during reconciliation."""

    user_id: UUID
    ingredient_id: UUID
    quantity: float
    unit: str
    expiry_date: date | None
    source_batch_id: str


@dataclass(frozen=True)
class InventoryUpdate:
    """Quantity (and optionally expiry) change for an existing row."""

    row_id: UUID
    quantity: float
    source_batch_id: str
    expiry_date: date | None = None


@dataclass
class InventoryChangeSet:
    """Writes produced by one reconciliation run, applied atomically."""

    inserts: list[NewInventoryRow] = field(default_factory=list)
    updates: list[InventoryUpdate] = field(default_factory=list)
    user_id: UUID | None = None
    source_batch_id: str | None = None

    def is_empty(self) -> bool:
        """Return True when the run has nothing to write."""
        return not self.inserts and not self.updates


@dataclass
class ReconcileReport:
    """Outcome and metrics of a reconciliation run."""

    success: bool = True
    message: str = ""
    already_processed: bool = False
    total_recognized: int = 0
    successful_conversions: int = 0
    skipped_low_confidence: int = 0
    unmatched_ingredients: int = 0
    duplicate_updates: int = 0
    new_ingredients: int = 0
    errors: list[str] = field(default_factory=list)
    unmatched_names: list[UnmatchedRecord] = field(default_factory=list)
    ambiguous_matches: list[AmbiguousRecord] = field(default_factory=list)

    @property
    def created(self) -> int:
        return self.new_ingredients

    @property
    def updated(self) -> int:
        return self.duplicate_updates

    @property
    def skipped(self) -> int:
        return self.skipped_low_confidence

    @property
    def unmatched(self) -> int:
        return self.unmatched_ingredients

    def metrics(self) -> dict[str, object]:
        """Return counters as a plain dict for logging and API output."""
        return {
            "total_recognized": self.total_recognized,
            "successful_conversions": self.successful_conversions,
            "skipped_low_confidence": self.skipped_low_confidence,
            "unmatched_ingredients": self.unmatched_ingredients,
            "duplicate_updates": self.duplicate_updates,
            "new_ingredients": self.new_ingredients,
            "errors": list(self.errors),
        }
