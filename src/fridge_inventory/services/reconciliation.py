"""Merge recognized ingredients into a user's inventory."""

import logging
import time
from collections import defaultdict
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol
from uuid import UUID

from pydantic import ValidationError

from fridge_inventory.domain.ingredients import Ingredient, RecognizedCandidate
from fridge_inventory.domain.inventory import (
    InventoryChangeSet,
    InventoryUpdate,
    NewInventoryRow,
    ReconcileReport,
    UserIngredient,
)
from fridge_inventory.errors import (
    InvalidInputError,
    PersistenceError,
    TransientStoreError,
)
from fridge_inventory.services.matcher import IngredientMatcher
from fridge_inventory.services.quantities import QuantityResolver

_logger = logging.getLogger(__name__)


class InventoryRepository(Protocol):
    """Persistence interface for user inventory rows."""

    def batch_exists(self, user_id: UUID, source_batch_id: str) -> bool:
        """Return True when the batch was already applied for the user."""

    def list_available(
        self, user_id: UUID, ingredient_ids: list[UUID] | None = None
    ) -> list[UserIngredient]:
        """Return available rows, optionally limited to some ingredients."""

    def apply_changes(self, changes: InventoryChangeSet) -> None:
        """Insert and update rows and record the batch in one transaction.

        Raises TransientStoreError for unique violations and deadlocks and
        PersistenceError for any other failed write. Nothing is stored when
        an error is raised.
        """

    def get_row(self, row_id: UUID) -> UserIngredient | None:
        """Return a row by id, if present."""

    def update_row(
        self,
        row_id: UUID,
        changes: dict[str, object],
        expected_version: int,
    ) -> UserIngredient:
        """Update a row if its version matches and return the new state."""


@dataclass
class _Observation:
    ingredient: Ingredient
    candidate: RecognizedCandidate
    match_confidence: float


@dataclass
class _Plan:
    changes: InventoryChangeSet = field(default_factory=InventoryChangeSet)
    successful_conversions: int = 0
    duplicate_updates: int = 0
    new_ingredients: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class ReconciliationService:
    """Turns a recognition batch into inventory inserts and updates."""

    repository: InventoryRepository
    matcher_factory: Callable[[], IngredientMatcher]
    resolver: QuantityResolver = field(default_factory=QuantityResolver)
    min_confidence: float = 0.5
    max_retries: int = 1
    retry_delay_seconds: float = 0.1
    sleep: Callable[[float], None] = time.sleep

    def reconcile(
        self,
        user_id: UUID | None,
        candidates: Sequence[RecognizedCandidate | dict[str, object]],
        source_batch_id: str | None,
    ) -> ReconcileReport:
        """Reconcile one recognition batch for a user.

        A batch id already recorded as applied makes the call a no-op. The
        record is kept apart from the rows, which later batches re-stamp.
        Store conflicts are retried once; any failed write rolls back the
        whole batch and is reported rather than raised.
        """
        parsed = _parse_candidates(user_id, candidates, source_batch_id)
        report = ReconcileReport()
        if self.repository.batch_exists(user_id, source_batch_id):
            _logger.info("Skipping already processed batch %s", source_batch_id)
            report.already_processed = True
            report.message = "Already processed"
            return report

        matcher = self.matcher_factory()
        report.total_recognized = len(parsed)
        accepted = self._filter_confidence(parsed, report)
        observations = self._match(matcher, accepted, report)

        attempt = 0
        plan = _Plan()
        while True:
            try:
                plan = self._plan(user_id, observations, source_batch_id)
                if not plan.changes.is_empty():
                    self.repository.apply_changes(plan.changes)
                break
            except TransientStoreError as exc:
                attempt += 1
                if attempt > self.max_retries:
                    _logger.error(
                        "Store conflict persisted for batch %s: %s",
                        source_batch_id,
                        exc,
                    )
                    report.errors.append(f"DB conflict: {exc}")
                    return self._finish(
                        report, plan, matcher, False, "Database conflict occurred"
                    )
                _logger.warning(
                    "Store conflict for batch %s (attempt %s/%s), retrying: %s",
                    source_batch_id,
                    attempt,
                    self.max_retries + 1,
                    exc,
                )
                self.sleep(self.retry_delay_seconds)
            except PersistenceError as exc:
                _logger.error(
                    "Reconciliation failed for batch %s: %s", source_batch_id, exc
                )
                report.errors.append(f"{type(exc).__name__}: {exc}")
                return self._finish(report, plan, matcher, False, str(exc))

        finished = self._finish(
            report, plan, matcher, True, "Conversion completed successfully"
        )
        _logger.info(
            "Reconciliation completed user=%s batch=%s metrics=%s",
            user_id,
            source_batch_id,
            finished.metrics(),
        )
        return finished

    def _filter_confidence(
        self, candidates: list[RecognizedCandidate], report: ReconcileReport
    ) -> list[RecognizedCandidate]:
        accepted: list[RecognizedCandidate] = []
        for candidate in candidates:
            if candidate.confidence < self.min_confidence:
                report.skipped_low_confidence += 1
                _logger.debug(
                    "Skipping low confidence ingredient: %s (%s)",
                    candidate.name,
                    candidate.confidence,
                )
                continue
            accepted.append(candidate)
        return accepted

    def _match(
        self,
        matcher: IngredientMatcher,
        candidates: list[RecognizedCandidate],
        report: ReconcileReport,
    ) -> dict[UUID, _Observation]:
        """Map accepted candidates to one observation per ingredient."""
        results = matcher.match_batch(candidate.name for candidate in candidates)
        observations: dict[UUID, _Observation] = {}
        for candidate in candidates:
            result = results.get(candidate.name)
            if result is None:
                report.unmatched_ingredients += 1
                continue
            current = observations.get(result.ingredient.id)
            if current and current.candidate.confidence >= candidate.confidence:
                continue
            observations[result.ingredient.id] = _Observation(
                ingredient=result.ingredient,
                candidate=candidate,
                match_confidence=result.confidence,
            )
        return observations

    def _plan(
        self,
        user_id: UUID,
        observations: dict[UUID, _Observation],
        source_batch_id: str,
    ) -> _Plan:
        """Decide create-vs-update for every observed ingredient."""
        plan = _Plan(
            changes=InventoryChangeSet(
                user_id=user_id, source_batch_id=source_batch_id
            )
        )
        if not observations:
            return plan
        existing = self.repository.list_available(user_id, list(observations))
        groups: dict[UUID, dict[tuple[str, date | None], list[UserIngredient]]] = (
            defaultdict(lambda: defaultdict(list))
        )
        for row in existing:
            groups[row.ingredient_id][(row.unit, row.expiry_date)].append(row)

        for ingredient_id, observation in observations.items():
            ingredient = observation.ingredient
            try:
                amount = self.resolver.resolve(ingredient)
                expiry = self.resolver.estimate_expiry(ingredient)
                rows = groups.get(ingredient_id, {})
                undated = rows.get((amount.unit, None))
                dated = rows.get((amount.unit, expiry))
                # Re-dating the undated row must not collide with a dated row.
                if dated:
                    target = dated[0]
                    plan.changes.updates.append(
                        InventoryUpdate(
                            row_id=target.id,
                            quantity=target.quantity + amount.quantity,
                            source_batch_id=source_batch_id,
                        )
                    )
                    plan.duplicate_updates += 1
                elif undated:
                    target = undated[0]
                    plan.changes.updates.append(
                        InventoryUpdate(
                            row_id=target.id,
                            quantity=target.quantity + amount.quantity,
                            source_batch_id=source_batch_id,
                            expiry_date=expiry,
                        )
                    )
                    plan.duplicate_updates += 1
                else:
                    plan.changes.inserts.append(
                        NewInventoryRow(
                            user_id=user_id,
                            ingredient_id=ingredient_id,
                            quantity=amount.quantity,
                            unit=amount.unit,
                            expiry_date=expiry,
                            source_batch_id=source_batch_id,
                        )
                    )
                    plan.new_ingredients += 1
                plan.successful_conversions += 1
            except Exception as exc:
                _logger.exception(
                    "Failed to process ingredient %s", observation.candidate.name
                )
                plan.errors.append(f"{observation.candidate.name}: {exc}")
        return plan

    @staticmethod
    def _finish(
        report: ReconcileReport,
        plan: _Plan,
        matcher: IngredientMatcher,
        success: bool,
        message: str,
    ) -> ReconcileReport:
        report.success = success
        report.message = message
        report.successful_conversions = plan.successful_conversions
        report.duplicate_updates = plan.duplicate_updates
        report.new_ingredients = plan.new_ingredients
        report.errors = plan.errors + report.errors
        report.unmatched_names = matcher.unmatched_ingredients
        report.ambiguous_matches = matcher.ambiguous_matches
        return report


def _parse_candidates(
    user_id: UUID | None,
    candidates: Sequence[RecognizedCandidate | dict[str, object]],
    source_batch_id: str | None,
) -> list[RecognizedCandidate]:
    """Validate the request and return typed candidates."""
    messages: list[str] = []
    if user_id is None:
        messages.append("user is required")
    if not source_batch_id or not str(source_batch_id).strip():
        messages.append("source batch id is required")
    if not isinstance(candidates, list | tuple) or not candidates:
        messages.append("recognized ingredients must be a non-empty list")
        raise InvalidInputError(messages)

    parsed: list[RecognizedCandidate] = []
    for index, raw in enumerate(candidates):
        if isinstance(raw, RecognizedCandidate):
            parsed.append(raw)
            continue
        try:
            parsed.append(RecognizedCandidate.model_validate(raw))
        except ValidationError as exc:
            detail = exc.errors()[0].get("msg", "invalid value")
            messages.append(f"candidate {index}: {detail}")
    if messages:
        raise InvalidInputError(messages)
    return parsed
