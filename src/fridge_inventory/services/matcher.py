"""Resolve free-text ingredient names to catalog entries."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Protocol
from uuid import UUID

from rapidfuzz.distance import Levenshtein

from fridge_inventory.domain.ingredients import (
    AmbiguousRecord,
    Category,
    Ingredient,
    MatchResult,
    MatchTier,
    UnmatchedRecord,
)
from fridge_inventory.errors import DuplicateIngredientError
from fridge_inventory.services.normalizer import normalize

EXACT_CONFIDENCE = 1.0
FORWARD_CONFIDENCE = 0.8
CREATED_CONFIDENCE = 0.5
MIN_PARTIAL_LENGTH = 2

_logger = logging.getLogger(__name__)


class MatchMode(str, Enum):
    """Comparison applied to normalized catalog names."""

    EXACT = "exact"
    PREFIX = "prefix"
    SUBSTRING = "substring"


class IngredientCatalog(Protocol):
    """Read access to the canonical ingredient dictionary."""

    def find_by_normalized_name(self, key: str, mode: MatchMode) -> list[Ingredient]:
        """Return entries whose normalized name matches the key."""

    def get_by_ids(self, ingredient_ids: list[UUID]) -> list[Ingredient]:
        """Return entries for the given ids."""

    def create_ingredient(self, name: str, category: str, unit: str) -> Ingredient:
        """Create an entry, raising DuplicateIngredientError on a name clash."""


@dataclass(frozen=True)
class MatcherSettings:
    """Thresholds and toggles for name matching."""

    partial_match_threshold: float = 0.6
    ambiguous_score_gap: float = 0.1
    auto_create_unmatched: bool = False
    auto_create_category: str = Category.OTHERS.value
    auto_create_unit: str = "個"
    auto_create_attempts: int = 3


@dataclass
class IngredientMatcher:
    """Tiered name matcher scoped to a single request or batch.

    Tiers run in a fixed order (exact, forward, partial) and the first tier
    that resolves wins. Scores are never compared across tiers. Unmatched and
    ambiguous names are kept for the lifetime of the instance.
    """

    catalog: IngredientCatalog
    settings: MatcherSettings = field(default_factory=MatcherSettings)
    _unmatched: list[UnmatchedRecord] = field(default_factory=list, init=False)
    _ambiguous: list[AmbiguousRecord] = field(default_factory=list, init=False)

    def match(self, name: str | None) -> MatchResult | None:
        """Resolve one name, recording it as unmatched on a miss."""
        key = normalize(name)
        if not key:
            return None
        original = str(name).strip()
        result = self._resolve(key, original)
        if result is None:
            self._record_unmatched(original, key)
        return result

    def match_batch(self, names: Iterable[str]) -> dict[str, MatchResult | None]:
        """Resolve many names, querying the catalog once per normalized form."""
        results: dict[str, MatchResult | None] = {}
        by_key: dict[str, MatchResult | None] = {}
        for name in names:
            if name in results:
                continue
            key = normalize(name)
            if not key:
                results[name] = None
                continue
            original = str(name).strip()
            if key not in by_key:
                by_key[key] = self._resolve(key, original)
            result = by_key[key]
            if result is None:
                self._record_unmatched(original, key)
            results[name] = result
        return results

    @property
    def unmatched_ingredients(self) -> list[UnmatchedRecord]:
        """Return a copy of the unmatched names seen so far."""
        return list(self._unmatched)

    @property
    def ambiguous_matches(self) -> list[AmbiguousRecord]:
        """Return a copy of the ambiguous matches seen so far."""
        return list(self._ambiguous)

    def _resolve(self, key: str, original: str) -> MatchResult | None:
        exact, forward, partial = _partition(
            key, self.catalog.find_by_normalized_name(key, MatchMode.SUBSTRING)
        )

        picked = self._pick(key, exact, MatchTier.EXACT)
        if picked is not None:
            return MatchResult(picked[1], EXACT_CONFIDENCE, MatchTier.EXACT)

        picked = self._pick(key, forward, MatchTier.FORWARD)
        if picked is not None:
            return MatchResult(picked[1], FORWARD_CONFIDENCE, MatchTier.FORWARD)

        if len(key) >= MIN_PARTIAL_LENGTH:
            picked = self._pick(key, partial, MatchTier.PARTIAL)
            if (
                picked is not None
                and picked[0] >= self.settings.partial_match_threshold
            ):
                return MatchResult(picked[1], picked[0], MatchTier.PARTIAL)

        if self.settings.auto_create_unmatched:
            created = self._create(key, original)
            if created is not None:
                return MatchResult(created, CREATED_CONFIDENCE, MatchTier.CREATED)
        return None

    def _pick(
        self, key: str, candidates: list[Ingredient], tier: MatchTier
    ) -> tuple[float, Ingredient] | None:
        """Return the best (score, ingredient) of a tier, or None if unresolved."""
        if not candidates:
            return None
        scored = sorted(
            ((similarity(key, normalize(c.name)), c) for c in candidates),
            key=lambda pair: (-pair[0], pair[1].name),
        )
        if len(scored) == 1:
            return scored[0]
        gap = round(scored[0][0] - scored[1][0], 6)
        resolved = gap >= self.settings.ambiguous_score_gap
        self._ambiguous.append(
            AmbiguousRecord(
                normalized_name=key,
                candidate_names=tuple(c.name for _, c in scored),
                timestamp=datetime.now(tz=UTC),
                tier=tier,
                resolved=resolved,
            )
        )
        if not resolved:
            _logger.info(
                "Ambiguous %s match for %s: %s",
                tier.value,
                key,
                ", ".join(c.name for _, c in scored),
            )
            return None
        return scored[0]

    def _create(self, key: str, original: str) -> Ingredient | None:
        for attempt in range(1, self.settings.auto_create_attempts + 1):
            try:
                ingredient = self.catalog.create_ingredient(
                    name=original,
                    category=self.settings.auto_create_category,
                    unit=self.settings.auto_create_unit,
                )
            except DuplicateIngredientError:
                _logger.info(
                    "Ingredient %s created concurrently (attempt %s/%s)",
                    original,
                    attempt,
                    self.settings.auto_create_attempts,
                )
                existing = self.catalog.find_by_normalized_name(key, MatchMode.EXACT)
                if existing:
                    return existing[0]
                continue
            _logger.info("Auto-created ingredient %s", ingredient.name)
            return ingredient
        _logger.warning("Gave up creating ingredient %s", original)
        return None

    def _record_unmatched(self, original: str, key: str) -> None:
        self._unmatched.append(
            UnmatchedRecord(
                original_name=original,
                normalized_name=key,
                timestamp=datetime.now(tz=UTC),
            )
        )
        _logger.info("Unmatched ingredient recorded: %s (%s)", original, key)


def similarity(a: str, b: str) -> float:
    """Return the normalized Levenshtein similarity of two strings."""
    if a == b:
        return 1.0
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 0.0
    return (max_len - Levenshtein.distance(a, b)) / max_len


def _partition(
    key: str, candidates: list[Ingredient]
) -> tuple[list[Ingredient], list[Ingredient], list[Ingredient]]:
    """Split substring hits into exact, forward and partial tiers."""
    exact: list[Ingredient] = []
    forward: list[Ingredient] = []
    partial: list[Ingredient] = []
    for ingredient in candidates:
        candidate_key = normalize(ingredient.name)
        if candidate_key == key:
            exact.append(ingredient)
        elif candidate_key.startswith(key):
            forward.append(ingredient)
        elif key in candidate_key:
            partial.append(ingredient)
    return exact, forward, partial
