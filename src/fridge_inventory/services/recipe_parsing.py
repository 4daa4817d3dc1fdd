"""Turn LLM recipe ingredient payloads into recipe requirements."""

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import assert_never

from fridge_inventory.domain.recipes import (
    IngredientEntry,
    ParsedIngredients,
    RecipeIngredientRequirement,
    StructuredIngredientEntry,
    TextIngredientEntry,
)
from fridge_inventory.services.matcher import IngredientMatcher

_AMOUNT_NOISE = re.compile(r"[^\d./]")
_DECIMAL = re.compile(r"^\d*\.?\d+$")

_logger = logging.getLogger(__name__)


def parse_amount(raw: object) -> float | None:
    """Parse an amount given as a number, decimal, fraction or prose.

    ``"1/2"`` gives 0.5, ``"約200g"`` gives 200.0 and anything without a
    usable number gives None.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int | float):
        return float(raw)
    if not isinstance(raw, str):
        return None
    cleaned = _AMOUNT_NOISE.sub("", raw)
    if not cleaned:
        return None
    if "/" in cleaned:
        parts = cleaned.split("/")
        if len(parts) != 2 or not all(_DECIMAL.match(part) for part in parts):
            return None
        denominator = float(parts[1])
        if denominator <= 0:
            return None
        return float(parts[0]) / denominator
    if _DECIMAL.match(cleaned):
        return float(cleaned)
    return None


def classify_entry(raw: object) -> IngredientEntry | None:
    """Classify one raw LLM entry, returning None when it has no usable name."""
    if isinstance(raw, str):
        text = raw.strip()
        return TextIngredientEntry(text=text) if text else None
    if isinstance(raw, dict):
        name = raw.get("name") or raw.get("ingredient")
        if name is None or not str(name).strip():
            return None
        return StructuredIngredientEntry(
            name=str(name).strip(),
            amount=parse_amount(raw.get("amount")),
            unit=_clean_text(raw.get("unit")),
            is_optional=bool(raw.get("optional")) or bool(raw.get("is_optional")),
        )
    return None


def to_requirement(entry: IngredientEntry) -> RecipeIngredientRequirement:
    """Convert a classified entry into an unresolved requirement."""
    if isinstance(entry, TextIngredientEntry):
        return RecipeIngredientRequirement(ingredient_name=entry.text)
    if isinstance(entry, StructuredIngredientEntry):
        return RecipeIngredientRequirement(
            ingredient_name=entry.name,
            amount=entry.amount,
            unit=entry.unit,
            is_optional=entry.is_optional,
        )
    assert_never(entry)


@dataclass
class RecipeIngredientParser:
    """Parses LLM ingredient lists and links them to catalog entries."""

    matcher_factory: Callable[[], IngredientMatcher]

    def parse(self, raw_entries: Iterable[object] | None) -> ParsedIngredients:
        """Parse entries and fill ``ingredient_ref`` where a name matches."""
        parsed = ParsedIngredients()
        if raw_entries is None:
            return parsed
        if isinstance(raw_entries, str | dict) or not isinstance(
            raw_entries, Iterable
        ):
            self._warn(parsed, f"Ingredient list is not a list: {raw_entries!r}")
            return parsed

        entries: list[IngredientEntry] = []
        for raw in raw_entries:
            entry = classify_entry(raw)
            if entry is None:
                if raw is not None and not isinstance(raw, str):
                    self._warn(parsed, f"Invalid ingredient entry: {raw!r}")
                continue
            entries.append(entry)
        if not entries:
            return parsed

        requirements = [to_requirement(entry) for entry in entries]
        matcher = self.matcher_factory()
        results = matcher.match_batch(
            requirement.ingredient_name for requirement in requirements
        )
        for requirement in requirements:
            result = results.get(requirement.ingredient_name)
            if result is None:
                self._warn(
                    parsed, f"Ingredient not matched: {requirement.ingredient_name}"
                )
                parsed.requirements.append(requirement)
                continue
            parsed.requirements.append(
                RecipeIngredientRequirement(
                    ingredient_name=requirement.ingredient_name,
                    ingredient_ref=result.ingredient.id,
                    amount=requirement.amount,
                    unit=requirement.unit,
                    is_optional=requirement.is_optional,
                )
            )
        parsed.unmatched_ingredients = matcher.unmatched_ingredients
        parsed.ambiguous_matches = matcher.ambiguous_matches
        return parsed

    @staticmethod
    def _warn(parsed: ParsedIngredients, message: str) -> None:
        parsed.warnings.append(message)
        _logger.warning(message)


def _clean_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
