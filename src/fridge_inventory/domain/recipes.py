"""Domain models for recipes and LLM-provided ingredient entries."""

from dataclasses import dataclass, field
from uuid import UUID

from fridge_inventory.domain.ingredients import AmbiguousRecord, UnmatchedRecord


@dataclass(frozen=True)
class RecipeIngredientRequirement:
    """One ingredient line of a recipe."""

    ingredient_name: str
    ingredient_ref: UUID | None = None
    amount: float | None = None
    unit: str | None = None
    is_optional: bool = False


@dataclass(frozen=True)
class Recipe:
    """Recipe owned by a user."""

    id: UUID
    user_id: UUID
    title: str
    ingredients: list[RecipeIngredientRequirement] = field(default_factory=list)


@dataclass(frozen=True)
class TextIngredientEntry:
    """LLM ingredient given as a bare string, e.g. "玉ねぎ"."""

    text: str


@dataclass(frozen=True)
class StructuredIngredientEntry:
    """LLM ingredient given as an object with optional amount and unit."""

    name: str
    amount: float | None = None
    unit: str | None = None
    is_optional: bool = False


IngredientEntry = TextIngredientEntry | StructuredIngredientEntry


@dataclass
class ParsedIngredients:
    """Requirements parsed from one recipe payload, with diagnostics."""

    requirements: list[RecipeIngredientRequirement] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    unmatched_ingredients: list[UnmatchedRecord] = field(default_factory=list)
    ambiguous_matches: list[AmbiguousRecord] = field(default_factory=list)
