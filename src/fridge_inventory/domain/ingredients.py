"""Domain models for the ingredient catalog and name matching."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class Category(str, Enum):
    """Ingredient categories in display order."""

    VEGETABLES = "vegetables"
    MEAT = "meat"
    FISH = "fish"
    DAIRY = "dairy"
    SEASONINGS = "seasonings"
    OTHERS = "others"


@dataclass(frozen=True)
class Ingredient:
    """Canonical ingredient record shared by all users."""

    id: UUID
    name: str
    category: str
    unit: str


class RecognizedCandidate(BaseModel):
    """Single ingredient name detected by image recognition."""

    name: str
    confidence: float = Field(ge=0.0, le=1.0)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("name must not be blank")
        return stripped


class MatchTier(str, Enum):
    """Strategy that produced a match."""

    EXACT = "exact"
    FORWARD = "forward"
    PARTIAL = "partial"
    CREATED = "created"


@dataclass(frozen=True)
class MatchResult:
    """Resolved catalog entry for a free-text name."""

    ingredient: Ingredient
    confidence: float
    tier: MatchTier


@dataclass(frozen=True)
class UnmatchedRecord:
    """Name that could not be resolved to a catalog entry."""

    original_name: str
    normalized_name: str
    timestamp: datetime


@dataclass(frozen=True)
class AmbiguousRecord:
    """Tier that produced several close candidates for one name."""

    normalized_name: str
    candidate_names: tuple[str, ...]
    timestamp: datetime
    tier: MatchTier
    resolved: bool
