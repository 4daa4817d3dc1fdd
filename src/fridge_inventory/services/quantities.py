"""Default quantity, unit and expiry estimates for recognized ingredients."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

from fridge_inventory.domain.ingredients import Category, Ingredient
from fridge_inventory.services.normalizer import normalize


@dataclass(frozen=True)
class QuantityUnit:
    """Quantity paired with its unit."""

    quantity: float
    unit: str


CATEGORY_DEFAULTS: dict[str, QuantityUnit] = {
    Category.VEGETABLES.value: QuantityUnit(1.0, "個"),
    Category.MEAT.value: QuantityUnit(200.0, "g"),
    Category.FISH.value: QuantityUnit(1.0, "尾"),
    Category.DAIRY.value: QuantityUnit(1.0, "個"),
    Category.SEASONINGS.value: QuantityUnit(1.0, "本"),
    Category.OTHERS.value: QuantityUnit(1.0, "個"),
}

SPECIAL_UNITS: dict[str, QuantityUnit] = {
    "卵": QuantityUnit(10.0, "個"),
    "たまご": QuantityUnit(10.0, "個"),
    "ほうれん草": QuantityUnit(1.0, "束"),
    "キャベツ": QuantityUnit(1.0, "玉"),
    "レタス": QuantityUnit(1.0, "玉"),
    "牛乳": QuantityUnit(1000.0, "ml"),
    "パン": QuantityUnit(6.0, "枚"),
    "チーズ": QuantityUnit(100.0, "g"),
    "バター": QuantityUnit(200.0, "g"),
    "ヨーグルト": QuantityUnit(400.0, "g"),
    "お米": QuantityUnit(2000.0, "g"),
    "りんご": QuantityUnit(3.0, "個"),
    "バナナ": QuantityUnit(5.0, "本"),
    "トマト": QuantityUnit(3.0, "個"),
    "きのこ": QuantityUnit(100.0, "g"),
}

EXPIRY_DAYS: dict[str, int] = {
    Category.VEGETABLES.value: 7,
    Category.MEAT.value: 3,
    Category.FISH.value: 2,
    Category.DAIRY.value: 10,
    Category.SEASONINGS.value: 365,
    Category.OTHERS.value: 14,
}

_SPECIAL_BY_KEY = {normalize(name): value for name, value in SPECIAL_UNITS.items()}


def _today_utc() -> date:
    return datetime.now(tz=UTC).date()


@dataclass
class QuantityResolver:
    """Derives default quantities and expiry dates from catalog data."""

    today: Callable[[], date] = _today_utc

    def resolve(self, ingredient: Ingredient) -> QuantityUnit:
        """Return the default quantity and unit for one sighting."""
        special = _SPECIAL_BY_KEY.get(normalize(ingredient.name))
        if special is not None:
            return special
        defaults = CATEGORY_DEFAULTS[_category_key(ingredient.category)]
        if ingredient.unit:
            return QuantityUnit(defaults.quantity, ingredient.unit)
        return defaults

    def estimate_expiry(self, ingredient: Ingredient) -> date:
        """Return today's date plus the category shelf life."""
        days = EXPIRY_DAYS[_category_key(ingredient.category)]
        return self.today() + timedelta(days=days)


def _category_key(category: str | Category | None) -> str:
    if isinstance(category, Category):
        return category.value
    if category in CATEGORY_DEFAULTS:
        return category
    return Category.OTHERS.value
