"""Tests for tiered ingredient matching."""

from fridge_inventory.domain.ingredients import MatchTier
from fridge_inventory.errors import DuplicateIngredientError
from fridge_inventory.services.matcher import (
    IngredientMatcher,
    MatcherSettings,
    MatchMode,
    similarity,
)
from tests.conftest import InMemoryIngredientCatalog


def test_exact_match_wins_over_longer_names(catalog: InMemoryIngredientCatalog) -> None:
    result = IngredientMatcher(catalog).match("とまと")

    assert result is not None
    assert result.ingredient.name == "トマト"
    assert result.tier == MatchTier.EXACT
    assert result.confidence == 1.0


def test_forward_match(catalog: InMemoryIngredientCatalog) -> None:
    result = IngredientMatcher(catalog).match("鶏むね")

    assert result is not None
    assert result.ingredient.name == "鶏むね肉"
    assert result.tier == MatchTier.FORWARD
    assert result.confidence == 0.8


def test_partial_match_uses_similarity(catalog: InMemoryIngredientCatalog) -> None:
    result = IngredientMatcher(catalog).match("むね肉")

    assert result is not None
    assert result.ingredient.name == "鶏むね肉"
    assert result.tier == MatchTier.PARTIAL
    assert result.confidence == 0.75


def test_partial_match_below_threshold_is_unmatched(
    catalog: InMemoryIngredientCatalog,
) -> None:
    matcher = IngredientMatcher(catalog)

    assert matcher.match("むね") is None
    assert matcher.unmatched_ingredients[0].normalized_name == "ムネ"


def test_single_character_never_matches_partially(
    catalog: InMemoryIngredientCatalog,
) -> None:
    assert IngredientMatcher(catalog).match("肉") is None


def test_unmatched_names_are_recorded_per_instance(
    catalog: InMemoryIngredientCatalog,
) -> None:
    matcher = IngredientMatcher(catalog)
    matcher.match("ドラゴンフルーツ")

    records = matcher.unmatched_ingredients
    records.clear()

    assert len(matcher.unmatched_ingredients) == 1
    assert matcher.unmatched_ingredients[0].original_name == "ドラゴンフルーツ"
    assert IngredientMatcher(catalog).unmatched_ingredients == []


def test_blank_name_is_ignored(catalog: InMemoryIngredientCatalog) -> None:
    matcher = IngredientMatcher(catalog)

    assert matcher.match("  ") is None
    assert matcher.unmatched_ingredients == []


def test_clear_winner_records_resolved_ambiguity() -> None:
    catalog = InMemoryIngredientCatalog()
    catalog.add("豚肉", "meat", "g")
    catalog.add("豚バラ肉", "meat", "g")
    catalog.add("豚ひき肉", "meat", "g")
    matcher = IngredientMatcher(catalog)

    result = matcher.match("豚")

    assert result is not None
    assert result.ingredient.name == "豚肉"
    assert result.tier == MatchTier.FORWARD
    assert len(matcher.ambiguous_matches) == 1
    assert matcher.ambiguous_matches[0].resolved is True


def test_close_candidates_fall_through_to_next_tier() -> None:
    catalog = InMemoryIngredientCatalog()
    catalog.add("abx")
    catalog.add("aby")
    catalog.add("zab")
    matcher = IngredientMatcher(catalog)

    result = matcher.match("ab")

    assert result is not None
    assert result.ingredient.name == "zab"
    assert result.tier == MatchTier.PARTIAL
    ambiguous = matcher.ambiguous_matches[0]
    assert ambiguous.tier == MatchTier.FORWARD
    assert ambiguous.resolved is False
    assert ambiguous.candidate_names == ("abx", "aby")


def test_unresolved_ambiguity_without_fallback_is_unmatched() -> None:
    catalog = InMemoryIngredientCatalog()
    catalog.add("豚バラ肉", "meat", "g")
    catalog.add("豚ひき肉", "meat", "g")
    matcher = IngredientMatcher(catalog)

    assert matcher.match("豚") is None
    assert matcher.ambiguous_matches[0].resolved is False
    assert matcher.unmatched_ingredients[0].original_name == "豚"


def test_match_batch_queries_once_per_normalized_form(
    catalog: InMemoryIngredientCatalog,
) -> None:
    matcher = IngredientMatcher(catalog)

    results = matcher.match_batch(["トマト", "とまと", " トマト ", "謎の食材"])

    assert set(results) == {"トマト", "とまと", " トマト ", "謎の食材"}
    assert results["とまと"].ingredient.name == "トマト"
    assert results["謎の食材"] is None
    assert [key for key, _ in catalog.queries] == ["トマト", "謎ノ食材"]


def test_auto_create_unmatched_name() -> None:
    catalog = InMemoryIngredientCatalog()
    matcher = IngredientMatcher(catalog, MatcherSettings(auto_create_unmatched=True))

    result = matcher.match("ドラゴンフルーツ")

    assert result is not None
    assert result.tier == MatchTier.CREATED
    assert result.confidence == 0.5
    assert result.ingredient.category == "others"
    assert result.ingredient.unit == "個"
    assert matcher.unmatched_ingredients == []


def test_auto_create_race_returns_concurrent_entry() -> None:
    catalog = InMemoryIngredientCatalog(concurrent_creates=1)
    matcher = IngredientMatcher(catalog, MatcherSettings(auto_create_unmatched=True))

    result = matcher.match("パクチー")

    assert result is not None
    assert result.ingredient.name == "パクチー"
    assert catalog.create_calls == 1
    assert ("パクチー", MatchMode.EXACT) in catalog.queries
    assert len(catalog.ingredients) == 1


def test_auto_create_gives_up_after_three_attempts() -> None:
    catalog = InMemoryIngredientCatalog()

    def always_conflict(name: str, category: str, unit: str):
        catalog.create_calls += 1
        raise DuplicateIngredientError(name)

    catalog.create_ingredient = always_conflict  # type: ignore[method-assign]
    matcher = IngredientMatcher(catalog, MatcherSettings(auto_create_unmatched=True))

    assert matcher.match("パクチー") is None
    assert catalog.create_calls == 3


def test_similarity_edges() -> None:
    assert similarity("トマト", "トマト") == 1.0
    assert similarity("", "") == 1.0
    assert similarity("", "abc") == 0.0
    assert similarity("abc", "abd") == 2 / 3
