"""Tests for shopping list item edits and progress."""

from uuid import uuid4

import pytest

from fridge_inventory.domain.shopping import ShoppingListDraft, ShoppingListStatus
from fridge_inventory.errors import (
    InvalidInputError,
    NotFoundError,
    VersionConflictError,
)
from fridge_inventory.services.shopping_lists import ShoppingListService
from tests.conftest import InMemoryShoppingListRepository


@pytest.fixture
def list_id(shopping_list_repository: InMemoryShoppingListRepository):
    draft = ShoppingListDraft(user_id=uuid4(), title="週末", note="Recipes: 週末")
    shopping_list, _ = shopping_list_repository.create_list(draft, [])
    return shopping_list.id


@pytest.fixture
def service(
    shopping_list_repository: InMemoryShoppingListRepository,
) -> ShoppingListService:
    return ShoppingListService(shopping_list_repository)


def test_check_and_uncheck_item(
    service: ShoppingListService,
    shopping_list_repository: InMemoryShoppingListRepository,
    list_id,
) -> None:
    item = shopping_list_repository.add_item(list_id, "トマト")

    checked = service.check_item(item.id, expected_version=1)
    unchecked = service.uncheck_item(item.id, expected_version=2)

    assert checked.is_checked is True
    assert unchecked.is_checked is False
    assert unchecked.version == 3


def test_stale_version_is_rejected(
    service: ShoppingListService,
    shopping_list_repository: InMemoryShoppingListRepository,
    list_id,
) -> None:
    item = shopping_list_repository.add_item(list_id, "トマト")
    service.check_item(item.id, expected_version=1)

    with pytest.raises(VersionConflictError):
        service.uncheck_item(item.id, expected_version=1)


def test_update_item_validates_input(
    service: ShoppingListService,
    shopping_list_repository: InMemoryShoppingListRepository,
    list_id,
) -> None:
    item = shopping_list_repository.add_item(list_id, "トマト")

    with pytest.raises(InvalidInputError):
        service.update_item(item.id, 1)
    with pytest.raises(InvalidInputError):
        service.update_item(item.id, 1, quantity=10000)
    with pytest.raises(NotFoundError):
        service.update_item(uuid4(), 1, is_checked=True)

    resized = service.update_item(item.id, 1, quantity=2.346)
    assert resized.quantity == 2.35


def test_completion_progress(
    service: ShoppingListService,
    shopping_list_repository: InMemoryShoppingListRepository,
    list_id,
) -> None:
    assert service.completion_percentage(list_id) == 0.0
    assert service.can_be_completed(list_id) is False

    shopping_list_repository.add_item(list_id, "トマト", is_checked=True)
    shopping_list_repository.add_item(list_id, "卵")
    shopping_list_repository.add_item(list_id, "牛乳")

    assert service.completion_percentage(list_id) == 33.3
    assert service.can_be_completed(list_id) is False

    for item in shopping_list_repository.list_items(list_id):
        if not item.is_checked:
            service.check_item(item.id, item.version)

    assert service.completion_percentage(list_id) == 100.0
    assert service.can_be_completed(list_id) is True


def test_list_status_transitions(service: ShoppingListService, list_id) -> None:
    assert service.mark_in_progress(list_id).status == ShoppingListStatus.IN_PROGRESS
    assert service.mark_completed(list_id).status == ShoppingListStatus.COMPLETED
    with pytest.raises(NotFoundError):
        service.mark_completed(uuid4())
