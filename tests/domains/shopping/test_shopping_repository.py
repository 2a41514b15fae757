import pytest

from spoonjoy.domains.ingredient.repository import IngredientRepository
from spoonjoy.domains.shopping.models import ShoppingListItem
from spoonjoy.domains.shopping.repository import ShoppingRepository


@pytest.mark.asyncio
async def test_get_or_create_list_is_per_user(db_session, test_user):
    """[Repository] the list is created lazily and reused afterwards"""
    repo = ShoppingRepository(db_session)

    first = await repo.get_or_create_list(test_user.id)
    second = await repo.get_or_create_list(test_user.id)

    assert first.id == second.id
    assert first.author_id == test_user.id


@pytest.mark.asyncio
async def test_find_item_treats_missing_unit_as_its_own_key(db_session, test_user):
    repo = ShoppingRepository(db_session)
    ingredient_repo = IngredientRepository(db_session)
    shopping_list = await repo.get_or_create_list(test_user.id)
    ref = await ingredient_repo.get_or_create_ingredient_ref("salt")
    unit = await ingredient_repo.get_or_create_unit("tsp")

    await repo.add_item(ShoppingListItem(shopping_list_id=shopping_list.id, ingredient_ref_id=ref.id))
    await repo.commit()

    assert await repo.find_item(shopping_list.id, None, ref.id) is not None
    assert await repo.find_item(shopping_list.id, unit.id, ref.id) is None


@pytest.mark.asyncio
async def test_items_are_sorted_and_cleared(db_session, test_user, other_user):
    repo = ShoppingRepository(db_session)
    ingredient_repo = IngredientRepository(db_session)
    shopping_list = await repo.get_or_create_list(test_user.id)
    other_list = await repo.get_or_create_list(other_user.id)

    for name, checked in [("tomato", True), ("basil", False)]:
        ref = await ingredient_repo.get_or_create_ingredient_ref(name)
        await repo.add_item(
            ShoppingListItem(shopping_list_id=shopping_list.id, ingredient_ref_id=ref.id, checked=checked)
        )
    await repo.commit()

    items = await repo.get_items(shopping_list.id)
    assert [item.ingredient_ref.name for item in items] == ["basil", "tomato"]
    basil_id = items[0].id

    # Items of another list are out of reach
    assert await repo.get_item(basil_id, other_list.id) is None
    assert await repo.delete_item(basil_id, other_list.id) is False

    assert await repo.clear_items(shopping_list.id, checked_only=True) == 1
    assert [item.id for item in await repo.get_items(shopping_list.id)] == [basil_id]

    assert await repo.clear_items(shopping_list.id) == 1
    assert await repo.get_items(shopping_list.id) == []
