from spoonjoy.core.schemas import ActionResult
from spoonjoy.core.validation import (
    raise_for_errors,
    parse_float,
    validate_quantity,
    validate_unit_name,
    validate_ingredient_name,
)
from spoonjoy.domains.ingredient.repository import IngredientRepository
from spoonjoy.domains.recipe.exceptions import RecipeNotFoundException
from spoonjoy.domains.recipe.repository import RecipeRepository
from spoonjoy.domains.shopping.exceptions import ItemNotFoundException
from spoonjoy.domains.shopping.models import ShoppingList, ShoppingListItem
from spoonjoy.domains.shopping.repository import ShoppingRepository
from spoonjoy.domains.shopping.schemas import (
    AddItemRequest,
    ShoppingListItemResponse,
    ShoppingListResponse,
    RecipeOption,
)


class ShoppingService:
    def __init__(
        self,
        shopping_repo: ShoppingRepository,
        ingredient_repo: IngredientRepository,
        recipe_repo: RecipeRepository,
        user_id: str,
    ):
        self.shopping_repo = shopping_repo
        self.ingredient_repo = ingredient_repo
        self.recipe_repo = recipe_repo
        self.user_id = user_id

    async def _get_list(self) -> ShoppingList:
        return await self.shopping_repo.get_or_create_list(self.user_id)

    async def get_list(self) -> ShoppingListResponse:
        shopping_list = await self._get_list()
        items = await self.shopping_repo.get_items(shopping_list.id)
        recipes = await self.recipe_repo.get_recipes_by_chef(self.user_id)

        return ShoppingListResponse(
            id=shopping_list.id,
            items=[ShoppingListItemResponse.from_item(item) for item in items],
            recipes=[
                RecipeOption(id=recipe.id, title=recipe.title)
                for recipe in sorted(recipes, key=lambda r: r.title.lower())
            ],
        )

    async def _merge_item(
        self, shopping_list_id: str, unit_id: str | None, ingredient_ref_id: str, quantity: float | None
    ) -> None:
        """Same ingredient and unit collapse into one row whose quantity is the sum."""
        existing = await self.shopping_repo.find_item(shopping_list_id, unit_id, ingredient_ref_id)
        if existing:
            if quantity:
                existing.quantity = (existing.quantity or 0) + quantity
                await self.shopping_repo.flush()
            return

        await self.shopping_repo.add_item(
            ShoppingListItem(
                shopping_list_id=shopping_list_id,
                quantity=quantity,
                unit_id=unit_id,
                ingredient_ref_id=ingredient_ref_id,
                checked=False,
            )
        )

    async def add_item(self, request: AddItemRequest) -> ActionResult:
        ingredient_name = request.ingredient_name.strip()
        unit_name = request.unit_name.strip()
        if not ingredient_name:
            return ActionResult(success=False)

        quantity = parse_float(request.quantity)
        raise_for_errors(
            quantity=validate_quantity(quantity) if quantity is not None else None,
            unitName=validate_unit_name(unit_name) if unit_name else None,
            ingredientName=validate_ingredient_name(ingredient_name),
        )

        shopping_list = await self._get_list()
        ingredient_ref = await self.ingredient_repo.get_or_create_ingredient_ref(ingredient_name)
        unit = await self.ingredient_repo.get_or_create_unit(unit_name) if unit_name else None

        await self._merge_item(shopping_list.id, unit.id if unit else None, ingredient_ref.id, quantity)
        await self.shopping_repo.commit()
        return ActionResult()

    async def add_from_recipe(self, recipe_id: str | None) -> ActionResult:
        if not recipe_id:
            return ActionResult(success=False)

        recipe = await self.recipe_repo.get_live_recipe(recipe_id)
        if not recipe:
            raise RecipeNotFoundException()

        shopping_list = await self._get_list()
        for ingredient in await self.ingredient_repo.get_recipe_ingredients(recipe.id):
            await self._merge_item(
                shopping_list.id, ingredient.unit_id, ingredient.ingredient_ref_id, ingredient.quantity
            )

        await self.shopping_repo.commit()
        return ActionResult()

    async def toggle_check(self, item_id: str | None) -> ActionResult:
        shopping_list = await self._get_list()
        item = await self.shopping_repo.get_item(item_id, shopping_list.id) if item_id else None
        if not item:
            raise ItemNotFoundException()

        item.checked = not item.checked
        await self.shopping_repo.commit()
        return ActionResult()

    async def remove_item(self, item_id: str | None) -> ActionResult:
        shopping_list = await self._get_list()
        if not item_id or not await self.shopping_repo.delete_item(item_id, shopping_list.id):
            raise ItemNotFoundException()
        return ActionResult()

    async def clear_completed(self) -> ActionResult:
        shopping_list = await self._get_list()
        await self.shopping_repo.clear_items(shopping_list.id, checked_only=True)
        return ActionResult()

    async def clear_all(self) -> ActionResult:
        shopping_list = await self._get_list()
        await self.shopping_repo.clear_items(shopping_list.id)
        return ActionResult()
