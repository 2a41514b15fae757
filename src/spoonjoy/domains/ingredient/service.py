import logging

from spoonjoy.core.schemas import ActionResult
from spoonjoy.core.validation import (
    raise_for_errors,
    parse_float,
    validate_quantity,
    validate_unit_name,
    validate_ingredient_name,
)
from spoonjoy.domains.ingredient.exceptions import IngredientExistsException
from spoonjoy.domains.ingredient.models import Ingredient
from spoonjoy.domains.ingredient.parser import IngredientParser
from spoonjoy.domains.ingredient.repository import IngredientRepository
from spoonjoy.domains.ingredient.schemas import (
    AddIngredientRequest,
    ParseIngredientsResult,
)

logger = logging.getLogger("spoonjoy.ingredient")


class IngredientService:
    def __init__(self, ingredient_repo: IngredientRepository, parser: IngredientParser | None = None):
        self.ingredient_repo = ingredient_repo
        self.parser = parser or IngredientParser()

    async def add_ingredient(self, recipe_id: str, step_num: int, request: AddIngredientRequest) -> ActionResult:
        quantity = parse_float(request.quantity)
        unit_name = request.unit_name.strip()
        ingredient_name = request.ingredient_name.strip()

        # Incomplete rows are ignored rather than reported
        if quantity is None or quantity <= 0 or not unit_name or not ingredient_name:
            return ActionResult(success=False)

        raise_for_errors(
            quantity=validate_quantity(quantity),
            unitName=validate_unit_name(unit_name),
            ingredientName=validate_ingredient_name(ingredient_name),
        )

        unit = await self.ingredient_repo.get_or_create_unit(unit_name)
        ingredient_ref = await self.ingredient_repo.get_or_create_ingredient_ref(ingredient_name)

        if await self.ingredient_repo.recipe_has_ingredient(recipe_id, ingredient_ref.id):
            raise IngredientExistsException()

        await self.ingredient_repo.add_ingredient(
            Ingredient(
                recipe_id=recipe_id,
                step_num=step_num,
                quantity=quantity,
                unit_id=unit.id,
                ingredient_ref_id=ingredient_ref.id,
            )
        )
        return ActionResult()

    async def delete_ingredient(self, recipe_id: str, step_num: int, ingredient_id: str | None) -> ActionResult:
        if not ingredient_id:
            return ActionResult(success=False)

        deleted = await self.ingredient_repo.delete_ingredient(ingredient_id, recipe_id, step_num)
        return ActionResult(success=deleted)

    async def parse_ingredients(self, text: str) -> ParseIngredientsResult:
        parsed = await self.parser.parse(text)
        logger.info("Parsed %d ingredient(s)", len(parsed))
        return ParseIngredientsResult(parsed_ingredients=parsed)
