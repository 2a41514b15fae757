from fastapi import APIRouter, Depends, Request

from spoonjoy.core.di import get_shopping_service
from spoonjoy.core.exception.exceptions import FormValidationException, LoginRequiredException
from spoonjoy.core.schemas import ActionResult
from spoonjoy.domains.recipe.exceptions import RecipeNotFoundException
from spoonjoy.domains.shopping.exceptions import ItemNotFoundException
from spoonjoy.domains.shopping.schemas import ShoppingIntent, AddItemRequest, ShoppingListResponse
from spoonjoy.domains.shopping.service import ShoppingService
from spoonjoy.util.docs import create_error_response
from spoonjoy.util.forms import form_value, form_optional

router = APIRouter()


@router.get(
    "",
    status_code=200,
    summary="My shopping list",
    response_model=ShoppingListResponse,
    responses=create_error_response(LoginRequiredException),
)
async def get_shopping_list(shopping_service: ShoppingService = Depends(get_shopping_service)):
    return await shopping_service.get_list()


@router.post(
    "",
    status_code=200,
    summary="Shopping list actions",
    response_model=ActionResult | None,
    responses=create_error_response(FormValidationException, RecipeNotFoundException, ItemNotFoundException),
)
async def shopping_action(request: Request, shopping_service: ShoppingService = Depends(get_shopping_service)):
    form = await request.form()
    intent = form_value(form, "intent")

    if intent == ShoppingIntent.ADD_ITEM.value:
        return await shopping_service.add_item(
            AddItemRequest(
                quantity=form_value(form, "quantity"),
                unit_name=form_value(form, "unitName"),
                ingredient_name=form_value(form, "ingredientName"),
            )
        )

    if intent == ShoppingIntent.ADD_FROM_RECIPE.value:
        return await shopping_service.add_from_recipe(form_optional(form, "recipeId"))

    if intent == ShoppingIntent.TOGGLE_CHECK.value:
        return await shopping_service.toggle_check(form_optional(form, "itemId"))

    if intent == ShoppingIntent.REMOVE_ITEM.value:
        return await shopping_service.remove_item(form_optional(form, "itemId"))

    if intent == ShoppingIntent.CLEAR_COMPLETED.value:
        return await shopping_service.clear_completed()

    if intent == ShoppingIntent.CLEAR_ALL.value:
        return await shopping_service.clear_all()

    return None
