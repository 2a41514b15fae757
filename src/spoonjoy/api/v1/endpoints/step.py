from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse

from spoonjoy.core.di import get_step_service, get_ingredient_service
from spoonjoy.core.exception.exceptions import ForbiddenException, FormValidationException
from spoonjoy.domains.ingredient.exceptions import IngredientExistsException, IngredientParseException
from spoonjoy.domains.ingredient.schemas import AddIngredientRequest
from spoonjoy.domains.ingredient.service import IngredientService
from spoonjoy.domains.recipe.exceptions import RecipeNotFoundException
from spoonjoy.domains.step.exceptions import StepNotFoundException, StepInUseException
from spoonjoy.domains.step.schemas import StepIntent, StepForm, NewStepResponse, StepEditResponse
from spoonjoy.domains.step.service import StepService
from spoonjoy.util.docs import create_error_response
from spoonjoy.util.forms import form_value, form_optional, form_values

router = APIRouter()


def _step_form(form) -> StepForm:
    return StepForm(
        step_title=form_value(form, "stepTitle"),
        description=form_value(form, "description"),
        uses_steps=form_values(form, "usesSteps"),
    )


@router.get(
    "/{recipe_id}/steps/new",
    status_code=200,
    summary="New step page",
    response_model=NewStepResponse,
    responses=create_error_response(RecipeNotFoundException, ForbiddenException),
)
async def new_step_page(recipe_id: str, step_service: StepService = Depends(get_step_service)):
    return await step_service.get_new_step_page(recipe_id)


@router.post(
    "/{recipe_id}/steps/new",
    status_code=303,
    summary="Append a step to a recipe",
    responses=create_error_response(RecipeNotFoundException, ForbiddenException, FormValidationException),
)
async def create_step(recipe_id: str, request: Request, step_service: StepService = Depends(get_step_service)):
    form = await request.form()
    step = await step_service.create_step(recipe_id, _step_form(form))
    return RedirectResponse(
        url=f"/recipes/{recipe_id}/steps/{step.id}/edit", status_code=status.HTTP_303_SEE_OTHER
    )


@router.get(
    "/{recipe_id}/steps/{step_id}/edit",
    status_code=200,
    summary="Step edit page",
    response_model=StepEditResponse,
    responses=create_error_response(RecipeNotFoundException, StepNotFoundException, ForbiddenException),
)
async def edit_step_page(recipe_id: str, step_id: str, step_service: StepService = Depends(get_step_service)):
    return await step_service.get_edit_step_page(recipe_id, step_id)


@router.post(
    "/{recipe_id}/steps/{step_id}/edit",
    status_code=200,
    summary="Step actions (parseIngredients, delete, addIngredient, deleteIngredient, update)",
    responses=create_error_response(
        RecipeNotFoundException,
        StepNotFoundException,
        ForbiddenException,
        FormValidationException,
        StepInUseException,
        IngredientExistsException,
        IngredientParseException,
    ),
)
async def step_action(
    recipe_id: str,
    step_id: str,
    request: Request,
    step_service: StepService = Depends(get_step_service),
    ingredient_service: IngredientService = Depends(get_ingredient_service),
):
    form = await request.form()
    intent = form_value(form, "intent")

    # Ownership and step membership are checked before any intent runs
    recipe, step = await step_service.get_owned_step(recipe_id, step_id)

    if intent == StepIntent.PARSE_INGREDIENTS.value:
        return await ingredient_service.parse_ingredients(form_value(form, "ingredientText"))

    if intent == StepIntent.DELETE.value:
        await step_service.delete_step(recipe.id, step.id)
        return RedirectResponse(url=f"/recipes/{recipe.id}/edit", status_code=status.HTTP_303_SEE_OTHER)

    if intent == StepIntent.ADD_INGREDIENT.value:
        return await ingredient_service.add_ingredient(
            recipe.id,
            step.step_num,
            AddIngredientRequest(
                quantity=form_value(form, "quantity"),
                unit_name=form_value(form, "unitName"),
                ingredient_name=form_value(form, "ingredientName"),
            ),
        )

    if intent == StepIntent.DELETE_INGREDIENT.value:
        return await ingredient_service.delete_ingredient(
            recipe.id, step.step_num, form_optional(form, "ingredientId")
        )

    await step_service.update_step(recipe.id, step.id, _step_form(form))
    return RedirectResponse(url=f"/recipes/{recipe.id}/edit", status_code=status.HTTP_303_SEE_OTHER)
