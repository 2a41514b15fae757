from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse

from spoonjoy.core.di import get_recipe_service, get_cookbook_service, get_step_service
from spoonjoy.core.exception.exceptions import ForbiddenException, FormValidationException, LoginRequiredException
from spoonjoy.core.schemas import ActionResult
from spoonjoy.core.security import require_user_id
from spoonjoy.domains.cookbook.service import CookbookService
from spoonjoy.domains.recipe.exceptions import RecipeNotFoundException, DuplicateRecipeTitleException
from spoonjoy.domains.recipe.schemas import (
    RecipeIntent,
    RecipeForm,
    RecipeListResponse,
    RecipeDetailResponse,
    RecipeEditResponse,
)
from spoonjoy.domains.recipe.service import RecipeService
from spoonjoy.domains.step.exceptions import InvalidReorderException
from spoonjoy.domains.step.service import StepService
from spoonjoy.util.docs import create_error_response
from spoonjoy.util.forms import form_value, form_optional

router = APIRouter()


def _recipe_form(form) -> RecipeForm:
    return RecipeForm(
        title=form_value(form, "title"),
        description=form_value(form, "description"),
        servings=form_value(form, "servings"),
        image_url=form_value(form, "imageUrl"),
    )


@router.get(
    "",
    status_code=200,
    summary="List my recipes",
    response_model=RecipeListResponse,
    responses=create_error_response(LoginRequiredException),
)
async def list_recipes(recipe_service: RecipeService = Depends(get_recipe_service)):
    return await recipe_service.list_recipes()


@router.get("/new", status_code=200, summary="New recipe page")
async def new_recipe_page(user_id: str = Depends(require_user_id)):
    return {}


@router.post(
    "/new",
    status_code=303,
    summary="Create a recipe",
    responses=create_error_response(FormValidationException, DuplicateRecipeTitleException),
)
async def create_recipe(request: Request, recipe_service: RecipeService = Depends(get_recipe_service)):
    form = await request.form()
    recipe = await recipe_service.create_recipe(_recipe_form(form))
    return RedirectResponse(url=f"/recipes/{recipe.id}", status_code=status.HTTP_303_SEE_OTHER)


@router.get(
    "/{recipe_id}",
    status_code=200,
    summary="Recipe detail",
    response_model=RecipeDetailResponse,
    responses=create_error_response(RecipeNotFoundException),
)
async def get_recipe(recipe_id: str, recipe_service: RecipeService = Depends(get_recipe_service)):
    return await recipe_service.get_recipe_detail(recipe_id)


@router.post(
    "/{recipe_id}",
    status_code=200,
    summary="Recipe detail actions (addToCookbook, delete)",
    response_model=ActionResult | None,
    responses=create_error_response(RecipeNotFoundException, ForbiddenException),
)
async def recipe_action(
    recipe_id: str,
    request: Request,
    recipe_service: RecipeService = Depends(get_recipe_service),
    cookbook_service: CookbookService = Depends(get_cookbook_service),
):
    form = await request.form()
    intent = form_value(form, "intent")

    if intent == RecipeIntent.ADD_TO_COOKBOOK.value:
        cookbook_id = form_optional(form, "cookbookId")
        if cookbook_id:
            return await cookbook_service.save_recipe(cookbook_id, recipe_id)

    await recipe_service.check_owner(recipe_id)

    if intent == RecipeIntent.DELETE.value:
        await recipe_service.delete_recipe(recipe_id)
        return RedirectResponse(url="/recipes", status_code=status.HTTP_303_SEE_OTHER)

    return None


@router.get(
    "/{recipe_id}/edit",
    status_code=200,
    summary="Recipe edit page",
    response_model=RecipeEditResponse,
    responses=create_error_response(RecipeNotFoundException, ForbiddenException),
)
async def edit_recipe_page(recipe_id: str, recipe_service: RecipeService = Depends(get_recipe_service)):
    return await recipe_service.get_recipe_for_edit(recipe_id)


@router.post(
    "/{recipe_id}/edit",
    status_code=200,
    summary="Update a recipe or reorder one of its steps",
    response_model=ActionResult | None,
    responses=create_error_response(
        RecipeNotFoundException,
        ForbiddenException,
        FormValidationException,
        DuplicateRecipeTitleException,
        InvalidReorderException,
    ),
)
async def edit_recipe(
    recipe_id: str,
    request: Request,
    recipe_service: RecipeService = Depends(get_recipe_service),
    step_service: StepService = Depends(get_step_service),
):
    form = await request.form()

    if form_value(form, "intent") == RecipeIntent.REORDER_STEP.value:
        return await step_service.reorder_step(
            recipe_id, form_optional(form, "stepId"), form_optional(form, "direction")
        )

    await recipe_service.update_recipe(recipe_id, _recipe_form(form))
    return RedirectResponse(url=f"/recipes/{recipe_id}", status_code=status.HTTP_303_SEE_OTHER)
