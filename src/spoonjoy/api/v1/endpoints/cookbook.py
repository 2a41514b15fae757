from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse

from spoonjoy.core.di import get_cookbook_service
from spoonjoy.core.exception.exceptions import ForbiddenException, FormValidationException, LoginRequiredException
from spoonjoy.core.schemas import ActionResult
from spoonjoy.core.security import require_user_id
from spoonjoy.domains.cookbook.exceptions import (
    CookbookNotFoundException,
    DuplicateCookbookTitleException,
    DuplicateRecipeException,
)
from spoonjoy.domains.cookbook.schemas import (
    CookbookIntent,
    CookbookForm,
    CookbookListResponse,
    CookbookDetailResponse,
)
from spoonjoy.domains.cookbook.service import CookbookService
from spoonjoy.domains.recipe.exceptions import RecipeNotFoundException
from spoonjoy.util.docs import create_error_response
from spoonjoy.util.forms import form_value, form_optional

router = APIRouter()


@router.get(
    "",
    status_code=200,
    summary="List my cookbooks",
    response_model=CookbookListResponse,
    responses=create_error_response(LoginRequiredException),
)
async def list_cookbooks(cookbook_service: CookbookService = Depends(get_cookbook_service)):
    return await cookbook_service.list_cookbooks()


@router.get("/new", status_code=200, summary="New cookbook page")
async def new_cookbook_page(user_id: str = Depends(require_user_id)):
    return {}


@router.post(
    "/new",
    status_code=303,
    summary="Create a cookbook",
    responses=create_error_response(FormValidationException, DuplicateCookbookTitleException),
)
async def create_cookbook(request: Request, cookbook_service: CookbookService = Depends(get_cookbook_service)):
    form = await request.form()
    cookbook = await cookbook_service.create_cookbook(CookbookForm(title=form_value(form, "title")))
    return RedirectResponse(url=f"/cookbooks/{cookbook.id}", status_code=status.HTTP_303_SEE_OTHER)


@router.get(
    "/{cookbook_id}",
    status_code=200,
    summary="Cookbook detail",
    response_model=CookbookDetailResponse,
    responses=create_error_response(CookbookNotFoundException),
)
async def get_cookbook(cookbook_id: str, cookbook_service: CookbookService = Depends(get_cookbook_service)):
    return await cookbook_service.get_cookbook_detail(cookbook_id)


@router.post(
    "/{cookbook_id}",
    status_code=200,
    summary="Cookbook actions (updateTitle, delete, addRecipe, removeRecipe)",
    response_model=ActionResult | None,
    responses=create_error_response(
        CookbookNotFoundException,
        ForbiddenException,
        FormValidationException,
        DuplicateCookbookTitleException,
        DuplicateRecipeException,
        RecipeNotFoundException,
    ),
)
async def cookbook_action(
    cookbook_id: str,
    request: Request,
    cookbook_service: CookbookService = Depends(get_cookbook_service),
):
    form = await request.form()
    intent = form_value(form, "intent")

    if intent == CookbookIntent.UPDATE_TITLE.value:
        return await cookbook_service.update_title(cookbook_id, form_value(form, "title"))

    if intent == CookbookIntent.DELETE.value:
        await cookbook_service.delete_cookbook(cookbook_id)
        return RedirectResponse(url="/cookbooks", status_code=status.HTTP_303_SEE_OTHER)

    if intent == CookbookIntent.ADD_RECIPE.value:
        return await cookbook_service.add_recipe(cookbook_id, form_optional(form, "recipeId"))

    if intent == CookbookIntent.REMOVE_RECIPE.value:
        return await cookbook_service.remove_recipe(cookbook_id, form_optional(form, "recipeInCookbookId"))

    await cookbook_service.check_owner(cookbook_id)
    return None
