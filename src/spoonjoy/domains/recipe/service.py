import logging

from spoonjoy.core.config import settings
from spoonjoy.core.exception.exceptions import ForbiddenException
from spoonjoy.core.validation import (
    raise_for_errors,
    validate_title,
    validate_description,
    validate_servings,
    validate_image_url,
)
from spoonjoy.domains.cookbook.repository import CookbookRepository
from spoonjoy.domains.recipe.exceptions import RecipeNotFoundException, DuplicateRecipeTitleException
from spoonjoy.domains.recipe.models import Recipe
from spoonjoy.domains.recipe.repository import RecipeRepository
from spoonjoy.domains.recipe.schemas import (
    RecipeForm,
    RecipeSummary,
    RecipeListResponse,
    RecipeDetail,
    RecipeDetailResponse,
    RecipeEditResponse,
    ChefSummary,
    CookbookOption,
)
from spoonjoy.domains.step.schemas import StepResponse

logger = logging.getLogger("spoonjoy.recipe")


async def load_owned_recipe(recipe_repo: RecipeRepository, recipe_id: str, user_id: str) -> Recipe:
    """Re-reads the recipe and checks ownership; every mutating action goes through here."""
    recipe = await recipe_repo.get_live_recipe(recipe_id)
    if not recipe:
        raise RecipeNotFoundException()
    if recipe.chef_id != user_id:
        raise ForbiddenException()
    return recipe


def to_recipe_detail(recipe: Recipe) -> RecipeDetail:
    step_titles = {step.step_num: step.step_title for step in recipe.steps}
    return RecipeDetail(
        id=recipe.id,
        title=recipe.title,
        description=recipe.description,
        servings=recipe.servings,
        image_url=recipe.image_url,
        updated_at=recipe.updated_at,
        chef_id=recipe.chef_id,
        chef=ChefSummary.model_validate(recipe.chef),
        steps=[StepResponse.from_step(step, step_titles) for step in recipe.steps],
    )


class RecipeService:
    def __init__(self, recipe_repo: RecipeRepository, cookbook_repo: CookbookRepository, user_id: str):
        self.recipe_repo = recipe_repo
        self.cookbook_repo = cookbook_repo
        self.user_id = user_id

    async def list_recipes(self) -> RecipeListResponse:
        recipes = await self.recipe_repo.get_recipes_by_chef(self.user_id)
        return RecipeListResponse(recipes=[RecipeSummary.model_validate(recipe) for recipe in recipes])

    @staticmethod
    def _clean_form(form: RecipeForm) -> dict:
        values = {
            "title": form.title.strip(),
            "description": form.description.strip() or None,
            "servings": form.servings.strip() or None,
            "image_url": form.image_url.strip() or None,
        }
        raise_for_errors(
            title=validate_title(values["title"]),
            description=validate_description(values["description"]),
            servings=validate_servings(values["servings"]),
            imageUrl=validate_image_url(values["image_url"]),
        )
        return values

    async def create_recipe(self, form: RecipeForm) -> Recipe:
        values = self._clean_form(form)

        if await self.recipe_repo.title_taken(self.user_id, values["title"]):
            raise DuplicateRecipeTitleException()

        recipe = await self.recipe_repo.save_recipe(
            Recipe(
                title=values["title"],
                description=values["description"],
                servings=values["servings"],
                image_url=values["image_url"] or settings.DEFAULT_RECIPE_IMAGE_URL,
                chef_id=self.user_id,
            )
        )
        logger.info("Recipe %s created by %s", recipe.id, self.user_id)
        return recipe

    async def get_recipe_detail(self, recipe_id: str) -> RecipeDetailResponse:
        recipe = await self.recipe_repo.get_recipe_detail(recipe_id)
        if not recipe:
            raise RecipeNotFoundException()

        cookbooks = await self.cookbook_repo.get_cookbooks_containing(self.user_id, recipe.id)

        return RecipeDetailResponse(
            recipe=to_recipe_detail(recipe),
            is_owner=recipe.chef_id == self.user_id,
            cookbooks=[CookbookOption(id=cookbook.id, title=cookbook.title) for cookbook, _ in cookbooks],
            saved_in_cookbook_ids=[cookbook.id for cookbook, contains in cookbooks if contains],
        )

    async def get_recipe_for_edit(self, recipe_id: str) -> RecipeEditResponse:
        await load_owned_recipe(self.recipe_repo, recipe_id, self.user_id)
        recipe = await self.recipe_repo.get_recipe_detail(recipe_id)
        return RecipeEditResponse(recipe=to_recipe_detail(recipe))

    async def update_recipe(self, recipe_id: str, form: RecipeForm) -> Recipe:
        recipe = await load_owned_recipe(self.recipe_repo, recipe_id, self.user_id)
        values = self._clean_form(form)

        if values["title"] != recipe.title and await self.recipe_repo.title_taken(
            self.user_id, values["title"], exclude_recipe_id=recipe.id
        ):
            raise DuplicateRecipeTitleException()

        recipe.title = values["title"]
        recipe.description = values["description"]
        recipe.servings = values["servings"]
        # A blank image URL keeps the current image
        if values["image_url"]:
            recipe.image_url = values["image_url"]

        return await self.recipe_repo.update_recipe(recipe)

    async def delete_recipe(self, recipe_id: str) -> None:
        recipe = await load_owned_recipe(self.recipe_repo, recipe_id, self.user_id)
        await self.recipe_repo.soft_delete(recipe)
        logger.info("Recipe %s soft-deleted by %s", recipe.id, self.user_id)

    async def check_owner(self, recipe_id: str) -> None:
        await load_owned_recipe(self.recipe_repo, recipe_id, self.user_id)
