import logging

from spoonjoy.core.exception.exceptions import ForbiddenException, FormValidationException
from spoonjoy.core.schemas import ActionResult
from spoonjoy.core.validation import raise_for_errors, validate_title
from spoonjoy.domains.cookbook.exceptions import (
    CookbookNotFoundException,
    DuplicateCookbookTitleException,
    DuplicateRecipeException,
)
from spoonjoy.domains.cookbook.models import Cookbook
from spoonjoy.domains.cookbook.repository import CookbookRepository
from spoonjoy.domains.cookbook.schemas import (
    CookbookForm,
    CookbookSummary,
    CookbookListResponse,
    CookbookEntry,
    CookbookDetail,
    CookbookDetailResponse,
)
from spoonjoy.domains.recipe.exceptions import RecipeNotFoundException
from spoonjoy.domains.recipe.repository import RecipeRepository
from spoonjoy.domains.recipe.schemas import ChefSummary, RecipeSummary

logger = logging.getLogger("spoonjoy.cookbook")


class CookbookService:
    def __init__(self, cookbook_repo: CookbookRepository, recipe_repo: RecipeRepository, user_id: str):
        self.cookbook_repo = cookbook_repo
        self.recipe_repo = recipe_repo
        self.user_id = user_id

    async def _get_owned_cookbook(self, cookbook_id: str) -> Cookbook:
        cookbook = await self.cookbook_repo.get_cookbook(cookbook_id)
        if not cookbook:
            raise CookbookNotFoundException()
        if cookbook.author_id != self.user_id:
            raise ForbiddenException()
        return cookbook

    async def check_owner(self, cookbook_id: str) -> None:
        await self._get_owned_cookbook(cookbook_id)

    async def list_cookbooks(self) -> CookbookListResponse:
        rows = await self.cookbook_repo.get_cookbooks_with_counts(self.user_id)
        return CookbookListResponse(
            cookbooks=[
                CookbookSummary(
                    id=cookbook.id,
                    title=cookbook.title,
                    recipe_count=count,
                    updated_at=cookbook.updated_at,
                )
                for cookbook, count in rows
            ]
        )

    async def create_cookbook(self, form: CookbookForm) -> Cookbook:
        title = form.title.strip()
        raise_for_errors(title=validate_title(title))

        if await self.cookbook_repo.title_taken(self.user_id, title):
            raise DuplicateCookbookTitleException()

        cookbook = await self.cookbook_repo.save_cookbook(Cookbook(title=title, author_id=self.user_id))
        logger.info("Cookbook %s created by %s", cookbook.id, self.user_id)
        return cookbook

    async def get_cookbook_detail(self, cookbook_id: str) -> CookbookDetailResponse:
        cookbook = await self.cookbook_repo.get_cookbook_detail(cookbook_id)
        if not cookbook:
            raise CookbookNotFoundException()

        is_owner = cookbook.author_id == self.user_id
        entries = [
            CookbookEntry(
                id=entry.id,
                recipe=RecipeSummary.model_validate(entry.recipe),
                chef=ChefSummary.model_validate(entry.recipe.chef),
                added_at=entry.created_at,
            )
            for entry in cookbook.recipes
            if not entry.recipe.is_deleted
        ]

        available = []
        if is_owner:
            recipes = await self.cookbook_repo.get_available_recipes(self.user_id, cookbook.id)
            available = [RecipeSummary.model_validate(recipe) for recipe in recipes]

        return CookbookDetailResponse(
            cookbook=CookbookDetail(
                id=cookbook.id,
                title=cookbook.title,
                author=ChefSummary.model_validate(cookbook.author),
                recipes=entries,
            ),
            is_owner=is_owner,
            available_recipes=available,
        )

    async def update_title(self, cookbook_id: str, title: str) -> ActionResult:
        cookbook = await self._get_owned_cookbook(cookbook_id)

        title = title.strip()
        raise_for_errors(title=validate_title(title))

        if title != cookbook.title and await self.cookbook_repo.title_taken(self.user_id, title, cookbook.id):
            raise DuplicateCookbookTitleException()

        cookbook.title = title
        await self.cookbook_repo.update_cookbook(cookbook)
        return ActionResult()

    async def delete_cookbook(self, cookbook_id: str) -> None:
        cookbook = await self._get_owned_cookbook(cookbook_id)
        await self.cookbook_repo.delete_cookbook(cookbook)
        logger.info("Cookbook %s deleted by %s", cookbook_id, self.user_id)

    async def add_recipe(self, cookbook_id: str, recipe_id: str | None) -> ActionResult:
        cookbook = await self._get_owned_cookbook(cookbook_id)
        if not recipe_id:
            raise FormValidationException(errors={"recipeId": "Please choose a recipe"})

        if not await self.recipe_repo.get_live_recipe(recipe_id):
            raise RecipeNotFoundException()

        if await self.cookbook_repo.has_recipe(cookbook.id, recipe_id):
            raise DuplicateRecipeException()

        await self.cookbook_repo.add_recipe(cookbook.id, recipe_id, self.user_id)
        return ActionResult()

    async def remove_recipe(self, cookbook_id: str, entry_id: str | None) -> ActionResult:
        cookbook = await self._get_owned_cookbook(cookbook_id)
        if not entry_id:
            return ActionResult(success=False)

        removed = await self.cookbook_repo.remove_entry(entry_id, cookbook.id)
        return ActionResult(success=removed)

    async def save_recipe(self, cookbook_id: str, recipe_id: str) -> ActionResult:
        """Adds a recipe from its detail page; saving it twice is not an error."""
        cookbook = await self.cookbook_repo.get_cookbook(cookbook_id)
        if not cookbook or cookbook.author_id != self.user_id:
            raise ForbiddenException()

        if not await self.recipe_repo.get_live_recipe(recipe_id):
            raise RecipeNotFoundException()

        if not await self.cookbook_repo.has_recipe(cookbook.id, recipe_id):
            try:
                await self.cookbook_repo.add_recipe(cookbook.id, recipe_id, self.user_id)
            except DuplicateRecipeException:
                pass
        return ActionResult()
