import pytest
from unittest.mock import AsyncMock, MagicMock

from spoonjoy.core.config import settings
from spoonjoy.core.exception.exceptions import ForbiddenException, FormValidationException
from spoonjoy.domains.recipe.exceptions import RecipeNotFoundException, DuplicateRecipeTitleException
from spoonjoy.domains.recipe.schemas import RecipeForm
from spoonjoy.domains.recipe.service import RecipeService


@pytest.mark.asyncio
class TestRecipeService:
    @pytest.fixture
    def repos(self):
        recipe_repo = AsyncMock()
        recipe_repo.title_taken.return_value = False
        recipe_repo.save_recipe.side_effect = lambda recipe: recipe
        recipe_repo.update_recipe.side_effect = lambda recipe: recipe
        cookbook_repo = AsyncMock()
        return recipe_repo, cookbook_repo

    @pytest.fixture
    def service(self, repos):
        recipe_repo, cookbook_repo = repos
        return RecipeService(recipe_repo=recipe_repo, cookbook_repo=cookbook_repo, user_id="user-1")

    async def test_create_recipe_defaults_image(self, service):
        """[Service] creating a recipe trims fields and falls back to the default image"""
        recipe = await service.create_recipe(RecipeForm(title="  Soup ", servings=" 4 "))

        assert recipe.title == "Soup"
        assert recipe.servings == "4"
        assert recipe.description is None
        assert recipe.chef_id == "user-1"
        assert recipe.image_url == settings.DEFAULT_RECIPE_IMAGE_URL

    async def test_create_recipe_validation(self, service, repos):
        recipe_repo, _ = repos

        with pytest.raises(FormValidationException) as exc_info:
            await service.create_recipe(RecipeForm(title="", image_url="not a url"))

        assert exc_info.value.errors == {"title": "Title is required", "imageUrl": "Please enter a valid URL"}
        recipe_repo.save_recipe.assert_not_awaited()

    async def test_create_recipe_duplicate_title(self, service, repos):
        recipe_repo, _ = repos
        recipe_repo.title_taken.return_value = True

        with pytest.raises(DuplicateRecipeTitleException) as exc_info:
            await service.create_recipe(RecipeForm(title="Soup"))

        assert exc_info.value.code == "duplicate_title"

    async def test_update_keeps_image_when_blank(self, service, repos):
        recipe_repo, _ = repos
        existing = MagicMock(id="recipe-1", chef_id="user-1", title="Soup", image_url="https://img/soup.png")
        recipe_repo.get_live_recipe.return_value = existing

        updated = await service.update_recipe("recipe-1", RecipeForm(title="Soup", description="Hot"))

        assert updated.image_url == "https://img/soup.png"
        assert updated.description == "Hot"
        recipe_repo.title_taken.assert_not_awaited()

    async def test_update_by_other_chef_is_forbidden(self, service, repos):
        recipe_repo, _ = repos
        recipe_repo.get_live_recipe.return_value = MagicMock(id="recipe-1", chef_id="someone-else")

        with pytest.raises(ForbiddenException):
            await service.update_recipe("recipe-1", RecipeForm(title="Mine now"))

        recipe_repo.update_recipe.assert_not_awaited()

    async def test_delete_missing_recipe(self, service, repos):
        recipe_repo, _ = repos
        recipe_repo.get_live_recipe.return_value = None

        with pytest.raises(RecipeNotFoundException):
            await service.delete_recipe("recipe-1")

    async def test_delete_is_soft(self, service, repos):
        recipe_repo, _ = repos
        recipe = MagicMock(id="recipe-1", chef_id="user-1")
        recipe_repo.get_live_recipe.return_value = recipe

        await service.delete_recipe("recipe-1")

        recipe_repo.soft_delete.assert_awaited_once_with(recipe)
