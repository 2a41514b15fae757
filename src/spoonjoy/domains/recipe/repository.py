from datetime import datetime, timezone

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from spoonjoy.core.exception.exceptions import DatabaseException
from spoonjoy.domains.ingredient.models import Ingredient
from spoonjoy.domains.recipe.models import Recipe
from spoonjoy.domains.step.models import RecipeStep


class RecipeRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def save_recipe(self, recipe: Recipe) -> Recipe:
        try:
            self.session.add(recipe)
            await self.session.commit()
            await self.session.refresh(recipe)
            return recipe
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to save recipe: {str(e)}")

    async def get_live_recipe(self, recipe_id: str) -> Recipe | None:
        """Every read goes through here or ``get_recipe_detail``: soft-deleted rows are never returned."""
        try:
            stmt = select(Recipe).where(Recipe.id == recipe_id, Recipe.deleted_at.is_(None))
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load recipe: {str(e)}")

    async def get_recipe_detail(self, recipe_id: str) -> Recipe | None:
        try:
            stmt = (
                select(Recipe)
                .where(Recipe.id == recipe_id, Recipe.deleted_at.is_(None))
                .options(
                    selectinload(Recipe.chef),
                    selectinload(Recipe.steps)
                    .selectinload(RecipeStep.ingredients)
                    .selectinload(Ingredient.unit),
                    selectinload(Recipe.steps)
                    .selectinload(RecipeStep.ingredients)
                    .selectinload(Ingredient.ingredient_ref),
                    selectinload(Recipe.steps).selectinload(RecipeStep.using_steps),
                )
                .execution_options(populate_existing=True)
            )
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load recipe: {str(e)}")

    async def get_recipes_by_chef(self, chef_id: str) -> list[Recipe]:
        try:
            stmt = (
                select(Recipe)
                .where(Recipe.chef_id == chef_id, Recipe.deleted_at.is_(None))
                .order_by(Recipe.updated_at.desc(), Recipe.created_at.desc())
            )
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load recipes: {str(e)}")

    async def title_taken(self, chef_id: str, title: str, exclude_recipe_id: str | None = None) -> bool:
        try:
            stmt = select(func.count(Recipe.id)).where(
                Recipe.chef_id == chef_id,
                Recipe.title == title,
                Recipe.deleted_at.is_(None),
            )
            if exclude_recipe_id:
                stmt = stmt.where(Recipe.id != exclude_recipe_id)
            result = await self.session.execute(stmt)
            return result.scalar_one() > 0
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to check recipe title: {str(e)}")

    async def update_recipe(self, recipe: Recipe) -> Recipe:
        try:
            self.session.add(recipe)
            await self.session.commit()
            await self.session.refresh(recipe)
            return recipe
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to update recipe: {str(e)}")

    async def soft_delete(self, recipe: Recipe) -> None:
        try:
            recipe.deleted_at = datetime.now(timezone.utc)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to delete recipe: {str(e)}")
