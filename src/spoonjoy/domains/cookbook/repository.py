from sqlalchemy import select, delete, func
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from spoonjoy.core.exception.exceptions import DatabaseException
from spoonjoy.domains.cookbook.exceptions import DuplicateCookbookTitleException, DuplicateRecipeException
from spoonjoy.domains.cookbook.models import Cookbook, RecipeInCookbook
from spoonjoy.domains.recipe.models import Recipe


class CookbookRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def save_cookbook(self, cookbook: Cookbook) -> Cookbook:
        try:
            self.session.add(cookbook)
            await self.session.commit()
            await self.session.refresh(cookbook)
            return cookbook
        except IntegrityError:
            await self.session.rollback()
            raise DuplicateCookbookTitleException()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to save cookbook: {str(e)}")

    async def get_cookbook(self, cookbook_id: str) -> Cookbook | None:
        try:
            result = await self.session.execute(select(Cookbook).where(Cookbook.id == cookbook_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load cookbook: {str(e)}")

    async def get_cookbook_detail(self, cookbook_id: str) -> Cookbook | None:
        try:
            stmt = (
                select(Cookbook)
                .where(Cookbook.id == cookbook_id)
                .options(
                    selectinload(Cookbook.author),
                    selectinload(Cookbook.recipes).selectinload(RecipeInCookbook.recipe).selectinload(Recipe.chef),
                )
                .execution_options(populate_existing=True)
            )
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load cookbook: {str(e)}")

    async def get_cookbooks_with_counts(self, author_id: str) -> list[tuple[Cookbook, int]]:
        try:
            recipe_count = (
                select(func.count(RecipeInCookbook.id))
                .join(Recipe, Recipe.id == RecipeInCookbook.recipe_id)
                .where(RecipeInCookbook.cookbook_id == Cookbook.id, Recipe.deleted_at.is_(None))
                .correlate(Cookbook)
                .scalar_subquery()
            )
            stmt = (
                select(Cookbook, recipe_count)
                .where(Cookbook.author_id == author_id)
                .order_by(Cookbook.updated_at.desc(), Cookbook.created_at.desc())
            )
            result = await self.session.execute(stmt)
            return [(cookbook, count) for cookbook, count in result.all()]
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load cookbooks: {str(e)}")

    async def get_cookbooks_containing(self, author_id: str, recipe_id: str) -> list[tuple[Cookbook, bool]]:
        """The author's cookbooks ordered by title, each flagged if it already holds ``recipe_id``."""
        try:
            stmt = (
                select(Cookbook)
                .where(Cookbook.author_id == author_id)
                .order_by(Cookbook.title)
            )
            cookbooks = list((await self.session.execute(stmt)).scalars().all())

            containing_stmt = select(RecipeInCookbook.cookbook_id).where(
                RecipeInCookbook.recipe_id == recipe_id,
                RecipeInCookbook.cookbook_id.in_([c.id for c in cookbooks]),
            )
            containing = set((await self.session.execute(containing_stmt)).scalars().all())
            return [(cookbook, cookbook.id in containing) for cookbook in cookbooks]
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load cookbooks: {str(e)}")

    async def title_taken(self, author_id: str, title: str, exclude_cookbook_id: str | None = None) -> bool:
        try:
            stmt = select(func.count(Cookbook.id)).where(Cookbook.author_id == author_id, Cookbook.title == title)
            if exclude_cookbook_id:
                stmt = stmt.where(Cookbook.id != exclude_cookbook_id)
            result = await self.session.execute(stmt)
            return result.scalar_one() > 0
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to check cookbook title: {str(e)}")

    async def update_cookbook(self, cookbook: Cookbook) -> Cookbook:
        return await self.save_cookbook(cookbook)

    async def delete_cookbook(self, cookbook: Cookbook) -> None:
        try:
            await self.session.execute(
                delete(RecipeInCookbook).where(RecipeInCookbook.cookbook_id == cookbook.id)
            )
            await self.session.delete(cookbook)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to delete cookbook: {str(e)}")

    async def has_recipe(self, cookbook_id: str, recipe_id: str) -> bool:
        try:
            stmt = select(RecipeInCookbook.id).where(
                RecipeInCookbook.cookbook_id == cookbook_id, RecipeInCookbook.recipe_id == recipe_id
            )
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none() is not None
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to check cookbook contents: {str(e)}")

    async def add_recipe(self, cookbook_id: str, recipe_id: str, added_by_id: str) -> RecipeInCookbook:
        try:
            entry = RecipeInCookbook(cookbook_id=cookbook_id, recipe_id=recipe_id, added_by_id=added_by_id)
            self.session.add(entry)
            await self.session.commit()
            return entry
        except IntegrityError:
            await self.session.rollback()
            raise DuplicateRecipeException()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to add recipe to cookbook: {str(e)}")

    async def remove_entry(self, entry_id: str, cookbook_id: str) -> bool:
        try:
            stmt = delete(RecipeInCookbook).where(
                RecipeInCookbook.id == entry_id, RecipeInCookbook.cookbook_id == cookbook_id
            )
            result = await self.session.execute(stmt)
            await self.session.commit()
            return result.rowcount > 0
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to remove recipe from cookbook: {str(e)}")

    async def get_available_recipes(self, author_id: str, cookbook_id: str) -> list[Recipe]:
        """The author's live recipes not yet in the cookbook."""
        try:
            in_cookbook = select(RecipeInCookbook.recipe_id).where(RecipeInCookbook.cookbook_id == cookbook_id)
            stmt = (
                select(Recipe)
                .where(
                    Recipe.chef_id == author_id,
                    Recipe.deleted_at.is_(None),
                    Recipe.id.not_in(in_cookbook),
                )
                .order_by(Recipe.title)
            )
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load recipes: {str(e)}")
