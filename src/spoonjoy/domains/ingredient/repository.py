from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from spoonjoy.core.exception.exceptions import DatabaseException
from spoonjoy.domains.ingredient.models import Ingredient, Unit, IngredientRef


class IngredientRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_or_create(self, model, name: str):
        normalized = name.strip().lower()
        try:
            result = await self.session.execute(select(model).where(model.name == normalized))
            row = result.scalar_one_or_none()
            if row is None:
                row = model(name=normalized)
                self.session.add(row)
                await self.session.flush()
            return row
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to resolve {model.__tablename__} '{normalized}': {str(e)}")

    async def get_or_create_unit(self, name: str) -> Unit:
        return await self._get_or_create(Unit, name)

    async def get_or_create_ingredient_ref(self, name: str) -> IngredientRef:
        return await self._get_or_create(IngredientRef, name)

    async def recipe_has_ingredient(self, recipe_id: str, ingredient_ref_id: str) -> bool:
        try:
            stmt = select(Ingredient.id).where(
                Ingredient.recipe_id == recipe_id, Ingredient.ingredient_ref_id == ingredient_ref_id
            )
            result = await self.session.execute(stmt.limit(1))
            return result.scalar_one_or_none() is not None
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to check ingredient: {str(e)}")

    async def add_ingredient(self, ingredient: Ingredient) -> Ingredient:
        try:
            self.session.add(ingredient)
            await self.session.commit()
            await self.session.refresh(ingredient)
            return ingredient
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to add ingredient: {str(e)}")

    async def get_recipe_ingredients(self, recipe_id: str) -> list[Ingredient]:
        try:
            stmt = (
                select(Ingredient)
                .where(Ingredient.recipe_id == recipe_id)
                .order_by(Ingredient.step_num, Ingredient.id)
            )
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load ingredients: {str(e)}")

    async def delete_ingredient(self, ingredient_id: str, recipe_id: str, step_num: int) -> bool:
        try:
            stmt = delete(Ingredient).where(
                Ingredient.id == ingredient_id,
                Ingredient.recipe_id == recipe_id,
                Ingredient.step_num == step_num,
            )
            result = await self.session.execute(stmt)
            await self.session.commit()
            return result.rowcount > 0
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to delete ingredient: {str(e)}")
