from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from spoonjoy.core.exception.exceptions import DatabaseException
from spoonjoy.domains.ingredient.models import IngredientRef
from spoonjoy.domains.shopping.models import ShoppingList, ShoppingListItem


class ShoppingRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_or_create_list(self, author_id: str) -> ShoppingList:
        try:
            result = await self.session.execute(select(ShoppingList).where(ShoppingList.author_id == author_id))
            shopping_list = result.scalar_one_or_none()
            if shopping_list is None:
                shopping_list = ShoppingList(author_id=author_id)
                self.session.add(shopping_list)
                await self.session.commit()
            return shopping_list

        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to load shopping list: {str(e)}")

    async def get_items(self, shopping_list_id: str) -> list[ShoppingListItem]:
        try:
            stmt = (
                select(ShoppingListItem)
                .join(IngredientRef, IngredientRef.id == ShoppingListItem.ingredient_ref_id)
                .where(ShoppingListItem.shopping_list_id == shopping_list_id)
                .options(selectinload(ShoppingListItem.unit), selectinload(ShoppingListItem.ingredient_ref))
                .order_by(IngredientRef.name)
                .execution_options(populate_existing=True)
            )
            result = await self.session.execute(stmt)
            return list(result.scalars().all())

        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load shopping list items: {str(e)}")

    async def find_item(
        self, shopping_list_id: str, unit_id: str | None, ingredient_ref_id: str
    ) -> ShoppingListItem | None:
        try:
            # NULL never equals NULL in SQL, so a missing unit needs IS NULL
            unit_clause = ShoppingListItem.unit_id.is_(None) if unit_id is None else ShoppingListItem.unit_id == unit_id
            stmt = select(ShoppingListItem).where(
                ShoppingListItem.shopping_list_id == shopping_list_id,
                ShoppingListItem.ingredient_ref_id == ingredient_ref_id,
                unit_clause,
            )
            result = await self.session.execute(stmt)
            return result.scalars().first()

        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load shopping list item: {str(e)}")

    async def get_item(self, item_id: str, shopping_list_id: str) -> ShoppingListItem | None:
        try:
            stmt = select(ShoppingListItem).where(
                ShoppingListItem.id == item_id, ShoppingListItem.shopping_list_id == shopping_list_id
            )
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()

        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load shopping list item: {str(e)}")

    async def add_item(self, item: ShoppingListItem) -> None:
        self.session.add(item)
        await self.flush()

    async def flush(self) -> None:
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to save shopping list: {str(e)}")

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to save shopping list: {str(e)}")

    async def delete_item(self, item_id: str, shopping_list_id: str) -> bool:
        try:
            stmt = delete(ShoppingListItem).where(
                ShoppingListItem.id == item_id,
                ShoppingListItem.shopping_list_id == shopping_list_id,
            )
            result = await self.session.execute(stmt)
            await self.session.commit()
            return result.rowcount > 0

        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to remove shopping list item: {str(e)}")

    async def clear_items(self, shopping_list_id: str, checked_only: bool = False) -> int:
        try:
            stmt = delete(ShoppingListItem).where(ShoppingListItem.shopping_list_id == shopping_list_id)
            if checked_only:
                stmt = stmt.where(ShoppingListItem.checked.is_(True))
            result = await self.session.execute(stmt)
            await self.session.commit()
            return result.rowcount

        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to clear shopping list: {str(e)}")
