from sqlalchemy import select, delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from spoonjoy.core.exception.exceptions import DatabaseException
from spoonjoy.domains.ingredient.models import Ingredient
from spoonjoy.domains.step.models import RecipeStep, StepOutputUse


class StepRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    # --- Reads ---
    async def get_step(self, step_id: str) -> RecipeStep | None:
        try:
            result = await self.session.execute(select(RecipeStep).where(RecipeStep.id == step_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load step: {str(e)}")

    async def get_step_detail(self, step_id: str) -> RecipeStep | None:
        try:
            stmt = (
                select(RecipeStep)
                .where(RecipeStep.id == step_id)
                .options(
                    selectinload(RecipeStep.ingredients).selectinload(Ingredient.unit),
                    selectinload(RecipeStep.ingredients).selectinload(Ingredient.ingredient_ref),
                    selectinload(RecipeStep.using_steps).selectinload(StepOutputUse.output_of_step),
                )
                .execution_options(populate_existing=True)
            )
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load step: {str(e)}")

    async def get_step_by_num(self, recipe_id: str, step_num: int) -> RecipeStep | None:
        try:
            stmt = select(RecipeStep).where(RecipeStep.recipe_id == recipe_id, RecipeStep.step_num == step_num)
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load step: {str(e)}")

    async def get_steps(self, recipe_id: str, before_step_num: int | None = None) -> list[RecipeStep]:
        try:
            stmt = select(RecipeStep).where(RecipeStep.recipe_id == recipe_id)
            if before_step_num is not None:
                stmt = stmt.where(RecipeStep.step_num < before_step_num)
            result = await self.session.execute(stmt.order_by(RecipeStep.step_num))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load steps: {str(e)}")

    async def next_step_num(self, recipe_id: str) -> int:
        try:
            stmt = select(func.max(RecipeStep.step_num)).where(RecipeStep.recipe_id == recipe_id)
            result = await self.session.execute(stmt)
            return (result.scalar_one_or_none() or 0) + 1
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to compute next step number: {str(e)}")

    async def get_dependents(self, recipe_id: str, step_num: int) -> list[int]:
        """Numbers of the steps that use the output of ``step_num``."""
        try:
            stmt = (
                select(StepOutputUse.input_step_num)
                .where(StepOutputUse.recipe_id == recipe_id, StepOutputUse.output_step_num == step_num)
                .order_by(StepOutputUse.input_step_num)
            )
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load step usage: {str(e)}")

    async def get_dependencies(self, recipe_id: str, step_num: int) -> list[int]:
        """Numbers of the steps whose output ``step_num`` uses."""
        try:
            stmt = (
                select(StepOutputUse.output_step_num)
                .where(StepOutputUse.recipe_id == recipe_id, StepOutputUse.input_step_num == step_num)
                .order_by(StepOutputUse.output_step_num)
            )
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise DatabaseException(detail=f"Failed to load step dependencies: {str(e)}")

    # --- Writes ---
    async def create_step(self, step: RecipeStep, uses_steps: list[int]) -> RecipeStep:
        try:
            self.session.add(step)
            for output_step_num in uses_steps:
                self.session.add(
                    StepOutputUse(
                        recipe_id=step.recipe_id,
                        output_step_num=output_step_num,
                        input_step_num=step.step_num,
                    )
                )
            await self.session.commit()
            await self.session.refresh(step)
            return step
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to create step: {str(e)}")

    async def update_step(self, step: RecipeStep, uses_steps: list[int]) -> RecipeStep:
        """Saves the step and makes its dependency rows equal ``uses_steps`` in one transaction."""
        try:
            self.session.add(step)

            current = set(await self.get_dependencies(step.recipe_id, step.step_num))
            wanted = set(uses_steps)

            stale = current - wanted
            if stale:
                await self.session.execute(
                    delete(StepOutputUse).where(
                        StepOutputUse.recipe_id == step.recipe_id,
                        StepOutputUse.input_step_num == step.step_num,
                        StepOutputUse.output_step_num.in_(stale),
                    )
                )
            for output_step_num in sorted(wanted - current):
                self.session.add(
                    StepOutputUse(
                        recipe_id=step.recipe_id,
                        output_step_num=output_step_num,
                        input_step_num=step.step_num,
                    )
                )

            await self.session.commit()
            await self.session.refresh(step)
            return step
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to update step: {str(e)}")

    async def _remap_step_nums(self, recipe_id: str, mapping: dict[int, int]) -> None:
        """Moves ingredient and dependency rows from old step numbers to new ones.

        Dependency rows are deleted and re-inserted so that no intermediate state
        trips the uniqueness or ordering constraints. Nothing is committed here.
        """
        old_nums = list(mapping)

        uses_result = await self.session.execute(
            select(StepOutputUse).where(
                StepOutputUse.recipe_id == recipe_id,
                (StepOutputUse.output_step_num.in_(old_nums)) | (StepOutputUse.input_step_num.in_(old_nums)),
            )
        )
        moved = [(use.output_step_num, use.input_step_num) for use in uses_result.scalars().all()]
        if moved:
            await self.session.execute(
                delete(StepOutputUse).where(
                    StepOutputUse.recipe_id == recipe_id,
                    (StepOutputUse.output_step_num.in_(old_nums)) | (StepOutputUse.input_step_num.in_(old_nums)),
                )
            )
            await self.session.flush()
            for output_step_num, input_step_num in moved:
                self.session.add(
                    StepOutputUse(
                        recipe_id=recipe_id,
                        output_step_num=mapping.get(output_step_num, output_step_num),
                        input_step_num=mapping.get(input_step_num, input_step_num),
                    )
                )

        ingredients_result = await self.session.execute(
            select(Ingredient).where(Ingredient.recipe_id == recipe_id, Ingredient.step_num.in_(old_nums))
        )
        for ingredient in ingredients_result.scalars().all():
            ingredient.step_num = mapping[ingredient.step_num]

        await self.session.flush()

    async def swap_steps(self, first: RecipeStep, second: RecipeStep) -> None:
        """Exchanges the positions of two steps, carrying their ingredients and dependency rows."""
        try:
            first_num, second_num = first.step_num, second.step_num
            await self._remap_step_nums(first.recipe_id, {first_num: second_num, second_num: first_num})

            # Park one step on a free number so (recipe_id, step_num) stays unique throughout
            first.step_num = -1
            await self.session.flush()
            second.step_num = first_num
            await self.session.flush()
            first.step_num = second_num

            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to reorder steps: {str(e)}")

    async def delete_step(self, step: RecipeStep) -> None:
        """Deletes a step and its rows, then closes the gap so numbering stays 1..N."""
        try:
            recipe_id, step_num = step.recipe_id, step.step_num

            await self.session.execute(
                delete(StepOutputUse).where(
                    StepOutputUse.recipe_id == recipe_id,
                    (StepOutputUse.input_step_num == step_num) | (StepOutputUse.output_step_num == step_num),
                )
            )
            await self.session.execute(
                delete(Ingredient).where(Ingredient.recipe_id == recipe_id, Ingredient.step_num == step_num)
            )
            await self.session.delete(step)
            await self.session.flush()

            later_steps = await self.get_steps_after(recipe_id, step_num)
            if later_steps:
                await self._remap_step_nums(recipe_id, {s.step_num: s.step_num - 1 for s in later_steps})
                # Ascending order, one at a time: each target number is already free
                for later in later_steps:
                    later.step_num -= 1
                    await self.session.flush()

            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseException(detail=f"Failed to delete step: {str(e)}")

    async def get_steps_after(self, recipe_id: str, step_num: int) -> list[RecipeStep]:
        result = await self.session.execute(
            select(RecipeStep)
            .where(RecipeStep.recipe_id == recipe_id, RecipeStep.step_num > step_num)
            .order_by(RecipeStep.step_num)
        )
        return list(result.scalars().all())
