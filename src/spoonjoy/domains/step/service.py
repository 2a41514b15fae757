import logging

from spoonjoy.core.schemas import ActionResult
from spoonjoy.core.validation import (
    collect_errors,
    parse_int,
    validate_step_title,
    validate_step_description,
    validate_step_reference,
)
from spoonjoy.core.exception.exceptions import FormValidationException
from spoonjoy.domains.recipe.models import Recipe
from spoonjoy.domains.recipe.repository import RecipeRepository
from spoonjoy.domains.recipe.service import load_owned_recipe
from spoonjoy.domains.step import dependencies
from spoonjoy.domains.step.exceptions import (
    StepNotFoundException,
    StepInUseException,
    InvalidReorderException,
)
from spoonjoy.domains.step.models import RecipeStep
from spoonjoy.domains.step.repository import StepRepository
from spoonjoy.domains.step.schemas import (
    ReorderDirection,
    StepForm,
    StepReference,
    StepResponse,
    NewStepResponse,
    StepEditResponse,
)

logger = logging.getLogger("spoonjoy.step")


class StepService:
    def __init__(self, step_repo: StepRepository, recipe_repo: RecipeRepository, user_id: str):
        self.step_repo = step_repo
        self.recipe_repo = recipe_repo
        self.user_id = user_id

    async def get_owned_step(self, recipe_id: str, step_id: str) -> tuple[Recipe, RecipeStep]:
        recipe = await load_owned_recipe(self.recipe_repo, recipe_id, self.user_id)

        step = await self.step_repo.get_step(step_id)
        if not step or step.recipe_id != recipe.id:
            raise StepNotFoundException()
        return recipe, step

    async def _available_steps(self, recipe_id: str, before_step_num: int) -> list[StepReference]:
        steps = await self.step_repo.get_steps(recipe_id, before_step_num=before_step_num)
        return [StepReference.model_validate(step) for step in steps]

    @staticmethod
    def _validate_form(form: StepForm, step_num: int) -> tuple[str | None, str, list[int]]:
        step_title = form.step_title.strip()
        description = form.description.strip()

        # Report only the first bad reference
        uses_error = None
        parsed = [parse_int(value) for value in form.uses_steps if str(value).strip()]
        for output_step_num in parsed:
            uses_error = validate_step_reference(output_step_num, step_num)
            if uses_error:
                break

        errors = collect_errors(
            stepTitle=validate_step_title(step_title),
            description=validate_step_description(description),
            usesSteps=uses_error,
        )
        if errors:
            raise FormValidationException(errors=errors)

        return step_title or None, description, dependencies.clean_step_references(parsed, step_num)

    # --- New step ---
    async def get_new_step_page(self, recipe_id: str) -> NewStepResponse:
        recipe = await load_owned_recipe(self.recipe_repo, recipe_id, self.user_id)
        next_step_num = await self.step_repo.next_step_num(recipe.id)

        return NewStepResponse(
            recipe_id=recipe.id,
            recipe_title=recipe.title,
            next_step_num=next_step_num,
            available_steps=await self._available_steps(recipe.id, next_step_num),
        )

    async def create_step(self, recipe_id: str, form: StepForm) -> RecipeStep:
        recipe = await load_owned_recipe(self.recipe_repo, recipe_id, self.user_id)
        next_step_num = await self.step_repo.next_step_num(recipe.id)

        step_title, description, uses_steps = self._validate_form(form, next_step_num)

        step = await self.step_repo.create_step(
            RecipeStep(
                recipe_id=recipe.id,
                step_num=next_step_num,
                step_title=step_title,
                description=description,
            ),
            uses_steps,
        )
        logger.info("Step %s created on recipe %s", step.step_num, recipe.id)
        return step

    # --- Edit step ---
    async def get_edit_step_page(self, recipe_id: str, step_id: str) -> StepEditResponse:
        recipe, step = await self.get_owned_step(recipe_id, step_id)
        detail = await self.step_repo.get_step_detail(step.id)

        return StepEditResponse(
            recipe_id=recipe.id,
            recipe_title=recipe.title,
            step=StepResponse.from_step(detail),
            available_steps=await self._available_steps(recipe.id, step.step_num),
        )

    async def update_step(self, recipe_id: str, step_id: str, form: StepForm) -> RecipeStep:
        _, step = await self.get_owned_step(recipe_id, step_id)

        step_title, description, uses_steps = self._validate_form(form, step.step_num)

        step.step_title = step_title
        step.description = description
        return await self.step_repo.update_step(step, uses_steps)

    async def delete_step(self, recipe_id: str, step_id: str) -> None:
        recipe, step = await self.get_owned_step(recipe_id, step_id)

        dependents = await self.step_repo.get_dependents(recipe.id, step.step_num)
        error = dependencies.deletion_error(step.step_num, dependents)
        if error:
            raise StepInUseException(detail=error)

        await self.step_repo.delete_step(step)
        logger.info("Step %s deleted from recipe %s", step.step_num, recipe.id)

    # --- Reorder ---
    async def reorder_step(self, recipe_id: str, step_id: str | None, direction: str | None) -> ActionResult:
        recipe = await load_owned_recipe(self.recipe_repo, recipe_id, self.user_id)

        try:
            move = ReorderDirection(direction)
        except ValueError:
            return ActionResult(success=False)

        step = await self.step_repo.get_step(step_id) if step_id else None
        if not step or step.recipe_id != recipe.id:
            return ActionResult(success=False)

        target_num = step.step_num - 1 if move == ReorderDirection.UP else step.step_num + 1

        error = dependencies.reorder_error(
            step.step_num,
            target_num,
            await self.step_repo.get_dependents(recipe.id, step.step_num),
            await self.step_repo.get_dependencies(recipe.id, step.step_num),
        )
        if error:
            raise InvalidReorderException(detail=error)

        target = await self.step_repo.get_step_by_num(recipe.id, target_num)
        if not target:
            return ActionResult(success=False)

        await self.step_repo.swap_steps(step, target)
        return ActionResult()
