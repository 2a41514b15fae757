from enum import Enum

from spoonjoy.core.schemas import CamelModel
from spoonjoy.domains.ingredient.schemas import IngredientResponse


class StepIntent(str, Enum):
    PARSE_INGREDIENTS = "parseIngredients"
    DELETE = "delete"
    ADD_INGREDIENT = "addIngredient"
    DELETE_INGREDIENT = "deleteIngredient"


class ReorderDirection(str, Enum):
    UP = "up"
    DOWN = "down"


# --- Request ---
class StepForm(CamelModel):
    step_title: str = ""
    description: str = ""
    uses_steps: list[str] = []


# --- Response ---
class StepReference(CamelModel):
    """An earlier step offered as a dependency choice."""

    id: str
    step_num: int
    step_title: str | None = None


class UsingStepResponse(CamelModel):
    output_step_num: int
    input_step_num: int
    output_step_title: str | None = None


class StepResponse(CamelModel):
    id: str
    step_num: int
    step_title: str | None = None
    description: str
    ingredients: list[IngredientResponse] = []
    using_steps: list[UsingStepResponse] = []

    @classmethod
    def from_step(cls, step, step_titles: dict[int, str | None] | None = None) -> "StepResponse":
        """Expects ``ingredients`` (with unit and name) and ``using_steps`` to be loaded.

        With ``step_titles`` (step number to title) the output step titles come from that map,
        otherwise ``using_steps.output_of_step`` must be loaded as well.
        """
        return cls(
            id=step.id,
            step_num=step.step_num,
            step_title=step.step_title,
            description=step.description,
            ingredients=[IngredientResponse.from_ingredient(i) for i in step.ingredients],
            using_steps=[
                UsingStepResponse(
                    output_step_num=use.output_step_num,
                    input_step_num=use.input_step_num,
                    output_step_title=(
                        step_titles.get(use.output_step_num)
                        if step_titles is not None
                        else (use.output_of_step.step_title if use.output_of_step else None)
                    ),
                )
                for use in step.using_steps
            ],
        )


class NewStepResponse(CamelModel):
    recipe_id: str
    recipe_title: str
    next_step_num: int
    available_steps: list[StepReference]


class StepEditResponse(CamelModel):
    recipe_id: str
    recipe_title: str
    step: StepResponse
    available_steps: list[StepReference]
