from pydantic import Field

from spoonjoy.core.schemas import CamelModel


# --- Request ---
class AddIngredientRequest(CamelModel):
    quantity: str = ""
    unit_name: str = ""
    ingredient_name: str = ""


# --- Response ---
class IngredientResponse(CamelModel):
    id: str
    step_num: int
    quantity: float
    unit_name: str
    ingredient_name: str

    @classmethod
    def from_ingredient(cls, ingredient) -> "IngredientResponse":
        return cls(
            id=ingredient.id,
            step_num=ingredient.step_num,
            quantity=ingredient.quantity,
            unit_name=ingredient.unit.name,
            ingredient_name=ingredient.ingredient_ref.name,
        )


class ParsedIngredient(CamelModel):
    quantity: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1)
    ingredient_name: str = Field(..., min_length=1)


class ParsedIngredientsResponse(CamelModel):
    ingredients: list[ParsedIngredient]


class ParseIngredientsResult(CamelModel):
    parsed_ingredients: list[ParsedIngredient]
