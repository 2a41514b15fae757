from enum import Enum

from spoonjoy.core.schemas import CamelModel


class ShoppingIntent(str, Enum):
    ADD_ITEM = "addItem"
    ADD_FROM_RECIPE = "addFromRecipe"
    TOGGLE_CHECK = "toggleCheck"
    REMOVE_ITEM = "removeItem"
    CLEAR_COMPLETED = "clearCompleted"
    CLEAR_ALL = "clearAll"


# --- Request ---
class AddItemRequest(CamelModel):
    quantity: str = ""
    unit_name: str = ""
    ingredient_name: str = ""


# --- Response ---
class ShoppingListItemResponse(CamelModel):
    id: str
    quantity: float | None = None
    unit_name: str | None = None
    ingredient_name: str
    checked: bool

    @classmethod
    def from_item(cls, item) -> "ShoppingListItemResponse":
        return cls(
            id=item.id,
            quantity=item.quantity,
            unit_name=item.unit.name if item.unit else None,
            ingredient_name=item.ingredient_ref.name,
            checked=item.checked,
        )


class RecipeOption(CamelModel):
    id: str
    title: str


class ShoppingListResponse(CamelModel):
    id: str
    items: list[ShoppingListItemResponse]
    recipes: list[RecipeOption]
