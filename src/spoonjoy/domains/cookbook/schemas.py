from datetime import datetime
from enum import Enum

from spoonjoy.core.schemas import CamelModel
from spoonjoy.domains.recipe.schemas import ChefSummary, RecipeSummary


class CookbookIntent(str, Enum):
    UPDATE_TITLE = "updateTitle"
    DELETE = "delete"
    ADD_RECIPE = "addRecipe"
    REMOVE_RECIPE = "removeRecipe"


# --- Request ---
class CookbookForm(CamelModel):
    title: str = ""


# --- Response ---
class CookbookSummary(CamelModel):
    id: str
    title: str
    recipe_count: int = 0
    updated_at: datetime | None = None


class CookbookListResponse(CamelModel):
    cookbooks: list[CookbookSummary]


class CookbookEntry(CamelModel):
    id: str
    recipe: RecipeSummary
    chef: ChefSummary
    added_at: datetime | None = None


class CookbookDetail(CamelModel):
    id: str
    title: str
    author: ChefSummary
    recipes: list[CookbookEntry]


class CookbookDetailResponse(CamelModel):
    cookbook: CookbookDetail
    is_owner: bool
    available_recipes: list[RecipeSummary] = []
