from datetime import datetime
from enum import Enum

from spoonjoy.core.schemas import CamelModel
from spoonjoy.domains.step.schemas import StepResponse


class RecipeIntent(str, Enum):
    ADD_TO_COOKBOOK = "addToCookbook"
    DELETE = "delete"
    REORDER_STEP = "reorderStep"


# --- Request ---
class RecipeForm(CamelModel):
    title: str = ""
    description: str = ""
    servings: str = ""
    image_url: str = ""


# --- Response ---
class ChefSummary(CamelModel):
    id: str
    username: str
    photo_url: str | None = None


class RecipeSummary(CamelModel):
    id: str
    title: str
    description: str | None = None
    servings: str | None = None
    image_url: str | None = None
    updated_at: datetime | None = None


class RecipeListResponse(CamelModel):
    recipes: list[RecipeSummary]


class RecipeDetail(RecipeSummary):
    chef_id: str
    chef: ChefSummary
    steps: list[StepResponse]


class CookbookOption(CamelModel):
    id: str
    title: str


class RecipeDetailResponse(CamelModel):
    recipe: RecipeDetail
    is_owner: bool
    cookbooks: list[CookbookOption]
    saved_in_cookbook_ids: list[str]


class RecipeEditResponse(CamelModel):
    recipe: RecipeDetail
