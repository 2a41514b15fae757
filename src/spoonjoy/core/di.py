from fastapi import Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from spoonjoy.core.database import get_db, get_redis
from spoonjoy.core.security import require_user_id
from spoonjoy.core.storage import PhotoStore, get_photo_store
from spoonjoy.domains.account.service import AccountService
from spoonjoy.domains.cookbook.repository import CookbookRepository
from spoonjoy.domains.cookbook.service import CookbookService
from spoonjoy.domains.ingredient.parser import IngredientParser
from spoonjoy.domains.ingredient.repository import IngredientRepository
from spoonjoy.domains.ingredient.service import IngredientService
from spoonjoy.domains.recipe.repository import RecipeRepository
from spoonjoy.domains.recipe.service import RecipeService
from spoonjoy.domains.shopping.repository import ShoppingRepository
from spoonjoy.domains.shopping.service import ShoppingService
from spoonjoy.domains.step.repository import StepRepository
from spoonjoy.domains.step.service import StepService
from spoonjoy.domains.user.repository import UserRepository
from spoonjoy.domains.user.service import UserService, SocialAuthService


# --- Repositories ---
def get_user_repo(session: AsyncSession = Depends(get_db)) -> UserRepository:
    return UserRepository(session)


def get_recipe_repo(session: AsyncSession = Depends(get_db)) -> RecipeRepository:
    return RecipeRepository(session)


def get_step_repo(session: AsyncSession = Depends(get_db)) -> StepRepository:
    return StepRepository(session)


def get_ingredient_repo(session: AsyncSession = Depends(get_db)) -> IngredientRepository:
    return IngredientRepository(session)


def get_cookbook_repo(session: AsyncSession = Depends(get_db)) -> CookbookRepository:
    return CookbookRepository(session)


def get_shopping_repo(session: AsyncSession = Depends(get_db)) -> ShoppingRepository:
    return ShoppingRepository(session)


# --- Users & sign-in ---
def get_user_service(user_repo: UserRepository = Depends(get_user_repo)) -> UserService:
    return UserService(user_repo)


def get_social_auth_service(
    user_repo: UserRepository = Depends(get_user_repo),
    redis: Redis = Depends(get_redis),
) -> SocialAuthService:
    return SocialAuthService(user_repo, redis)


def get_account_service(
    user_id: str = Depends(require_user_id),
    user_repo: UserRepository = Depends(get_user_repo),
    storage: PhotoStore = Depends(get_photo_store),
) -> AccountService:
    return AccountService(user_repo=user_repo, user_id=user_id, storage=storage)


# --- Recipes ---
def get_recipe_service(
    user_id: str = Depends(require_user_id),
    recipe_repo: RecipeRepository = Depends(get_recipe_repo),
    cookbook_repo: CookbookRepository = Depends(get_cookbook_repo),
) -> RecipeService:
    return RecipeService(recipe_repo=recipe_repo, cookbook_repo=cookbook_repo, user_id=user_id)


def get_step_service(
    user_id: str = Depends(require_user_id),
    step_repo: StepRepository = Depends(get_step_repo),
    recipe_repo: RecipeRepository = Depends(get_recipe_repo),
) -> StepService:
    return StepService(step_repo=step_repo, recipe_repo=recipe_repo, user_id=user_id)


def get_ingredient_parser() -> IngredientParser:
    return IngredientParser()


def get_ingredient_service(
    ingredient_repo: IngredientRepository = Depends(get_ingredient_repo),
    parser: IngredientParser = Depends(get_ingredient_parser),
) -> IngredientService:
    return IngredientService(ingredient_repo=ingredient_repo, parser=parser)


# --- Cookbooks ---
def get_cookbook_service(
    user_id: str = Depends(require_user_id),
    cookbook_repo: CookbookRepository = Depends(get_cookbook_repo),
    recipe_repo: RecipeRepository = Depends(get_recipe_repo),
) -> CookbookService:
    return CookbookService(cookbook_repo=cookbook_repo, recipe_repo=recipe_repo, user_id=user_id)


# --- Shopping list ---
def get_shopping_service(
    user_id: str = Depends(require_user_id),
    shopping_repo: ShoppingRepository = Depends(get_shopping_repo),
    ingredient_repo: IngredientRepository = Depends(get_ingredient_repo),
    recipe_repo: RecipeRepository = Depends(get_recipe_repo),
) -> ShoppingService:
    return ShoppingService(
        shopping_repo=shopping_repo,
        ingredient_repo=ingredient_repo,
        recipe_repo=recipe_repo,
        user_id=user_id,
    )
