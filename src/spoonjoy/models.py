# Registers every table on Base.metadata (used by create_tables and the test suite)
from spoonjoy.domains.user.models import User, OAuth  # noqa: F401
from spoonjoy.domains.recipe.models import Recipe  # noqa: F401
from spoonjoy.domains.step.models import RecipeStep, StepOutputUse  # noqa: F401
from spoonjoy.domains.ingredient.models import Ingredient, Unit, IngredientRef  # noqa: F401
from spoonjoy.domains.cookbook.models import Cookbook, RecipeInCookbook  # noqa: F401
from spoonjoy.domains.shopping.models import ShoppingList, ShoppingListItem  # noqa: F401
