from spoonjoy.core.exception.exceptions import BaseCustomException


class RecipeNotFoundException(BaseCustomException):
    def __init__(self, detail: str = "Recipe not found"):
        super().__init__(status_code=404, detail=detail, code="recipe_not_found")


class DuplicateRecipeTitleException(BaseCustomException):
    def __init__(self, detail: str = "You already have a recipe with this title"):
        super().__init__(status_code=400, detail=detail, code="duplicate_title", errors={"title": detail})
