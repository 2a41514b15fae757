from spoonjoy.core.exception.exceptions import BaseCustomException


class CookbookNotFoundException(BaseCustomException):
    def __init__(self, detail: str = "Cookbook not found"):
        super().__init__(status_code=404, detail=detail, code="cookbook_not_found")


class DuplicateCookbookTitleException(BaseCustomException):
    def __init__(self, detail: str = "You already have a cookbook with this title"):
        super().__init__(status_code=400, detail=detail, code="duplicate_title", errors={"title": detail})


class DuplicateRecipeException(BaseCustomException):
    def __init__(self, detail: str = "This recipe is already in the cookbook"):
        super().__init__(status_code=400, detail=detail, code="duplicate_recipe")
