from spoonjoy.core.exception.exceptions import BaseCustomException


class IngredientExistsException(BaseCustomException):
    def __init__(self, detail: str = "This ingredient is already in the recipe"):
        super().__init__(
            status_code=400,
            detail=detail,
            code="ingredient_exists",
            errors={"ingredientName": detail},
        )


class IngredientParseException(BaseCustomException):
    def __init__(self, detail: str = "Could not parse the ingredients"):
        super().__init__(status_code=400, detail=detail, code="parse_error", errors={"parse": detail})
