from spoonjoy.core.exception.exceptions import BaseCustomException


class ItemNotFoundException(BaseCustomException):
    def __init__(self, detail: str = "Shopping list item not found"):
        super().__init__(status_code=404, detail=detail, code="item_not_found")
