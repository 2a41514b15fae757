from spoonjoy.core.exception.exceptions import BaseCustomException


class StepNotFoundException(BaseCustomException):
    def __init__(self, detail: str = "Step not found"):
        super().__init__(status_code=404, detail=detail, code="step_not_found")


class StepInUseException(BaseCustomException):
    def __init__(self, detail: str = "This step is used by later steps"):
        super().__init__(status_code=400, detail=detail, code="step_in_use", errors={"stepDeletion": detail})


class InvalidReorderException(BaseCustomException):
    def __init__(self, detail: str = "This step cannot be moved there"):
        super().__init__(status_code=400, detail=detail, code="invalid_reorder", errors={"reorder": detail})
