from spoonjoy.core.exception.exceptions import BaseCustomException


class LastAuthMethodException(BaseCustomException):
    def __init__(self, detail: str = "You must keep at least one way to sign in"):
        super().__init__(status_code=400, detail=detail, code="last_auth_method")


class PasswordAlreadySetException(BaseCustomException):
    def __init__(self, detail: str = "You already have a password. Use change password instead."):
        super().__init__(status_code=400, detail=detail, code="password_already_set")


class NoPasswordException(BaseCustomException):
    def __init__(self, detail: str = "You don't have a password set"):
        super().__init__(status_code=400, detail=detail, code="no_password")


class IncorrectPasswordException(BaseCustomException):
    def __init__(self, detail: str = "Current password is incorrect"):
        super().__init__(status_code=400, detail=detail, code="incorrect_password")


class ProviderNotLinkedException(BaseCustomException):
    def __init__(self, detail: str = "This provider is not linked to your account"):
        super().__init__(status_code=400, detail=detail, code="provider_not_linked")


class InvalidPhotoException(BaseCustomException):
    def __init__(self, detail: str = "Please upload an image file"):
        super().__init__(status_code=400, detail=detail, code="invalid_photo")


class PhotoNotFoundException(BaseCustomException):
    def __init__(self, detail: str = "Photo not found"):
        super().__init__(status_code=404, detail=detail, code="photo_not_found")
