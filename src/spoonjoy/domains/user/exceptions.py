from spoonjoy.core.exception.exceptions import BaseCustomException


class UserNotFoundException(BaseCustomException):
    def __init__(self, detail: str = "User not found"):
        super().__init__(status_code=404, detail=detail, code="user_not_found")


class EmailTakenException(BaseCustomException):
    def __init__(self, detail: str = "This email is already in use by another account"):
        super().__init__(status_code=400, detail=detail, code="email_taken")


class UsernameTakenException(BaseCustomException):
    def __init__(self, detail: str = "This username is already taken"):
        super().__init__(status_code=400, detail=detail, code="username_taken")


class InvalidCredentialsException(BaseCustomException):
    def __init__(self, detail: str = "Invalid email or password"):
        super().__init__(status_code=401, detail=detail, code="invalid_credentials")


class UnsupportedProviderException(BaseCustomException):
    def __init__(self, detail: str = "Unsupported sign-in provider"):
        super().__init__(status_code=400, detail=detail, code="invalid_provider")


class OAuthConfigException(BaseCustomException):
    def __init__(self, detail: str = "Sign-in provider is not configured"):
        super().__init__(status_code=500, detail=detail, code="oauth_not_configured")


class OAuthStateException(BaseCustomException):
    def __init__(self, detail: str = "Sign-in request expired or was tampered with. Please try again."):
        super().__init__(status_code=400, detail=detail, code="invalid_state")


class OAuthProviderException(BaseCustomException):
    def __init__(self, detail: str = "The sign-in provider rejected the request"):
        super().__init__(status_code=400, detail=detail, code="provider_error")


class ProviderAlreadyLinkedException(BaseCustomException):
    def __init__(self, detail: str = "This provider is already linked to your account"):
        super().__init__(status_code=400, detail=detail, code="provider_already_linked")


class AccountLinkedElsewhereException(BaseCustomException):
    def __init__(self, detail: str = "This sign-in account is already linked to a different user"):
        super().__init__(status_code=400, detail=detail, code="account_linked_elsewhere")


class AccountExistsException(BaseCustomException):
    def __init__(
        self,
        detail: str = "An account with this email already exists. Please log in to link this provider.",
    ):
        super().__init__(status_code=400, detail=detail, code="account_exists")


class MissingEmailException(BaseCustomException):
    def __init__(self, detail: str = "The sign-in provider did not share an email address"):
        super().__init__(status_code=400, detail=detail, code="missing_email")
