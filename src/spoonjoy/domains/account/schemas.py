from enum import Enum

from spoonjoy.core.schemas import CamelModel


class AuthMethod(str, Enum):
    PASSWORD = "password"
    OAUTH = "oauth"


class AccountIntent(str, Enum):
    UPDATE_USER_INFO = "updateUserInfo"
    CHANGE_PASSWORD = "changePassword"
    SET_PASSWORD = "setPassword"
    REMOVE_PASSWORD = "removePassword"
    LINK_OAUTH = "linkOAuth"
    UNLINK_OAUTH = "unlinkOAuth"
    UPLOAD_PHOTO = "uploadPhoto"
    REMOVE_PHOTO = "removePhoto"


# --- Request ---
class UpdateUserInfoRequest(CamelModel):
    email: str = ""
    username: str = ""


class PasswordChangeRequest(CamelModel):
    current_password: str = ""
    new_password: str = ""
    confirm_password: str = ""


# --- Response ---
class LinkedAccount(CamelModel):
    provider: str
    provider_username: str


class AccountSettingsResponse(CamelModel):
    id: str
    email: str
    username: str
    photo_url: str
    has_password: bool
    oauth_accounts: list[LinkedAccount]


class PhotoResult(CamelModel):
    success: bool = True
    photo_url: str
