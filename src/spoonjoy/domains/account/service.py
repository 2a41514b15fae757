import logging
import time

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from spoonjoy.core import security
from spoonjoy.core.config import settings
from spoonjoy.core.exception.exceptions import FormValidationException
from spoonjoy.core.schemas import ActionResult
from spoonjoy.core.storage import PhotoStore
from spoonjoy.core.validation import raise_for_errors, validate_email, validate_new_password
from spoonjoy.domains.account.exceptions import (
    LastAuthMethodException,
    PasswordAlreadySetException,
    NoPasswordException,
    IncorrectPasswordException,
    ProviderNotLinkedException,
    InvalidPhotoException,
)
from spoonjoy.domains.account.schemas import (
    AuthMethod,
    UpdateUserInfoRequest,
    PasswordChangeRequest,
    AccountSettingsResponse,
    LinkedAccount,
    PhotoResult,
)
from spoonjoy.domains.user.exceptions import (
    EmailTakenException,
    UsernameTakenException,
    UserNotFoundException,
    ProviderAlreadyLinkedException,
)
from spoonjoy.domains.user.models import User
from spoonjoy.domains.user.repository import UserRepository
from spoonjoy.domains.user.service import parse_provider

logger = logging.getLogger("spoonjoy.account")

# Raster formats only; SVG and other script-capable types are refused
PHOTO_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


def check_auth_method_removal(has_password: bool, oauth_count: int, removal: AuthMethod) -> None:
    """Refuse a removal that would leave the user with no way to sign in.

    ``(has_password, oauth_count)`` is the state before the removal. Removing
    the password needs at least one linked provider; unlinking a provider needs
    a password or another provider.
    """
    if removal == AuthMethod.PASSWORD:
        remaining = oauth_count
    else:
        remaining = int(has_password) + max(oauth_count - 1, 0)

    if remaining < 1:
        if removal == AuthMethod.PASSWORD:
            raise LastAuthMethodException(
                detail="Cannot remove password without a linked sign-in provider"
            )
        raise LastAuthMethodException(
            detail="Cannot unlink your only sign-in method. Set a password or link another provider first."
        )


class AccountService:
    def __init__(self, user_repo: UserRepository, user_id: str, storage: PhotoStore):
        self.user_repo = user_repo
        self.user_id = user_id
        self.storage = storage

    async def _get_user(self) -> User:
        user = await self.user_repo.get_user_by_id(self.user_id)
        if not user:
            raise UserNotFoundException()
        return user

    async def get_settings(self) -> AccountSettingsResponse:
        user = await self._get_user()
        oauth_accounts = await self.user_repo.get_oauth_accounts(user.id)

        return AccountSettingsResponse(
            id=user.id,
            email=user.email,
            username=user.username,
            photo_url=user.photo_url or settings.DEFAULT_PHOTO_URL,
            has_password=user.has_password,
            oauth_accounts=[LinkedAccount.model_validate(account) for account in oauth_accounts],
        )

    async def update_user_info(self, request: UpdateUserInfoRequest) -> ActionResult:
        email = request.email.strip()
        username = request.username.strip()

        raise_for_errors(
            email=validate_email(email),
            username=None if username else "Username is required",
        )

        user = await self._get_user()
        normalized_email = email.lower()

        if normalized_email != user.email.lower():
            if await self.user_repo.email_taken_by_other(normalized_email, user.id):
                raise EmailTakenException()

        if username != user.username:
            existing = await self.user_repo.get_user_by_username(username)
            if existing and existing.id != user.id:
                raise UsernameTakenException()

        user.email = normalized_email
        user.username = username
        await self.user_repo.update_user(user)
        return ActionResult()

    async def change_password(self, request: PasswordChangeRequest) -> ActionResult:
        user = await self._get_user()
        if not user.has_password:
            raise NoPasswordException(detail="You don't have a password yet. Use set password instead.")

        if not security.verify_password(request.current_password, user.hashed_password):
            raise IncorrectPasswordException()

        self._validate_new_password(request)

        user.hashed_password = security.hash_password(request.new_password)
        await self.user_repo.update_user(user)

        logger.info("User %s changed their password", user.id)
        return ActionResult(message="Password updated")

    async def set_password(self, request: PasswordChangeRequest) -> ActionResult:
        user = await self._get_user()
        if user.has_password:
            raise PasswordAlreadySetException()

        self._validate_new_password(request)

        user.hashed_password = security.hash_password(request.new_password)
        await self.user_repo.update_user(user)

        logger.info("User %s set a password", user.id)
        return ActionResult(message="Password set")

    async def remove_password(self, request: PasswordChangeRequest) -> ActionResult:
        user = await self._get_user()
        if not user.has_password:
            raise NoPasswordException()

        oauth_accounts = await self.user_repo.get_oauth_accounts(user.id)
        check_auth_method_removal(user.has_password, len(oauth_accounts), AuthMethod.PASSWORD)

        if not security.verify_password(request.current_password, user.hashed_password):
            raise IncorrectPasswordException()

        user.hashed_password = None
        await self.user_repo.update_user(user)

        logger.info("User %s removed their password", user.id)
        return ActionResult(message="Password removed")

    @staticmethod
    def _validate_new_password(request: PasswordChangeRequest) -> None:
        confirm_error = None
        if request.new_password != request.confirm_password:
            confirm_error = "Passwords do not match"

        raise_for_errors(
            newPassword=validate_new_password(request.new_password),
            confirmPassword=confirm_error,
        )

    async def link_oauth(self, provider_value: str) -> str:
        """Returns the path that starts the provider's sign-in flow in linking mode."""
        provider = parse_provider(provider_value)

        oauth_accounts = await self.user_repo.get_oauth_accounts(self.user_id)
        if any(account.provider == provider.value for account in oauth_accounts):
            raise ProviderAlreadyLinkedException()

        return f"/auth/{provider.value}?redirectTo=/account/settings"

    async def unlink_oauth(self, provider_value: str) -> ActionResult:
        provider = parse_provider(provider_value)
        user = await self._get_user()

        oauth_accounts = await self.user_repo.get_oauth_accounts(user.id)
        if not any(account.provider == provider.value for account in oauth_accounts):
            raise ProviderNotLinkedException()

        check_auth_method_removal(user.has_password, len(oauth_accounts), AuthMethod.OAUTH)

        await self.user_repo.delete_oauth_account(user.id, provider.value)

        logger.info("User %s unlinked %s", user.id, provider.value)
        return ActionResult(message=f"{provider.value.capitalize()} unlinked")

    async def upload_photo(self, photo: UploadFile | None) -> PhotoResult:
        if photo is None or not photo.filename:
            raise FormValidationException(errors={"photo": "Please choose a photo to upload"})

        content_type = (photo.content_type or "").lower()
        if content_type not in PHOTO_EXTENSIONS:
            raise InvalidPhotoException(detail="Please upload a JPEG, PNG, GIF or WebP image")

        # Read one byte past the limit so oversized uploads are detected without loading them whole
        data = await photo.read(settings.PHOTO_MAX_BYTES + 1)
        if not data:
            raise InvalidPhotoException(detail="The uploaded photo is empty")
        if len(data) > settings.PHOTO_MAX_BYTES:
            raise InvalidPhotoException(detail="Photo must be 5MB or smaller")

        user = await self._get_user()
        key = f"profiles/{user.id}/{int(time.time() * 1000)}{PHOTO_EXTENSIONS[content_type]}"

        old_url = user.photo_url
        user.photo_url = await run_in_threadpool(self.storage.put_bytes, key=key, content_type=content_type, data=data)
        await self.user_repo.update_user(user)
        await run_in_threadpool(self.storage.delete_url, old_url)

        return PhotoResult(photo_url=user.photo_url)

    async def remove_photo(self) -> PhotoResult:
        user = await self._get_user()

        old_url = user.photo_url
        user.photo_url = None
        await self.user_repo.update_user(user)
        await run_in_threadpool(self.storage.delete_url, old_url)

        return PhotoResult(photo_url=settings.DEFAULT_PHOTO_URL)
