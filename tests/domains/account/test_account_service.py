import pytest
from unittest.mock import AsyncMock, MagicMock

from spoonjoy.core import security
from spoonjoy.core.exception.exceptions import FormValidationException
from spoonjoy.domains.account.exceptions import (
    LastAuthMethodException,
    NoPasswordException,
    PasswordAlreadySetException,
    IncorrectPasswordException,
    ProviderNotLinkedException,
    InvalidPhotoException,
)
from spoonjoy.domains.account.schemas import AuthMethod, PasswordChangeRequest, UpdateUserInfoRequest
from spoonjoy.domains.account.service import AccountService, check_auth_method_removal
from spoonjoy.domains.user.exceptions import (
    EmailTakenException,
    UsernameTakenException,
    ProviderAlreadyLinkedException,
)
from spoonjoy.domains.user.models import User, OAuth

PASSWORD = "password123"


@pytest.mark.parametrize(
    "has_password, oauth_count, removal",
    [
        (True, 1, AuthMethod.PASSWORD),
        (True, 2, AuthMethod.PASSWORD),
        (True, 1, AuthMethod.OAUTH),
        (False, 2, AuthMethod.OAUTH),
    ],
)
def test_removal_allowed(has_password, oauth_count, removal):
    check_auth_method_removal(has_password, oauth_count, removal)


@pytest.mark.parametrize(
    "has_password, oauth_count, removal",
    [
        (True, 0, AuthMethod.PASSWORD),
        (False, 1, AuthMethod.OAUTH),
        (False, 0, AuthMethod.OAUTH),
    ],
)
def test_removal_refused(has_password, oauth_count, removal):
    with pytest.raises(LastAuthMethodException):
        check_auth_method_removal(has_password, oauth_count, removal)


def _google() -> OAuth:
    return OAuth(provider="google", provider_user_id="g-1", provider_username="me@gmail.com", user_id="u-1")


@pytest.mark.asyncio
class TestAccountService:
    @pytest.fixture
    def user(self):
        return User(
            id="u-1", email="me@example.com", username="me", hashed_password=security.hash_password(PASSWORD)
        )

    @pytest.fixture
    def mock_repo(self, user):
        repo = AsyncMock()
        repo.get_user_by_id.return_value = user
        repo.get_user_by_username.return_value = None
        repo.email_taken_by_other.return_value = False
        repo.get_oauth_accounts.return_value = []
        return repo

    @pytest.fixture
    def storage(self):
        storage = MagicMock()
        storage.put_bytes.side_effect = lambda *, key, content_type, data: f"/photos/{key}"
        return storage

    @pytest.fixture
    def service(self, mock_repo, storage):
        return AccountService(user_repo=mock_repo, user_id="u-1", storage=storage)

    async def test_update_user_info(self, service, mock_repo, user):
        result = await service.update_user_info(UpdateUserInfoRequest(email=" Me@New.com ", username="chef"))

        assert result.success is True
        assert (user.email, user.username) == ("me@new.com", "chef")
        mock_repo.email_taken_by_other.assert_awaited_once_with("me@new.com", "u-1")
        mock_repo.update_user.assert_awaited_once_with(user)

    async def test_update_user_info_conflicts(self, service, mock_repo):
        mock_repo.email_taken_by_other.return_value = True
        with pytest.raises(EmailTakenException):
            await service.update_user_info(UpdateUserInfoRequest(email="taken@example.com", username="me"))

        mock_repo.email_taken_by_other.return_value = False
        mock_repo.get_user_by_username.return_value = User(id="u-2", email="x@example.com", username="chef")
        with pytest.raises(UsernameTakenException):
            await service.update_user_info(UpdateUserInfoRequest(email="me@example.com", username="chef"))

        mock_repo.update_user.assert_not_awaited()

    async def test_update_user_info_validation(self, service):
        with pytest.raises(FormValidationException) as exc_info:
            await service.update_user_info(UpdateUserInfoRequest(email="nope", username=" "))

        assert set(exc_info.value.errors) == {"email", "username"}

    async def test_change_password(self, service, user):
        result = await service.change_password(
            PasswordChangeRequest(current_password=PASSWORD, new_password="brand-new-pw", confirm_password="brand-new-pw")
        )

        assert result.message == "Password updated"
        assert security.verify_password("brand-new-pw", user.hashed_password)

    async def test_change_password_wrong_current(self, service, mock_repo):
        with pytest.raises(IncorrectPasswordException):
            await service.change_password(
                PasswordChangeRequest(current_password="nope-nope", new_password="brand-new-pw", confirm_password="brand-new-pw")
            )
        mock_repo.update_user.assert_not_awaited()

    async def test_change_password_mismatch(self, service):
        with pytest.raises(FormValidationException) as exc_info:
            await service.change_password(
                PasswordChangeRequest(current_password=PASSWORD, new_password="brand-new-pw", confirm_password="other-pw")
            )

        assert list(exc_info.value.errors) == ["confirmPassword"]

    async def test_set_password(self, service, user):
        with pytest.raises(PasswordAlreadySetException):
            await service.set_password(PasswordChangeRequest(new_password="brand-new-pw", confirm_password="brand-new-pw"))

        user.hashed_password = None
        with pytest.raises(NoPasswordException):
            await service.change_password(PasswordChangeRequest(current_password="", new_password="x" * 8))

        result = await service.set_password(
            PasswordChangeRequest(new_password="brand-new-pw", confirm_password="brand-new-pw")
        )
        assert result.message == "Password set"
        assert user.has_password is True

    async def test_remove_password(self, service, mock_repo, user):
        with pytest.raises(LastAuthMethodException):
            await service.remove_password(PasswordChangeRequest(current_password=PASSWORD))

        mock_repo.get_oauth_accounts.return_value = [_google()]
        with pytest.raises(IncorrectPasswordException):
            await service.remove_password(PasswordChangeRequest(current_password="wrong-password"))

        result = await service.remove_password(PasswordChangeRequest(current_password=PASSWORD))
        assert result.message == "Password removed"
        assert user.hashed_password is None

    async def test_link_oauth(self, service, mock_repo):
        assert await service.link_oauth("apple") == "/auth/apple?redirectTo=/account/settings"

        mock_repo.get_oauth_accounts.return_value = [_google()]
        with pytest.raises(ProviderAlreadyLinkedException):
            await service.link_oauth("google")

    async def test_unlink_oauth(self, service, mock_repo, user):
        with pytest.raises(ProviderNotLinkedException):
            await service.unlink_oauth("google")

        mock_repo.get_oauth_accounts.return_value = [_google()]
        user.hashed_password = None
        with pytest.raises(LastAuthMethodException):
            await service.unlink_oauth("google")

        user.hashed_password = security.hash_password(PASSWORD)
        result = await service.unlink_oauth("google")
        assert result.message == "Google unlinked"
        mock_repo.delete_oauth_account.assert_awaited_once_with("u-1", "google")

    async def test_upload_photo(self, service, storage, user):
        user.photo_url = "/photos/profiles/u-1/old.png"
        photo = MagicMock(filename="me.PNG", content_type="image/png")
        photo.read = AsyncMock(return_value=b"\x89PNG")

        result = await service.upload_photo(photo)

        stored = storage.put_bytes.call_args.kwargs
        key = stored["key"]
        assert key.startswith("profiles/u-1/") and key.endswith(".png")
        assert (stored["content_type"], stored["data"]) == ("image/png", b"\x89PNG")
        assert result.photo_url == f"/photos/{key}" == user.photo_url
        storage.delete_url.assert_called_once_with("/photos/profiles/u-1/old.png")

    async def test_upload_photo_rejections(self, service, storage):
        with pytest.raises(FormValidationException):
            await service.upload_photo(None)

        text = MagicMock(filename="notes.txt", content_type="text/plain")
        with pytest.raises(InvalidPhotoException):
            await service.upload_photo(text)

        svg = MagicMock(filename="x.svg", content_type="image/svg+xml")
        with pytest.raises(InvalidPhotoException):
            await service.upload_photo(svg)

        empty = MagicMock(filename="me.jpg", content_type="image/jpeg")
        empty.read = AsyncMock(return_value=b"")
        with pytest.raises(InvalidPhotoException):
            await service.upload_photo(empty)

        storage.put_bytes.assert_not_called()

    async def test_remove_photo(self, service, storage, user):
        user.photo_url = "/photos/profiles/u-1/1.jpg"

        result = await service.remove_photo()

        assert user.photo_url is None
        assert result.photo_url == "/static/default-avatar.png"
        storage.delete_url.assert_called_once_with("/photos/profiles/u-1/1.jpg")
