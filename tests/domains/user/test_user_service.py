import json

import pytest
from unittest.mock import AsyncMock, MagicMock

from spoonjoy.core import security
from spoonjoy.core.exception.exceptions import FormValidationException
from spoonjoy.domains.user.exceptions import (
    EmailTakenException,
    InvalidCredentialsException,
    OAuthStateException,
    AccountExistsException,
    AccountLinkedElsewhereException,
    ProviderAlreadyLinkedException,
    MissingEmailException,
    UnsupportedProviderException,
)
from spoonjoy.domains.user.models import User, OAuth
from spoonjoy.domains.user.oauth_clients import OAUTH_CLIENTS
from spoonjoy.domains.user.schemas import SignUpRequest, LogInRequest, OAuthProvider, OAuthProfile
from spoonjoy.domains.user.service import (
    UserService,
    SocialAuthService,
    slugify_username,
    safe_redirect,
    parse_provider,
)

PASSWORD = "password123"


def _saved(user, oauth=None):
    user.id = "u-new"
    return user


@pytest.mark.parametrize(
    "target, expected",
    [
        ("/recipes/1", "/recipes/1"),
        (None, "/recipes"),
        ("", "/recipes"),
        ("https://evil.example", "/recipes"),
        ("//evil.example", "/recipes"),
    ],
)
def test_safe_redirect(target, expected):
    assert safe_redirect(target, "/recipes") == expected


@pytest.mark.parametrize(
    "value, expected",
    [("Jane Doe", "jane-doe"), ("  j.smith ", "j-smith"), ("Zoë!!", "zo"), ("--a  --  b--", "a-b"), ("***", "")],
)
def test_slugify_username(value, expected):
    assert slugify_username(value) == expected


def test_parse_provider():
    assert parse_provider("apple") is OAuthProvider.APPLE
    with pytest.raises(UnsupportedProviderException):
        parse_provider("github")


@pytest.mark.asyncio
class TestUserService:
    @pytest.fixture
    def mock_repo(self):
        repo = AsyncMock()
        repo.get_user_by_email.return_value = None
        repo.get_user_by_username.return_value = None
        repo.save_user.side_effect = _saved
        return repo

    @pytest.fixture
    def user_service(self, mock_repo):
        return UserService(mock_repo)

    async def test_sign_up_success(self, user_service, mock_repo):
        """[Service] email is normalised and the password is stored as an argon2 hash"""
        user = await user_service.sign_up(
            SignUpRequest(email=" Chef@Example.COM ", username="chef", password=PASSWORD, confirm_password=PASSWORD)
        )

        assert user.email == "chef@example.com"
        assert user.hashed_password != PASSWORD
        assert security.verify_password(PASSWORD, user.hashed_password)
        mock_repo.get_user_by_email.assert_awaited_once_with("chef@example.com")

    async def test_sign_up_collects_field_errors(self, user_service, mock_repo):
        with pytest.raises(FormValidationException) as exc_info:
            await user_service.sign_up(
                SignUpRequest(email="not-an-email", username="ab", password="short", confirm_password="other")
            )

        assert set(exc_info.value.errors) == {"email", "username", "password", "confirmPassword"}
        mock_repo.save_user.assert_not_awaited()

    async def test_sign_up_email_taken(self, user_service, mock_repo):
        mock_repo.get_user_by_email.return_value = User(id="u-1", email="chef@example.com", username="chef")

        with pytest.raises(EmailTakenException):
            await user_service.sign_up(
                SignUpRequest(email="chef@example.com", username="new", password=PASSWORD, confirm_password=PASSWORD)
            )

    async def test_log_in(self, user_service, mock_repo):
        mock_repo.get_user_by_email.return_value = User(
            id="u-1", email="chef@example.com", username="chef", hashed_password=security.hash_password(PASSWORD)
        )

        user = await user_service.log_in(LogInRequest(email="CHEF@example.com", password=PASSWORD))
        assert user.id == "u-1"

        with pytest.raises(InvalidCredentialsException):
            await user_service.log_in(LogInRequest(email="chef@example.com", password="wrong-password"))

    async def test_log_in_oauth_only_user(self, user_service, mock_repo):
        mock_repo.get_user_by_email.return_value = User(id="u-1", email="a@b.co", username="a", hashed_password=None)

        with pytest.raises(InvalidCredentialsException):
            await user_service.log_in(LogInRequest(email="a@b.co", password=PASSWORD))


def _profile(**overrides) -> OAuthProfile:
    data = {
        "provider": OAuthProvider.GOOGLE,
        "provider_user_id": "google-123",
        "provider_username": "jane@gmail.com",
        "email": "Jane@Gmail.com",
        "name": "Jane Doe",
    }
    data.update(overrides)
    return OAuthProfile(**data)


@pytest.mark.asyncio
class TestSocialAuthService:
    @pytest.fixture
    def mock_repo(self):
        repo = AsyncMock()
        repo.get_user_by_email.return_value = None
        repo.get_oauth_account.return_value = None
        repo.get_oauth_accounts.return_value = []
        repo.usernames_starting_with.return_value = set()
        repo.save_user.side_effect = _saved
        return repo

    @pytest.fixture
    def google_client(self, monkeypatch):
        client = MagicMock(uses_pkce=True)
        client.authorization_url.return_value = "https://accounts.example/auth"
        client.exchange_code = AsyncMock(return_value=_profile())
        monkeypatch.setitem(OAUTH_CLIENTS, OAuthProvider.GOOGLE, client)
        return client

    @pytest.fixture
    def service(self, mock_repo, fake_redis):
        return SocialAuthService(mock_repo, fake_redis)

    async def _start(self, service, google_client, **kwargs) -> str:
        await service.get_auth_url(OAuthProvider.GOOGLE, **kwargs)
        return google_client.authorization_url.call_args.args[0]

    async def test_get_auth_url_stores_state(self, service, google_client, fake_redis):
        url = await service.get_auth_url(OAuthProvider.GOOGLE, user_id="u-1", redirect_to="/recipes/9")

        assert url == "https://accounts.example/auth"
        state, code_verifier = google_client.authorization_url.call_args.args
        payload = json.loads(fake_redis.store[f"OAUTH_STATE:{state}"])
        assert payload == {
            "provider": "google",
            "code_verifier": code_verifier,
            "user_id": "u-1",
            "redirect_to": "/recipes/9",
        }
        assert 43 <= len(code_verifier) <= 128

    async def test_unknown_or_reused_state(self, service, google_client):
        with pytest.raises(OAuthStateException):
            await service.handle_callback(OAuthProvider.GOOGLE, "code", "never-issued")

        state = await self._start(service, google_client)
        await service.handle_callback(OAuthProvider.GOOGLE, "code", state)

        # State is single-use
        with pytest.raises(OAuthStateException):
            await service.handle_callback(OAuthProvider.GOOGLE, "code", state)

    async def test_state_is_read_and_deleted_together(self, service, google_client, fake_redis):
        state = await self._start(service, google_client)

        await service.handle_callback(OAuthProvider.GOOGLE, "code", state)

        fake_redis.getdel.assert_awaited_once_with(f"OAUTH_STATE:{state}")
        fake_redis.get.assert_not_awaited()
        assert f"OAUTH_STATE:{state}" not in fake_redis.store

    async def test_state_from_another_provider(self, service, google_client):
        state = await self._start(service, google_client)

        with pytest.raises(OAuthStateException):
            await service.handle_callback(OAuthProvider.APPLE, "code", state)

    async def test_callback_creates_user(self, service, google_client, mock_repo):
        """[Service] an unknown Google identity becomes a new password-less user"""
        state = await self._start(service, google_client)

        result = await service.handle_callback(OAuthProvider.GOOGLE, "code", state)

        assert result.user_id == "u-new"
        assert result.action == "user_created"
        assert result.redirect_to == "/recipes"
        user, oauth = mock_repo.save_user.await_args.args
        assert (user.email, user.username, user.hashed_password) == ("jane@gmail.com", "jane-doe", None)
        assert (oauth.provider, oauth.provider_user_id) == ("google", "google-123")
        google_client.exchange_code.assert_awaited_once()
        assert google_client.exchange_code.await_args.kwargs["code_verifier"]

    async def test_callback_logs_in_known_identity(self, service, google_client, mock_repo):
        mock_repo.get_oauth_account.return_value = OAuth(provider="google", provider_user_id="google-123", user_id="u-7")
        state = await self._start(service, google_client, redirect_to="/cookbooks")

        result = await service.handle_callback(OAuthProvider.GOOGLE, "code", state)

        assert (result.user_id, result.action, result.redirect_to) == ("u-7", "user_logged_in", "/cookbooks")
        mock_repo.save_user.assert_not_awaited()

    async def test_callback_links_signed_in_user(self, service, google_client, mock_repo):
        mock_repo.get_user_by_id.return_value = User(id="u-1", email="me@example.com", username="me")
        state = await self._start(service, google_client, user_id="u-1")

        result = await service.handle_callback(OAuthProvider.GOOGLE, "code", state)

        assert (result.user_id, result.action, result.redirect_to) == ("u-1", "account_linked", "/account/settings")
        oauth = mock_repo.add_oauth_account.await_args.args[0]
        assert (oauth.user_id, oauth.provider) == ("u-1", "google")

    async def test_new_user_with_existing_email(self, service, mock_repo):
        mock_repo.get_user_by_email.return_value = User(id="u-1", email="jane@gmail.com", username="jane")

        with pytest.raises(AccountExistsException):
            await service.create_oauth_user(_profile())

    async def test_new_user_without_email(self, service):
        with pytest.raises(MissingEmailException):
            await service.create_oauth_user(_profile(email=None))

    async def test_link_rules(self, service, mock_repo):
        mock_repo.get_user_by_id.return_value = User(id="u-1", email="me@example.com", username="me")

        mock_repo.get_oauth_account.return_value = OAuth(provider="google", provider_user_id="google-123", user_id="u-2")
        with pytest.raises(AccountLinkedElsewhereException):
            await service.link_account("u-1", _profile())

        mock_repo.get_oauth_accounts.return_value = [OAuth(provider="google", provider_user_id="g-9", user_id="u-1")]
        with pytest.raises(ProviderAlreadyLinkedException):
            await service.link_account("u-1", _profile())

    async def test_generate_username(self, service, mock_repo):
        mock_repo.usernames_starting_with.return_value = {"jane-doe", "jane-doe-1"}
        assert await service.generate_username("Jane Doe", None) == "jane-doe-2"

        mock_repo.usernames_starting_with.return_value = set()
        assert await service.generate_username(None, "j.smith+food@example.com") == "j-smith"

        generated = await service.generate_username("!!!", None)
        assert generated.startswith("user-")
        assert len(generated) == len("user-") + 8
