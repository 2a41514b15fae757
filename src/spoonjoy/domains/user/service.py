import json
import logging
import re
import secrets

from redis.asyncio import Redis

from spoonjoy.core import security
from spoonjoy.core.validation import (
    raise_for_errors,
    validate_email,
    validate_username,
    validate_new_password,
)
from spoonjoy.domains.user.exceptions import (
    EmailTakenException,
    UsernameTakenException,
    InvalidCredentialsException,
    UserNotFoundException,
    OAuthStateException,
    ProviderAlreadyLinkedException,
    AccountLinkedElsewhereException,
    AccountExistsException,
    MissingEmailException,
    UnsupportedProviderException,
)
from spoonjoy.domains.user.models import User, OAuth
from spoonjoy.domains.user.oauth_clients import OAUTH_CLIENTS
from spoonjoy.domains.user.repository import UserRepository
from spoonjoy.domains.user.schemas import (
    SignUpRequest,
    LogInRequest,
    OAuthProvider,
    OAuthProfile,
    OAuthCallbackResult,
)

logger = logging.getLogger("spoonjoy.user")

OAUTH_STATE_TTL_SECONDS = 300


def slugify_username(value: str) -> str:
    slug = value.strip().lower()
    slug = re.sub(r"[\s.]+", "-", slug)
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    return slug.strip("-")


def parse_provider(value: str) -> OAuthProvider:
    try:
        return OAuthProvider(value)
    except ValueError:
        raise UnsupportedProviderException()


def safe_redirect(target: str | None, default: str) -> str:
    # Only same-site paths; "//host" would leave the site
    if not target or not target.startswith("/") or target.startswith("//"):
        return default
    return target


class UserService:
    def __init__(self, user_repo: UserRepository):
        self.user_repo = user_repo

    async def sign_up(self, request: SignUpRequest) -> User:
        email = request.email.strip().lower()
        username = request.username.strip()

        confirm_error = None
        if request.password != request.confirm_password:
            confirm_error = "Passwords do not match"

        raise_for_errors(
            email=validate_email(email),
            username=validate_username(username),
            password=validate_new_password(request.password),
            confirmPassword=confirm_error,
        )

        if await self.user_repo.get_user_by_email(email):
            raise EmailTakenException(detail="An account with this email already exists")

        if await self.user_repo.get_user_by_username(username):
            raise UsernameTakenException()

        user = User(
            email=email,
            username=username,
            hashed_password=security.hash_password(request.password),
        )
        saved_user = await self.user_repo.save_user(user)

        logger.info("User %s signed up", saved_user.id)
        return saved_user

    async def log_in(self, request: LogInRequest) -> User:
        user = await self.user_repo.get_user_by_email(request.email.strip().lower())

        # OAuth-only users have no password to check against
        if not user or not security.verify_password(request.password, user.hashed_password):
            raise InvalidCredentialsException()

        return user


class SocialAuthService:
    def __init__(self, user_repo: UserRepository, redis: Redis):
        self.user_repo = user_repo
        self.redis = redis

    async def get_auth_url(
        self, provider: OAuthProvider, user_id: str | None = None, redirect_to: str | None = None
    ) -> str:
        client = OAUTH_CLIENTS[provider]
        state = security.generate_oauth_state()
        code_verifier = security.generate_code_verifier() if client.uses_pkce else None

        url = client.authorization_url(state, code_verifier)

        payload = {
            "provider": provider.value,
            "code_verifier": code_verifier,
            "user_id": user_id,
            "redirect_to": redirect_to,
        }
        await self.redis.set(f"OAUTH_STATE:{state}", json.dumps(payload), ex=OAUTH_STATE_TTL_SECONDS)
        return url

    async def _consume_state(self, provider: OAuthProvider, state: str | None) -> dict:
        if not state:
            raise OAuthStateException()

        redis_key = f"OAUTH_STATE:{state}"
        # Single use: read and delete in one step
        saved = await self.redis.getdel(redis_key)
        if not saved:
            raise OAuthStateException()

        payload = json.loads(saved)
        if payload.get("provider") != provider.value:
            raise OAuthStateException()
        return payload

    async def handle_callback(
        self,
        provider: OAuthProvider,
        code: str | None,
        state: str | None,
        user_payload: str | None = None,
    ) -> OAuthCallbackResult:
        saved = await self._consume_state(provider, state)
        if not code:
            raise OAuthStateException(detail="The sign-in provider did not return an authorization code")

        profile = await OAUTH_CLIENTS[provider].exchange_code(
            code, code_verifier=saved.get("code_verifier"), user_payload=user_payload
        )

        linking_user_id = saved.get("user_id")
        if linking_user_id:
            await self.link_account(linking_user_id, profile)
            return OAuthCallbackResult(
                user_id=linking_user_id,
                action="account_linked",
                redirect_to=safe_redirect(saved.get("redirect_to"), "/account/settings"),
            )

        redirect_to = safe_redirect(saved.get("redirect_to"), "/recipes")

        existing = await self.user_repo.get_oauth_account(provider.value, profile.provider_user_id)
        if existing:
            return OAuthCallbackResult(
                user_id=existing.user_id, action="user_logged_in", redirect_to=redirect_to
            )

        user = await self.create_oauth_user(profile)
        return OAuthCallbackResult(user_id=user.id, action="user_created", redirect_to=redirect_to)

    async def link_account(self, user_id: str, profile: OAuthProfile) -> OAuth:
        user = await self.user_repo.get_user_by_id(user_id)
        if not user:
            raise UserNotFoundException()

        linked = await self.user_repo.get_oauth_accounts(user_id)
        if any(account.provider == profile.provider.value for account in linked):
            raise ProviderAlreadyLinkedException()

        existing = await self.user_repo.get_oauth_account(profile.provider.value, profile.provider_user_id)
        if existing and existing.user_id != user_id:
            raise AccountLinkedElsewhereException()

        oauth = await self.user_repo.add_oauth_account(
            OAuth(
                provider=profile.provider.value,
                provider_user_id=profile.provider_user_id,
                provider_username=profile.provider_username,
                user_id=user_id,
            )
        )
        logger.info("User %s linked %s", user_id, profile.provider.value)
        return oauth

    async def create_oauth_user(self, profile: OAuthProfile) -> User:
        email = (profile.email or "").strip().lower()
        if not email:
            raise MissingEmailException()

        if await self.user_repo.get_user_by_email(email):
            raise AccountExistsException()

        user = User(
            email=email,
            username=await self.generate_username(profile.name, email),
            hashed_password=None,
        )
        oauth = OAuth(
            provider=profile.provider.value,
            provider_user_id=profile.provider_user_id,
            provider_username=profile.provider_username,
        )
        saved_user = await self.user_repo.save_user(user, oauth)

        logger.info("Created OAuth-only user %s via %s", saved_user.id, profile.provider.value)
        return saved_user

    async def generate_username(self, name: str | None, email: str | None) -> str:
        base = slugify_username(name or "")
        if not base and email:
            local_part = email.split("@", 1)[0].split("+", 1)[0]
            base = slugify_username(local_part)
        if not base:
            return f"user-{secrets.token_hex(4)}"

        taken = await self.user_repo.usernames_starting_with(base)
        if base not in taken:
            return base

        suffix = 1
        while f"{base}-{suffix}" in taken:
            suffix += 1
        return f"{base}-{suffix}"
