import json
import logging
import time
from urllib.parse import urlencode

import httpx
from jose import jwt, JWTError

from spoonjoy.core import security
from spoonjoy.core.config import settings
from spoonjoy.domains.user.exceptions import OAuthConfigException, OAuthProviderException
from spoonjoy.domains.user.schemas import OAuthProfile, OAuthProvider

logger = logging.getLogger("spoonjoy.oauth")


def callback_url(provider: OAuthProvider) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/auth/{provider.value}/callback"


def _require(**values) -> None:
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise OAuthConfigException(
            detail=f"Missing configuration for sign-in provider: {', '.join(missing)}"
        )


class GoogleOAuthClient:
    provider = OAuthProvider.GOOGLE
    uses_pkce = True

    authorize_url = "https://accounts.google.com/o/oauth2/v2/auth"
    token_url = "https://oauth2.googleapis.com/token"
    userinfo_url = "https://openidconnect.googleapis.com/v1/userinfo"

    def __init__(self):
        self.timeout = httpx.Timeout(15.0, connect=5.0)

    def _credentials(self) -> tuple[str, str]:
        secret = settings.GOOGLE_CLIENT_SECRET.get_secret_value() if settings.GOOGLE_CLIENT_SECRET else None
        _require(GOOGLE_CLIENT_ID=settings.GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET=secret)
        return settings.GOOGLE_CLIENT_ID, secret

    def authorization_url(self, state: str, code_verifier: str | None = None) -> str:
        client_id, _ = self._credentials()
        params = {
            "client_id": client_id,
            "redirect_uri": callback_url(self.provider),
            "response_type": "code",
            "scope": "openid email profile",
            "state": state,
            "code_challenge": security.make_code_challenge(code_verifier),
            "code_challenge_method": "S256",
        }
        return f"{self.authorize_url}?{urlencode(params)}"

    async def exchange_code(
        self, code: str, code_verifier: str | None = None, user_payload: str | None = None
    ) -> OAuthProfile:
        client_id, client_secret = self._credentials()
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": client_id,
            "client_secret": client_secret,
            "redirect_uri": callback_url(self.provider),
            "code_verifier": code_verifier,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                token_response = await client.post(self.token_url, data=data)
                token_response.raise_for_status()
                access_token = token_response.json().get("access_token")
                if not access_token:
                    raise OAuthProviderException(detail="Google did not return an access token")

                info_response = await client.get(
                    self.userinfo_url, headers={"Authorization": f"Bearer {access_token}"}
                )
                info_response.raise_for_status()
                info = info_response.json()

        except httpx.TimeoutException:
            raise OAuthProviderException(detail="Google did not respond in time")

        except httpx.HTTPStatusError as e:
            logger.warning("Google token exchange failed with status %s", e.response.status_code)
            raise OAuthProviderException(detail="Google rejected the sign-in request")

        except httpx.RequestError as e:
            raise OAuthProviderException(detail=f"Could not reach Google: {str(e)}")

        email = info.get("email")
        return OAuthProfile(
            provider=self.provider,
            provider_user_id=str(info["sub"]),
            provider_username=email or info.get("name") or str(info["sub"]),
            email=email,
            name=info.get("name"),
        )


class AppleOAuthClient:
    provider = OAuthProvider.APPLE
    uses_pkce = False

    issuer = "https://appleid.apple.com"
    authorize_url = "https://appleid.apple.com/auth/authorize"
    token_url = "https://appleid.apple.com/auth/token"
    keys_url = "https://appleid.apple.com/auth/keys"

    # Apple accepts client secrets valid for up to six months
    client_secret_ttl = 60 * 60 * 24 * 180

    def __init__(self):
        self.timeout = httpx.Timeout(15.0, connect=5.0)

    def _config(self) -> dict:
        private_key = settings.APPLE_PRIVATE_KEY.get_secret_value() if settings.APPLE_PRIVATE_KEY else None
        _require(
            APPLE_CLIENT_ID=settings.APPLE_CLIENT_ID,
            APPLE_TEAM_ID=settings.APPLE_TEAM_ID,
            APPLE_KEY_ID=settings.APPLE_KEY_ID,
            APPLE_PRIVATE_KEY=private_key,
        )
        return {
            "client_id": settings.APPLE_CLIENT_ID,
            "team_id": settings.APPLE_TEAM_ID,
            "key_id": settings.APPLE_KEY_ID,
            # Keys pasted into env files usually carry literal "\n"
            "private_key": private_key.replace("\\n", "\n"),
        }

    def authorization_url(self, state: str, code_verifier: str | None = None) -> str:
        config = self._config()
        params = {
            "client_id": config["client_id"],
            "redirect_uri": callback_url(self.provider),
            "state": state,
            "response_type": "code",
            "response_mode": "form_post",
            "scope": "email name",
        }
        return f"{self.authorize_url}?{urlencode(params)}"

    def make_client_secret(self, config: dict) -> str:
        now = int(time.time())
        claims = {
            "iss": config["team_id"],
            "iat": now,
            "exp": now + self.client_secret_ttl,
            "aud": self.issuer,
            "sub": config["client_id"],
        }
        return jwt.encode(
            claims, config["private_key"], algorithm="ES256", headers={"kid": config["key_id"]}
        )

    async def exchange_code(
        self, code: str, code_verifier: str | None = None, user_payload: str | None = None
    ) -> OAuthProfile:
        config = self._config()
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": config["client_id"],
            "client_secret": self.make_client_secret(config),
            "redirect_uri": callback_url(self.provider),
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                token_response = await client.post(self.token_url, data=data)
                token_response.raise_for_status()
                tokens = token_response.json()

                keys_response = await client.get(self.keys_url)
                keys_response.raise_for_status()
                jwks = keys_response.json()

        except httpx.TimeoutException:
            raise OAuthProviderException(detail="Apple did not respond in time")

        except httpx.HTTPStatusError as e:
            logger.warning("Apple token exchange failed with status %s", e.response.status_code)
            raise OAuthProviderException(detail="Apple rejected the sign-in request")

        except httpx.RequestError as e:
            raise OAuthProviderException(detail=f"Could not reach Apple: {str(e)}")

        claims = self.verify_id_token(
            tokens.get("id_token"), jwks, config["client_id"], tokens.get("access_token")
        )
        name = self._name_from_payload(user_payload)
        email = claims.get("email")

        return OAuthProfile(
            provider=self.provider,
            provider_user_id=str(claims["sub"]),
            provider_username=email or name or str(claims["sub"]),
            email=email,
            name=name,
        )

    def verify_id_token(
        self, id_token: str | None, jwks: dict, client_id: str, access_token: str | None = None
    ) -> dict:
        if not id_token:
            raise OAuthProviderException(detail="Apple did not return an ID token")

        try:
            kid = jwt.get_unverified_header(id_token).get("kid")
            key = next((k for k in jwks.get("keys", []) if k.get("kid") == kid), None)
            if key is None:
                raise OAuthProviderException(detail="Apple ID token was signed with an unknown key")

            return jwt.decode(
                id_token,
                key,
                algorithms=[key.get("alg", "RS256")],
                audience=client_id,
                issuer=self.issuer,
                access_token=access_token,
            )
        except JWTError as e:
            raise OAuthProviderException(detail=f"Apple ID token is invalid: {str(e)}")

    @staticmethod
    def _name_from_payload(user_payload: str | None) -> str | None:
        # Apple posts the user's name only on the first sign-in
        if not user_payload:
            return None
        try:
            name = json.loads(user_payload).get("name") or {}
        except (ValueError, AttributeError):
            return None
        if isinstance(name, str):
            return name.strip() or None
        if not isinstance(name, dict):
            return None
        full_name = " ".join(part for part in (name.get("firstName"), name.get("lastName")) if part)
        return full_name or None


OAUTH_CLIENTS = {
    OAuthProvider.GOOGLE: GoogleOAuthClient(),
    OAuthProvider.APPLE: AppleOAuthClient(),
}
