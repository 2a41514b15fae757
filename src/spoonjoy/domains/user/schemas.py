from enum import Enum

from pydantic import BaseModel, Field


class OAuthProvider(str, Enum):
    GOOGLE = "google"
    APPLE = "apple"


# --- Request ---
class SignUpRequest(BaseModel):
    email: str = ""
    username: str = ""
    password: str = ""
    confirm_password: str = ""


class LogInRequest(BaseModel):
    email: str = ""
    password: str = ""
    redirect_to: str = "/recipes"


class OAuthProfile(BaseModel):
    """Identity returned by a provider after a successful code exchange."""

    provider: OAuthProvider
    provider_user_id: str
    provider_username: str
    email: str | None = None
    name: str | None = None


# --- Response ---
class OAuthCallbackResult(BaseModel):
    user_id: str
    action: str = Field(..., examples=["user_created", "user_logged_in", "account_linked"])
    redirect_to: str = "/"
