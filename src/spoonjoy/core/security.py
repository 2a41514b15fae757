import hashlib
import secrets

from base64 import urlsafe_b64encode
from datetime import datetime, timedelta, timezone
from fastapi import Request, Response
from passlib.context import CryptContext
from jose import jwt, JWTError

from spoonjoy.core.config import settings
from spoonjoy.core.exception.exceptions import LoginRequiredException

SESSION_ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


# --- Passwords ---
def hash_password(plain_password: str) -> str:
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


# --- Session token ---
def create_session_token(user_id: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(seconds=settings.SESSION_MAX_AGE_SECONDS),
    }
    return jwt.encode(payload, settings.SESSION_SECRET.get_secret_value(), algorithm=SESSION_ALGORITHM)


def decode_session_token(token: str) -> str | None:
    try:
        payload = jwt.decode(
            token, settings.SESSION_SECRET.get_secret_value(), algorithms=[SESSION_ALGORITHM]
        )
    except JWTError:
        return None
    return payload.get("sub")


# --- Session cookie ---
def set_session_cookie(response: Response, user_id: str) -> Response:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=create_session_token(user_id),
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
    )
    return response


def clear_session_cookie(response: Response) -> Response:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
    )
    return response


def get_optional_user_id(request: Request) -> str | None:
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return None
    return decode_session_token(token)


def require_user_id(request: Request) -> str:
    user_id = get_optional_user_id(request)
    if user_id is None:
        redirect_to = request.url.path
        if request.url.query:
            redirect_to += f"?{request.url.query}"
        raise LoginRequiredException(redirect_to=redirect_to)
    return user_id


# --- OAuth helpers ---
def generate_oauth_state() -> str:
    return secrets.token_urlsafe(32)


def generate_code_verifier() -> str:
    # RFC 7636: 43-128 unreserved characters
    return secrets.token_urlsafe(64)


def make_code_challenge(code_verifier: str) -> str:
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return urlsafe_b64encode(digest).decode("ascii").rstrip("=")
