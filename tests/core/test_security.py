from unittest.mock import MagicMock

import pytest
from jose import jwt

from spoonjoy.core import security
from spoonjoy.core.config import settings
from spoonjoy.core.exception.exceptions import LoginRequiredException


def _request_with_cookie(token: str | None, path: str = "/recipes", query: str = ""):
    request = MagicMock()
    request.cookies = {settings.SESSION_COOKIE_NAME: token} if token else {}
    request.url.path = path
    request.url.query = query
    return request


def test_password_hash_carries_its_salt():
    hashed = security.hash_password("password123")

    assert hashed.startswith("$argon2")
    assert hashed != security.hash_password("password123")
    assert security.verify_password("password123", hashed)
    assert not security.verify_password("wrong-password", hashed)


def test_oauth_only_user_never_verifies():
    assert security.verify_password("anything", None) is False


def test_session_token_round_trip():
    token = security.create_session_token("user-1")
    assert security.decode_session_token(token) == "user-1"


def test_tampered_session_token_is_no_session():
    forged = jwt.encode({"sub": "user-1"}, "not-the-secret", algorithm="HS256")

    assert security.decode_session_token(forged) is None
    assert security.get_optional_user_id(_request_with_cookie(forged)) is None


def test_require_user_id_redirects_with_return_path():
    with pytest.raises(LoginRequiredException) as exc_info:
        security.require_user_id(_request_with_cookie(None, path="/cookbooks"))

    assert exc_info.value.redirect_to == "/cookbooks"


def test_require_user_id_keeps_query_string():
    with pytest.raises(LoginRequiredException) as exc_info:
        security.require_user_id(_request_with_cookie(None, path="/recipes", query="page=2&sort=new"))

    assert exc_info.value.redirect_to == "/recipes?page=2&sort=new"


def test_require_user_id_reads_cookie():
    token = security.create_session_token("user-9")
    assert security.require_user_id(_request_with_cookie(token)) == "user-9"


def test_pkce_challenge_is_url_safe_sha256():
    verifier = security.generate_code_verifier()
    challenge = security.make_code_challenge(verifier)

    assert 43 <= len(verifier) <= 128
    assert len(challenge) == 43
    assert "=" not in challenge
