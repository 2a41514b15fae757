from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse

from spoonjoy.core import security
from spoonjoy.core.di import get_user_service, get_social_auth_service
from spoonjoy.core.exception.exceptions import FormValidationException
from spoonjoy.domains.user.exceptions import (
    EmailTakenException,
    UsernameTakenException,
    InvalidCredentialsException,
    UnsupportedProviderException,
    OAuthConfigException,
    OAuthStateException,
    OAuthProviderException,
    ProviderAlreadyLinkedException,
    AccountLinkedElsewhereException,
    AccountExistsException,
    MissingEmailException,
)
from spoonjoy.domains.user.schemas import SignUpRequest, LogInRequest, OAuthProvider
from spoonjoy.domains.user.service import UserService, SocialAuthService, parse_provider, safe_redirect
from spoonjoy.util.docs import create_error_response
from spoonjoy.util.forms import form_value, form_optional

router = APIRouter()

CALLBACK_EXCEPTIONS = [
    OAuthStateException,
    OAuthProviderException,
    OAuthConfigException,
    ProviderAlreadyLinkedException,
    AccountLinkedElsewhereException,
    AccountExistsException,
    MissingEmailException,
]


def _signed_in_redirect(user_id: str, url: str) -> RedirectResponse:
    response = RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)
    security.set_session_cookie(response, user_id)
    return response


@router.get("/signup", status_code=200, summary="Sign-up page")
async def signup_page(request: Request):
    if security.get_optional_user_id(request):
        return RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    return {}


@router.post(
    "/signup",
    status_code=303,
    summary="Create an account with email and password",
    responses=create_error_response(
        FormValidationException,
        EmailTakenException,
        UsernameTakenException,
    ),
)
async def sign_up(request: Request, user_service: UserService = Depends(get_user_service)):
    form = await request.form()
    user = await user_service.sign_up(
        SignUpRequest(
            email=form_value(form, "email"),
            username=form_value(form, "username"),
            password=form_value(form, "password"),
            confirm_password=form_value(form, "confirmPassword"),
        )
    )
    return _signed_in_redirect(user.id, "/recipes")


@router.get("/login", status_code=200, summary="Log-in page")
async def login_page(request: Request, redirectTo: str | None = None):
    if security.get_optional_user_id(request):
        return RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    return {"redirectTo": safe_redirect(redirectTo, "/recipes")}


@router.post(
    "/login",
    status_code=303,
    summary="Log in with email and password",
    responses=create_error_response(InvalidCredentialsException),
)
async def log_in(request: Request, user_service: UserService = Depends(get_user_service)):
    form = await request.form()
    login = LogInRequest(
        email=form_value(form, "email"),
        password=form_value(form, "password"),
        redirect_to=safe_redirect(form_optional(form, "redirectTo"), "/recipes"),
    )
    user = await user_service.log_in(login)
    return _signed_in_redirect(user.id, login.redirect_to)


@router.api_route("/logout", methods=["GET", "POST"], status_code=303, summary="Log out")
async def log_out():
    response = RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)
    security.clear_session_cookie(response)
    return response


@router.get(
    "/auth/{provider}",
    status_code=302,
    summary="Start signing in (or linking) with Google or Apple",
    responses=create_error_response(UnsupportedProviderException, OAuthConfigException),
)
async def start_oauth(
    provider: str,
    request: Request,
    redirectTo: str | None = None,
    social_auth_service: SocialAuthService = Depends(get_social_auth_service),
):
    """A signed-in visitor links the provider to their account instead of signing in."""
    auth_url = await social_auth_service.get_auth_url(
        parse_provider(provider),
        user_id=security.get_optional_user_id(request),
        redirect_to=safe_redirect(redirectTo, "") or None,
    )
    return RedirectResponse(url=auth_url, status_code=status.HTTP_302_FOUND)


@router.get(
    "/auth/google/callback",
    status_code=303,
    summary="Google sign-in callback",
    responses=create_error_response(*CALLBACK_EXCEPTIONS),
)
async def google_callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    social_auth_service: SocialAuthService = Depends(get_social_auth_service),
):
    if error:
        raise OAuthProviderException(detail=f"Google sign-in failed: {error}")

    result = await social_auth_service.handle_callback(OAuthProvider.GOOGLE, code, state)
    return _signed_in_redirect(result.user_id, result.redirect_to)


@router.post(
    "/auth/apple/callback",
    status_code=303,
    summary="Apple sign-in callback (form_post)",
    responses=create_error_response(*CALLBACK_EXCEPTIONS),
)
async def apple_callback(
    request: Request,
    social_auth_service: SocialAuthService = Depends(get_social_auth_service),
):
    form = await request.form()
    error = form_optional(form, "error")
    if error:
        raise OAuthProviderException(detail=f"Apple sign-in failed: {error}")

    result = await social_auth_service.handle_callback(
        OAuthProvider.APPLE,
        form_optional(form, "code"),
        form_optional(form, "state"),
        user_payload=form_optional(form, "user"),
    )
    return _signed_in_redirect(result.user_id, result.redirect_to)


@router.get("/", status_code=200, summary="Home")
async def home(request: Request):
    return {"userId": security.get_optional_user_id(request)}
