from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse

from spoonjoy.core.di import get_account_service
from spoonjoy.core.exception.exceptions import FormValidationException, LoginRequiredException
from spoonjoy.domains.account.exceptions import (
    LastAuthMethodException,
    PasswordAlreadySetException,
    NoPasswordException,
    IncorrectPasswordException,
    ProviderNotLinkedException,
    InvalidPhotoException,
)
from spoonjoy.domains.account.schemas import (
    AccountIntent,
    UpdateUserInfoRequest,
    PasswordChangeRequest,
    AccountSettingsResponse,
)
from spoonjoy.domains.account.service import AccountService
from spoonjoy.domains.user.exceptions import (
    EmailTakenException,
    UsernameTakenException,
    UnsupportedProviderException,
    ProviderAlreadyLinkedException,
)
from spoonjoy.util.docs import create_error_response
from spoonjoy.util.forms import form_value, form_file

router = APIRouter()


def _password_form(form) -> PasswordChangeRequest:
    return PasswordChangeRequest(
        current_password=form_value(form, "currentPassword"),
        new_password=form_value(form, "newPassword"),
        confirm_password=form_value(form, "confirmPassword"),
    )


@router.get(
    "/settings",
    status_code=200,
    summary="Account settings",
    response_model=AccountSettingsResponse,
    responses=create_error_response(LoginRequiredException),
)
async def account_settings(account_service: AccountService = Depends(get_account_service)):
    return await account_service.get_settings()


@router.post(
    "/settings",
    status_code=200,
    summary="Account actions (profile, password, linked sign-in providers, photo)",
    responses=create_error_response(
        FormValidationException,
        EmailTakenException,
        UsernameTakenException,
        NoPasswordException,
        PasswordAlreadySetException,
        IncorrectPasswordException,
        LastAuthMethodException,
        UnsupportedProviderException,
        ProviderAlreadyLinkedException,
        ProviderNotLinkedException,
        InvalidPhotoException,
    ),
)
async def account_action(request: Request, account_service: AccountService = Depends(get_account_service)):
    form = await request.form()
    intent = form_value(form, "intent")

    if intent == AccountIntent.UPDATE_USER_INFO.value:
        return await account_service.update_user_info(
            UpdateUserInfoRequest(email=form_value(form, "email"), username=form_value(form, "username"))
        )

    if intent == AccountIntent.CHANGE_PASSWORD.value:
        return await account_service.change_password(_password_form(form))

    if intent == AccountIntent.SET_PASSWORD.value:
        return await account_service.set_password(_password_form(form))

    if intent == AccountIntent.REMOVE_PASSWORD.value:
        return await account_service.remove_password(_password_form(form))

    if intent == AccountIntent.LINK_OAUTH.value:
        url = await account_service.link_oauth(form_value(form, "provider"))
        return RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)

    if intent == AccountIntent.UNLINK_OAUTH.value:
        return await account_service.unlink_oauth(form_value(form, "provider"))

    if intent == AccountIntent.UPLOAD_PHOTO.value:
        return await account_service.upload_photo(form_file(form, "photo"))

    if intent == AccountIntent.REMOVE_PHOTO.value:
        return await account_service.remove_photo()

    return None
