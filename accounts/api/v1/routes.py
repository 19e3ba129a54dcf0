"""
API v1 routes.

Defines REST endpoints for the account lifecycle:
- POST /v1/register                        - Register a new account
- GET  /v1/activate                        - Activate with the emailed key
- GET  /v1/authenticate                    - Login of the authenticated caller
- GET  /v1/account                         - Current account
- POST /v1/account                         - Update current account profile
- POST /v1/account/change-password         - Change current password
- POST /v1/account/reset-password/init     - Request a password reset email
- POST /v1/account/reset-password/finish   - Set a new password with a reset key

Handlers are plain functions: FastAPI runs them in its thread pool, so
blocking store calls do not stall the event loop.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status

from accounts.api.dependencies import (
    RequestSecurityContext,
    get_account_lifecycle,
    get_authenticated_context,
    get_security_context,
)
from accounts.api.models import (
    AccountResponse,
    ErrorResponse,
    KeyAndPasswordRequest,
    MessageResponse,
    PasswordChangeRequest,
    RegisterRequest,
    ResetPasswordInitRequest,
    UpdateAccountRequest,
)
from accounts.domain.exceptions import (
    AuthenticationFailed,
    ConcurrentUpdate,
    EmailAlreadyUsed,
    InvalidPassword,
    LoginAlreadyUsed,
    UserNotFound,
)
from accounts.domain.lifecycle import AccountLifecycle
from accounts.domain.models import Found, RegistrationProfile

logger = logging.getLogger(__name__)

router = APIRouter(tags=["v1"])

INVALID_PASSWORD = "Incorrect password"
RESET_REQUESTED = "If the address belongs to an activated account, a reset email has been sent"


def _invalid_password() -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_PASSWORD)


def _user_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="User could not be found",
    )


@router.post(
    "/register",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid password"},
        409: {"model": ErrorResponse, "description": "Login or email already used"},
        422: {"description": "Validation error"},
    },
    summary="Register a new user",
    description="Create an unactivated account. An activation link is emailed to the given address.",
)
def register(
    request_data: RegisterRequest,
    service: AccountLifecycle = Depends(get_account_lifecycle),
) -> MessageResponse:
    profile = RegistrationProfile(
        login=request_data.login,
        email=request_data.email,
        first_name=request_data.first_name,
        last_name=request_data.last_name,
        lang_key=request_data.lang_key,
    )
    try:
        service.register_user(profile, request_data.password)
    except InvalidPassword:
        raise _invalid_password() from None
    except LoginAlreadyUsed:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Login name already used",
        ) from None
    except EmailAlreadyUsed:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email is already in use",
        ) from None
    return MessageResponse(message="Activation email sent")


@router.get(
    "/activate",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid or expired activation key"}},
    summary="Activate account with activation key",
)
def activate(
    key: str = Query(..., description="Activation key from the email"),
    service: AccountLifecycle = Depends(get_account_lifecycle),
) -> MessageResponse:
    result = service.activate_registration(key)
    if not isinstance(result, Found):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired activation key",
        )
    return MessageResponse(message="Account activated")


@router.get(
    "/authenticate",
    response_model=str | None,
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials"}},
    summary="Login of the authenticated caller",
    description="Returns the login when valid HTTP BASIC AUTH credentials are sent, null otherwise.",
)
def is_authenticated(
    context: RequestSecurityContext = Depends(get_security_context),
    service: AccountLifecycle = Depends(get_account_lifecycle),
) -> str | None:
    logger.debug("REST request to check if the current user is authenticated")
    return service.authenticated_login(context)


@router.get(
    "/account",
    response_model=AccountResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        500: {"model": ErrorResponse, "description": "User could not be found"},
    },
    summary="Get the current account",
)
def get_account(
    context: RequestSecurityContext = Depends(get_authenticated_context),
    service: AccountLifecycle = Depends(get_account_lifecycle),
) -> AccountResponse:
    user = service.get_current_user(context)
    if user is None:
        raise _user_not_found()
    return AccountResponse.from_user(user)


@router.post(
    "/account",
    response_model=MessageResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        409: {"model": ErrorResponse, "description": "Email already used or concurrent update"},
        500: {"model": ErrorResponse, "description": "User could not be found"},
    },
    summary="Update the current account",
)
def save_account(
    request_data: UpdateAccountRequest,
    context: RequestSecurityContext = Depends(get_authenticated_context),
    service: AccountLifecycle = Depends(get_account_lifecycle),
) -> MessageResponse:
    try:
        service.update_profile(
            context.current_login(),
            request_data.first_name,
            request_data.last_name,
            request_data.email,
            request_data.lang_key,
        )
    except UserNotFound:
        logger.error("Authenticated user %s has no stored account", context.current_login())
        raise _user_not_found() from None
    except EmailAlreadyUsed:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email is already in use",
        ) from None
    except ConcurrentUpdate:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Account was modified concurrently, please retry",
        ) from None
    return MessageResponse(message="Account updated")


@router.post(
    "/account/change-password",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid new or current password"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        409: {"model": ErrorResponse, "description": "Concurrent update"},
    },
    summary="Change the current password",
)
def change_password(
    request_data: PasswordChangeRequest,
    context: RequestSecurityContext = Depends(get_authenticated_context),
    service: AccountLifecycle = Depends(get_account_lifecycle),
) -> MessageResponse:
    try:
        service.change_password(
            context.current_login(),
            request_data.current_password,
            request_data.new_password,
        )
    except (InvalidPassword, AuthenticationFailed):
        raise _invalid_password() from None
    except UserNotFound:
        raise _user_not_found() from None
    except ConcurrentUpdate:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Account was modified concurrently, please retry",
        ) from None
    return MessageResponse(message="Password changed")


@router.post(
    "/account/reset-password/init",
    response_model=MessageResponse,
    summary="Request a password reset email",
    description="Always answers the same way, whether or not the address is registered. "
    "The lookup runs after the response is sent.",
)
def request_password_reset(
    request_data: ResetPasswordInitRequest,
    background_tasks: BackgroundTasks,
    service: AccountLifecycle = Depends(get_account_lifecycle),
) -> MessageResponse:
    # Response content and latency must not depend on whether the email is known.
    background_tasks.add_task(_issue_reset_key, service, request_data.email)
    return MessageResponse(message=RESET_REQUESTED)


def _issue_reset_key(service: AccountLifecycle, email: str) -> None:
    service.request_password_reset(email)


@router.post(
    "/account/reset-password/finish",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid password or invalid/expired key"}},
    summary="Finish a password reset",
)
def finish_password_reset(
    request_data: KeyAndPasswordRequest,
    service: AccountLifecycle = Depends(get_account_lifecycle),
) -> MessageResponse:
    try:
        result = service.complete_password_reset(request_data.new_password, request_data.key)
    except InvalidPassword:
        raise _invalid_password() from None

    if not isinstance(result, Found):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset key",
        )
    return MessageResponse(message="Password reset")
