"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting the account
lifecycle service, its adapters, and the per-request security context
into routes. Adapters are created in the application lifespan and kept
on app.state.
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from accounts.config.settings import Settings, get_settings
from accounts.domain.keys import SecretKeyGenerator
from accounts.domain.lifecycle import AccountLifecycle
from accounts.domain.passwords import PasswordPolicy
from accounts.domain.ports import NotificationPort, PasswordHasher, UserStore


@dataclass(frozen=True)
class RequestSecurityContext:
    """SecurityContext built from the request's verified credentials."""

    login: str | None = None

    def current_login(self) -> str | None:
        return self.login


def get_user_store(request: Request) -> UserStore:
    """Get the user store created during app lifespan startup."""
    return request.app.state.store


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.hasher


def get_notifier(request: Request) -> NotificationPort:
    return request.app.state.notifier


def get_account_lifecycle(
    store: UserStore = Depends(get_user_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    notifier: NotificationPort = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> AccountLifecycle:
    """
    Create account lifecycle service with injected dependencies.

    Wires together the store, hasher, and notifier with the configured
    password policy, key size, and reset key validity.
    """
    return AccountLifecycle(
        store=store,
        hasher=hasher,
        notifier=notifier,
        key_generator=SecretKeyGenerator(nbytes=settings.secret_key_bytes),
        password_policy=PasswordPolicy(
            min_length=settings.password_min_length,
            max_length=settings.password_max_length,
        ),
        reset_key_validity=settings.reset_key_validity,
    )


# HTTP BASIC AUTH security scheme; absent credentials are allowed and
# yield an anonymous context.
http_basic = HTTPBasic(auto_error=False)


def get_security_context(
    credentials: HTTPBasicCredentials | None = Depends(http_basic),
    service: AccountLifecycle = Depends(get_account_lifecycle),
) -> RequestSecurityContext:
    """
    Resolve the request principal from HTTP BASIC AUTH credentials.

    Returns an anonymous context when no credentials are sent. Credentials
    that are sent but do not verify are rejected with 401.
    """
    if credentials is None:
        return RequestSecurityContext()

    user = service.verify_credentials(credentials.username, credentials.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return RequestSecurityContext(login=user.login)


def get_authenticated_context(
    context: RequestSecurityContext = Depends(get_security_context),
) -> RequestSecurityContext:
    """Like get_security_context, but anonymous requests get 401."""
    if context.current_login() is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )
    return context
