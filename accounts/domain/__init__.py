"""
Domain layer - Pure business logic with zero framework imports.

This package contains the account lifecycle state machine: registration,
activation, profile and password updates, and the two-phase password
reset. It defines its own port interfaces for infrastructure abstraction.
"""

from .exceptions import (
    AccountError,
    AlreadyUsed,
    AuthenticationFailed,
    ConcurrentUpdate,
    EmailAlreadyUsed,
    InvalidPassword,
    LoginAlreadyUsed,
    UserNotFound,
)
from .keys import SecretKeyGenerator
from .lifecycle import AccountLifecycle
from .models import (
    NO_MATCH,
    ActivationState,
    Found,
    KeyLookup,
    NoMatch,
    RegistrationProfile,
    ResetState,
    User,
)
from .passwords import PasswordPolicy
from .ports import NotificationPort, PasswordHasher, SecurityContext, UserStore

__all__ = [
    "NO_MATCH",
    "AccountError",
    "AccountLifecycle",
    "ActivationState",
    "AlreadyUsed",
    "AuthenticationFailed",
    "ConcurrentUpdate",
    "EmailAlreadyUsed",
    "Found",
    "InvalidPassword",
    "KeyLookup",
    "LoginAlreadyUsed",
    "NoMatch",
    "NotificationPort",
    "PasswordHasher",
    "PasswordPolicy",
    "RegistrationProfile",
    "ResetState",
    "SecretKeyGenerator",
    "SecurityContext",
    "User",
    "UserNotFound",
    "UserStore",
]
