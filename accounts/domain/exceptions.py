"""
Domain exceptions - Semantic error types for the account lifecycle.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.

Key lookups (activation, reset completion) never raise: an unknown,
consumed, or expired key is reported as a NoMatch value instead.
"""


class AccountError(Exception):
    """Base class for account lifecycle errors."""

    pass


class InvalidPassword(AccountError):
    """Password is empty, blank, or outside the configured length bounds."""

    pass


class AlreadyUsed(AccountError):
    """A unique account attribute is already taken by another user."""

    pass


class LoginAlreadyUsed(AlreadyUsed):
    """Login is already registered (case-insensitive)."""

    pass


class EmailAlreadyUsed(AlreadyUsed):
    """Email is already registered (case-insensitive)."""

    pass


class UserNotFound(AccountError):
    """Authenticated login does not resolve to a stored user."""

    pass


class AuthenticationFailed(AccountError):
    """Current password does not match the stored hash."""

    pass


class ConcurrentUpdate(AccountError):
    """User record changed since it was read; the write was rejected."""

    pass
