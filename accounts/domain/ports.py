"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from typing import Protocol

from .models import User


class UserStore(Protocol):
    """Port interface for user persistence."""

    def find_by_login_case_insensitive(self, login: str) -> User | None:
        ...

    def find_by_email_case_insensitive(self, email: str) -> User | None:
        ...

    def find_by_activation_key(self, key: str) -> User | None:
        """Exact, case-sensitive match on the activation key."""
        ...

    def find_by_reset_key(self, key: str) -> User | None:
        """Exact, case-sensitive match on the reset key."""
        ...

    def save(self, user: User) -> User:
        """
        Create or update a user record.

        A user with ``id is None`` is inserted with version 0. Any other
        user is updated only if its ``version`` matches the stored one;
        the returned copy carries the incremented version.

        Uniqueness of login and email is enforced here and is the
        authoritative source of conflicts: a concurrent registration that
        passed the domain's pre-check still fails at this point.

        Args:
            user: Record to persist

        Returns:
            The persisted record with store-assigned id and version

        Raises:
            LoginAlreadyUsed: Another user holds the same login
            EmailAlreadyUsed: Another user holds the same email
            ConcurrentUpdate: The stored version differs from ``user.version``
        """
        ...


class PasswordHasher(Protocol):
    """Port interface for one-way password hashing."""

    def hash(self, password: str) -> str:
        ...

    def verify(self, password: str, password_hash: str | None) -> bool:
        """
        Check ``password`` against ``password_hash`` in constant time.

        When ``password_hash`` is None the implementation must still run a
        full comparison (against a placeholder) and return False, so that
        callers can hide whether an account exists.
        """
        ...


class NotificationPort(Protocol):
    """Port interface for account emails (best-effort, no result consumed)."""

    def send_activation_email(self, user: User) -> None:
        ...

    def send_password_reset_email(self, user: User) -> None:
        ...


class SecurityContext(Protocol):
    """Authenticated principal of the in-flight request."""

    def current_login(self) -> str | None:
        ...
