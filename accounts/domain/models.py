"""
Domain models - User record and lookup results.

Users are immutable values: every lifecycle transition produces a new
User via dataclasses.replace() and hands it to the store. The store
assigns ``id`` on insert and bumps ``version`` on every update.

Activation and reset are independent axes:

    PENDING_ACTIVATION -> ACTIVATED         (terminal)
    NO_PENDING_RESET  <-> PENDING_RESET     (new request overwrites the key)
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

DEFAULT_AUTHORITY = "ROLE_USER"
DEFAULT_LANG_KEY = "en"


class ActivationState(str, Enum):
    """Activation axis of the account state machine."""

    PENDING_ACTIVATION = "PENDING_ACTIVATION"
    ACTIVATED = "ACTIVATED"


class ResetState(str, Enum):
    """Password reset axis of the account state machine."""

    NO_PENDING_RESET = "NO_PENDING_RESET"
    PENDING_RESET = "PENDING_RESET"


@dataclass(frozen=True)
class User:
    """Stored account record."""

    login: str
    email: str
    password_hash: str = field(repr=False)
    first_name: str | None = None
    last_name: str | None = None
    lang_key: str = DEFAULT_LANG_KEY
    activated: bool = False
    activation_key: str | None = field(default=None, repr=False)
    reset_key: str | None = field(default=None, repr=False)
    reset_date: datetime | None = None
    authorities: frozenset[str] = frozenset()
    created_at: datetime | None = None
    id: int | None = None
    version: int = 0

    @property
    def activation_state(self) -> ActivationState:
        if self.activated:
            return ActivationState.ACTIVATED
        return ActivationState.PENDING_ACTIVATION

    @property
    def reset_state(self) -> ResetState:
        if self.reset_key is None:
            return ResetState.NO_PENDING_RESET
        return ResetState.PENDING_RESET

    def reset_key_valid_at(self, now: datetime, validity: timedelta) -> bool:
        """True if a reset key is outstanding and was issued within ``validity`` of ``now``."""
        if self.reset_key is None or self.reset_date is None:
            return False
        return self.reset_date > now - validity


@dataclass(frozen=True)
class RegistrationProfile:
    """Caller-supplied data for a new account (password passed separately)."""

    login: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    lang_key: str = DEFAULT_LANG_KEY


@dataclass(frozen=True)
class Found:
    """Key lookup matched and the transition was applied."""

    user: User


@dataclass(frozen=True)
class NoMatch:
    """Key lookup missed: unknown, already consumed, or expired."""


NO_MATCH = NoMatch()

KeyLookup = Found | NoMatch


def normalize_login(login: str) -> str:
    """Strip whitespace and lowercase a login."""
    return login.strip().lower()


def normalize_email(email: str) -> str:
    """Strip whitespace and lowercase an email address."""
    return email.strip().lower()
