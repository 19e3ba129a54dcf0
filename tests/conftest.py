"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- An in-memory user store and a low-cost bcrypt hasher
- A controllable clock for reset key expiry
- A fully wired AccountLifecycle with a mocked notifier
- A factory for registered (and optionally activated) users
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from accounts.adapters.hashing.bcrypt_hasher import BcryptPasswordHasher
from accounts.adapters.repository.memory import InMemoryUserStore
from accounts.domain.lifecycle import AccountLifecycle
from accounts.domain.models import Found, RegistrationProfile, User

DEFAULT_PASSWORD = "secret123"


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@dataclass(frozen=True)
class StaticSecurityContext:
    """SecurityContext with a fixed principal."""

    login: str | None = None

    def current_login(self) -> str | None:
        return self.login


@pytest.fixture
def context_for() -> Callable[[str | None], StaticSecurityContext]:
    """Build a SecurityContext for the given login (None = anonymous)."""
    return StaticSecurityContext


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture(scope="session")
def hasher() -> BcryptPasswordHasher:
    """bcrypt with the minimum cost factor to keep tests fast."""
    return BcryptPasswordHasher(rounds=4)


@pytest.fixture
def store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def notifier() -> Mock:
    return Mock()


@pytest.fixture
def lifecycle(
    store: InMemoryUserStore,
    hasher: BcryptPasswordHasher,
    notifier: Mock,
    clock: FrozenClock,
) -> AccountLifecycle:
    return AccountLifecycle(store=store, hasher=hasher, notifier=notifier, clock=clock)


@pytest.fixture
def make_user(lifecycle: AccountLifecycle) -> Callable[..., User]:
    """Register a user through the lifecycle, activating it by default."""

    def _make(
        login: str = "alice",
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
        activate: bool = True,
    ) -> User:
        profile = RegistrationProfile(login=login, email=email or f"{login}@example.com")
        user = lifecycle.register_user(profile, password)
        if not activate:
            return user
        result = lifecycle.activate_registration(user.activation_key)
        assert isinstance(result, Found)
        return result.user

    return _make
