"""
Account lifecycle domain service - registration, activation, and password flows.

This module contains the core business logic of a user account: which
transitions are legal, which preconditions must hold, and how transient
secrets are issued, validated, and consumed exactly once.

Account State Machine (two independent axes)
============================================

Activation axis:
    PENDING_ACTIVATION -> ACTIVATED   (activate_registration, valid key)
    ACTIVATED is terminal; there is no transition back.

Reset axis:
    NO_PENDING_RESET -> PENDING_RESET     (request_password_reset)
    PENDING_RESET    -> PENDING_RESET     (new request overwrites key and clock)
    PENDING_RESET    -> NO_PENDING_RESET  (complete_password_reset, valid key)

Consistency:
- Login/email uniqueness is enforced by the store's save(). The lookups
  done here only decide which error wins when both conflict.
- Key consumption relies on the store's optimistic version check: of two
  concurrent consumers of the same key, the stale writer gets NoMatch.
- Notifications go out only after the store write returned. A failed
  send is logged and never undoes the transition.
"""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone

from .exceptions import (
    AuthenticationFailed,
    ConcurrentUpdate,
    EmailAlreadyUsed,
    InvalidPassword,
    LoginAlreadyUsed,
    UserNotFound,
)
from .keys import SecretKeyGenerator
from .models import (
    DEFAULT_AUTHORITY,
    NO_MATCH,
    ActivationState,
    Found,
    KeyLookup,
    RegistrationProfile,
    ResetState,
    User,
    normalize_email,
    normalize_login,
)
from .passwords import PasswordPolicy
from .ports import NotificationPort, PasswordHasher, SecurityContext, UserStore

logger = logging.getLogger(__name__)

DEFAULT_RESET_KEY_VALIDITY = timedelta(hours=24)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AccountLifecycle:
    """
    Domain service for the user account lifecycle.

    Orchestrates the store, password hasher, key generator, and
    notification port. All collaborators are injected so the service
    can run against PostgreSQL in production and in memory in tests.
    """

    store: UserStore
    hasher: PasswordHasher
    notifier: NotificationPort
    key_generator: SecretKeyGenerator = field(default_factory=SecretKeyGenerator)
    password_policy: PasswordPolicy = field(default_factory=PasswordPolicy)
    reset_key_validity: timedelta = DEFAULT_RESET_KEY_VALIDITY
    clock: Callable[[], datetime] = utc_now

    def register_user(self, profile: RegistrationProfile, raw_password: str) -> User:
        """
        Create an unactivated account and send its activation email.

        Args:
            profile: Login, email, and profile metadata (normalized here)
            raw_password: Plaintext password (hashed before storage)

        Returns:
            The stored user, holding a fresh activation key

        Raises:
            InvalidPassword: Password violates the length policy
            LoginAlreadyUsed: Login is taken (checked before email)
            EmailAlreadyUsed: Email is taken
        """
        self._check_password(raw_password)

        login = normalize_login(profile.login)
        email = normalize_email(profile.email)

        if self.store.find_by_login_case_insensitive(login) is not None:
            raise LoginAlreadyUsed(login)
        if self.store.find_by_email_case_insensitive(email) is not None:
            raise EmailAlreadyUsed(email)

        user = User(
            login=login,
            email=email,
            password_hash=self.hasher.hash(raw_password),
            first_name=profile.first_name,
            last_name=profile.last_name,
            lang_key=profile.lang_key,
            activated=False,
            activation_key=self.key_generator.generate(),
            authorities=frozenset({DEFAULT_AUTHORITY}),
            created_at=self.clock(),
        )
        # Store-level uniqueness is authoritative; a lost race raises here.
        saved = self.store.save(user)
        logger.info("Created account for login %s", saved.login)

        self._notify(self.notifier.send_activation_email, saved)
        return saved

    def activate_registration(self, key: str) -> KeyLookup:
        """
        Consume an activation key.

        Returns:
            Found with the activated user, or NO_MATCH when the key is
            unknown, already consumed, or was consumed concurrently
        """
        if not key:
            return NO_MATCH

        user = self.store.find_by_activation_key(key)
        if (
            user is None
            or user.activation_state is ActivationState.ACTIVATED
            or not _same_key(user.activation_key, key)
        ):
            return NO_MATCH

        try:
            saved = self.store.save(replace(user, activated=True, activation_key=None))
        except ConcurrentUpdate:
            logger.info("Activation key for %s was consumed concurrently", user.login)
            return NO_MATCH

        logger.info("Activated account %s", saved.login)
        return Found(saved)

    def authenticated_login(self, context: SecurityContext) -> str | None:
        return context.current_login()

    def get_current_user(self, context: SecurityContext) -> User | None:
        """Load the user behind the request's authenticated principal, if any."""
        login = self.authenticated_login(context)
        if login is None:
            return None
        return self.store.find_by_login_case_insensitive(login)

    def update_profile(
        self,
        current_login: str,
        first_name: str | None,
        last_name: str | None,
        email: str,
        lang_key: str,
    ) -> User:
        """
        Update profile metadata of the authenticated user.

        Password, activation, and reset fields are left untouched.

        Raises:
            UserNotFound: current_login does not resolve (caller was authenticated)
            EmailAlreadyUsed: email belongs to a different user
            ConcurrentUpdate: the record changed while being updated
        """
        user = self._require_user(current_login)
        normalized_email = normalize_email(email)

        existing = self.store.find_by_email_case_insensitive(normalized_email)
        if existing is not None and existing.login.lower() != user.login.lower():
            raise EmailAlreadyUsed(normalized_email)

        saved = self.store.save(
            replace(
                user,
                first_name=first_name,
                last_name=last_name,
                email=normalized_email,
                lang_key=lang_key,
            )
        )
        logger.debug("Updated profile of %s", saved.login)
        return saved

    def change_password(self, current_login: str, current_password: str, new_password: str) -> User:
        """
        Replace the password of the authenticated user.

        Raises:
            InvalidPassword: new_password violates the length policy
            UserNotFound: current_login does not resolve
            AuthenticationFailed: current_password does not match
            ConcurrentUpdate: the record changed while being updated
        """
        self._check_password(new_password)
        user = self._require_user(current_login)

        if not self.hasher.verify(current_password, user.password_hash):
            raise AuthenticationFailed(user.login)

        saved = self.store.save(replace(user, password_hash=self.hasher.hash(new_password)))
        logger.info("Changed password of %s", saved.login)
        return saved

    def request_password_reset(self, email: str) -> User | None:
        """
        Issue a reset key for an activated account and email it.

        Never raises for user input: an unknown or unactivated email
        returns None, and the caller must answer exactly as for a hit.

        Returns:
            The user holding the new reset key, or None
        """
        user = self.store.find_by_email_case_insensitive(normalize_email(email))
        if user is None or user.activation_state is not ActivationState.ACTIVATED:
            logger.warning("Password reset requested for non existing mail")
            return None
        if user.reset_state is ResetState.PENDING_RESET:
            logger.info("Replacing outstanding reset key of %s", user.login)

        try:
            saved = self.store.save(
                replace(user, reset_key=self.key_generator.generate(), reset_date=self.clock())
            )
        except ConcurrentUpdate:
            logger.warning("Password reset for %s lost a concurrent update", user.login)
            return None

        self._notify(self.notifier.send_password_reset_email, saved)
        return saved

    def complete_password_reset(self, new_password: str, key: str) -> KeyLookup:
        """
        Consume a reset key and set the new password.

        A wrong key, an expired key, and an already consumed key all yield
        the same NO_MATCH so the outcome cannot be used as a guessing oracle.

        Raises:
            InvalidPassword: new_password violates the length policy
        """
        self._check_password(new_password)
        if not key:
            return NO_MATCH

        user = self.store.find_by_reset_key(key)
        if (
            user is None
            or not _same_key(user.reset_key, key)
            or not user.reset_key_valid_at(self.clock(), self.reset_key_validity)
        ):
            return NO_MATCH

        try:
            saved = self.store.save(
                replace(
                    user,
                    password_hash=self.hasher.hash(new_password),
                    reset_key=None,
                    reset_date=None,
                )
            )
        except ConcurrentUpdate:
            logger.info("Reset key for %s was consumed concurrently", user.login)
            return NO_MATCH

        logger.info("Completed password reset for %s", saved.login)
        return Found(saved)

    def verify_credentials(self, login: str, password: str) -> User | None:
        """
        Authenticate an activated user by login and password.

        The hasher always runs, against a placeholder when the login is
        unknown, so timing does not reveal account existence.
        """
        user = self.store.find_by_login_case_insensitive(normalize_login(login))
        stored_hash = user.password_hash if user is not None else None
        password_valid = self.hasher.verify(password, stored_hash)

        if user is None or not password_valid or user.activation_state is not ActivationState.ACTIVATED:
            return None
        return user

    def _require_user(self, login: str) -> User:
        user = self.store.find_by_login_case_insensitive(login)
        if user is None:
            raise UserNotFound(login)
        return user

    def _check_password(self, password: str) -> None:
        if not self.password_policy.is_valid(password):
            raise InvalidPassword()

    def _notify(self, send: Callable[[User], None], user: User) -> None:
        try:
            send(user)
        except Exception:
            logger.exception("Failed to dispatch notification for %s", user.login)


def _same_key(stored: str | None, candidate: str) -> bool:
    if stored is None:
        return False
    return secrets.compare_digest(stored.encode(), candidate.encode())
