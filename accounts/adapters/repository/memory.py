"""
In-memory repository adapter - Implements UserStore protocol.

Single-process store for tests and demos. Every read and write runs under
one lock, so the uniqueness check and the write in save() are atomic and
give the same guarantees as the PostgreSQL unique indexes.
"""

import itertools
import threading
from dataclasses import replace

from accounts.domain.exceptions import ConcurrentUpdate, EmailAlreadyUsed, LoginAlreadyUsed
from accounts.domain.models import User


class InMemoryUserStore:
    """
    Implements UserStore protocol with a locked dict.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Users are immutable, so stored instances are handed out directly.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: dict[int, User] = {}
        self._ids = itertools.count(1)

    def find_by_login_case_insensitive(self, login: str) -> User | None:
        wanted = login.lower()
        return self._find(lambda u: u.login.lower() == wanted)

    def find_by_email_case_insensitive(self, email: str) -> User | None:
        wanted = email.lower()
        return self._find(lambda u: u.email.lower() == wanted)

    def find_by_activation_key(self, key: str) -> User | None:
        return self._find(lambda u: u.activation_key is not None and u.activation_key == key)

    def find_by_reset_key(self, key: str) -> User | None:
        return self._find(lambda u: u.reset_key is not None and u.reset_key == key)

    def save(self, user: User) -> User:
        with self._lock:
            self._check_unique(user)

            if user.id is None:
                stored = replace(user, id=next(self._ids), version=0)
            else:
                current = self._users.get(user.id)
                if current is None or current.version != user.version:
                    raise ConcurrentUpdate(user.login)
                stored = replace(user, version=user.version + 1)

            self._users[stored.id] = stored
            return stored

    def count(self) -> int:
        with self._lock:
            return len(self._users)

    def _find(self, predicate) -> User | None:
        with self._lock:
            return next((u for u in self._users.values() if predicate(u)), None)

    def _check_unique(self, user: User) -> None:
        others = [u for u in self._users.values() if u.id != user.id]
        if any(u.login.lower() == user.login.lower() for u in others):
            raise LoginAlreadyUsed(user.login)
        if any(u.email.lower() == user.email.lower() for u in others):
            raise EmailAlreadyUsed(user.email)
