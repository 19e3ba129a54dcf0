"""
Unit tests for InMemoryUserStore.

Tests verify the store honours the UserStore contract:
- Identity and version assignment
- Optimistic concurrency on update
- Case-insensitive uniqueness with login precedence
- Case-insensitive login/email lookup, exact key lookup
"""

from dataclasses import replace

import pytest

from accounts.adapters.repository.memory import InMemoryUserStore
from accounts.domain.exceptions import ConcurrentUpdate, EmailAlreadyUsed, LoginAlreadyUsed
from accounts.domain.models import User


def new_user(login: str = "alice", email: str | None = None, **changes) -> User:
    return User(login=login, email=email or f"{login}@example.com", password_hash="$2b$04$hash", **changes)


class TestSave:
    """Tests for save()."""

    def test_insert_assigns_id_and_version_zero(self, store: InMemoryUserStore) -> None:
        saved = store.save(new_user())

        assert saved.id is not None
        assert saved.version == 0

    def test_ids_are_distinct(self, store: InMemoryUserStore) -> None:
        assert store.save(new_user("alice")).id != store.save(new_user("bob")).id

    def test_update_increments_version(self, store: InMemoryUserStore) -> None:
        saved = store.save(new_user())

        updated = store.save(replace(saved, first_name="Alice"))

        assert updated.version == 1
        assert store.find_by_login_case_insensitive("alice").first_name == "Alice"

    def test_stale_update_rejected(self, store: InMemoryUserStore) -> None:
        """Writing from an outdated copy raises ConcurrentUpdate."""
        saved = store.save(new_user())
        store.save(replace(saved, first_name="First"))

        with pytest.raises(ConcurrentUpdate):
            store.save(replace(saved, first_name="Second"))

        assert store.find_by_login_case_insensitive("alice").first_name == "First"

    def test_update_of_unknown_id_rejected(self, store: InMemoryUserStore) -> None:
        with pytest.raises(ConcurrentUpdate):
            store.save(new_user(id=42))

    def test_duplicate_login_rejected(self, store: InMemoryUserStore) -> None:
        store.save(new_user("alice"))

        with pytest.raises(LoginAlreadyUsed):
            store.save(new_user("ALICE", "other@example.com"))

    def test_duplicate_email_rejected(self, store: InMemoryUserStore) -> None:
        store.save(new_user("alice"))

        with pytest.raises(EmailAlreadyUsed):
            store.save(new_user("bob", "Alice@Example.com"))

    def test_login_conflict_reported_first(self, store: InMemoryUserStore) -> None:
        store.save(new_user("alice"))

        with pytest.raises(LoginAlreadyUsed):
            store.save(new_user("alice"))

    def test_email_change_to_taken_address_rejected(self, store: InMemoryUserStore) -> None:
        alice = store.save(new_user("alice"))
        store.save(new_user("bob"))

        with pytest.raises(EmailAlreadyUsed):
            store.save(replace(alice, email="bob@example.com"))

    def test_update_keeping_own_email_allowed(self, store: InMemoryUserStore) -> None:
        alice = store.save(new_user("alice"))

        assert store.save(replace(alice, last_name="Liddell")).email == "alice@example.com"

    def test_failed_save_writes_nothing(self, store: InMemoryUserStore) -> None:
        store.save(new_user("alice"))

        with pytest.raises(EmailAlreadyUsed):
            store.save(new_user("bob", "alice@example.com"))

        assert store.count() == 1


class TestFind:
    """Tests for the find_by_* lookups."""

    def test_find_by_login_ignores_case(self, store: InMemoryUserStore) -> None:
        saved = store.save(new_user("alice"))
        assert store.find_by_login_case_insensitive("ALICE") == saved

    def test_find_by_email_ignores_case(self, store: InMemoryUserStore) -> None:
        saved = store.save(new_user("alice"))
        assert store.find_by_email_case_insensitive("ALICE@EXAMPLE.COM") == saved

    def test_find_missing_returns_none(self, store: InMemoryUserStore) -> None:
        assert store.find_by_login_case_insensitive("ghost") is None
        assert store.find_by_email_case_insensitive("ghost@example.com") is None

    def test_activation_key_match_is_exact(self, store: InMemoryUserStore) -> None:
        saved = store.save(new_user(activation_key="AbCdEf"))

        assert store.find_by_activation_key("AbCdEf") == saved
        assert store.find_by_activation_key("abcdef") is None
        assert store.find_by_activation_key("AbC") is None

    def test_reset_key_match_is_exact(self, store: InMemoryUserStore) -> None:
        saved = store.save(new_user(activated=True, reset_key="XyZ123"))

        assert store.find_by_reset_key("XyZ123") == saved
        assert store.find_by_reset_key("xyz123") is None
