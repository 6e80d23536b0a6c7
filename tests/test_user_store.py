"""Unit tests for auth/store.py -- the SQLAlchemy user directory.

Covers:
- create_user assigns a 32-char hex id and created_at
- email uniqueness is enforced by the table (IntegrityError)
- lookups by id and email, listing
- update_user returns the post-update record, None for unknown ids, and
  refuses immutable columns
- delete_user returns the prior record and leaves others untouched; of
  concurrent deletes of one id exactly one gets the record back
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.store import UserStore


@pytest.fixture
def store():
    """In-memory UserStore with two users pre-loaded."""
    s = UserStore("sqlite:///:memory:")
    s.create_user(User(name="Ada", email="ada@example.com", password_hash="$2b$04$hash-ada"))
    s.create_user(User(name="Grace", email="grace@example.com", password_hash="$2b$04$hash-grace"))
    yield s
    s.close()


class TestCreate:
    def test_assigns_id_and_timestamp(self, store: UserStore) -> None:
        user_id = store.create_user(User(name="Linus", email="linus@example.com", password_hash="h"))
        assert len(user_id) == 32
        created = store.get_by_id(user_id)
        assert created is not None
        assert created.email == "linus@example.com"
        assert created.created_at

    def test_duplicate_email_raises_integrity_error(self, store: UserStore) -> None:
        with pytest.raises(IntegrityError):
            store.create_user(User(name="Imposter", email="ada@example.com", password_hash="h"))
        matches = [u for u in store.list_users() if u.email == "ada@example.com"]
        assert len(matches) == 1
        assert matches[0].name == "Ada"


class TestLookup:
    def test_get_by_email(self, store: UserStore) -> None:
        user = store.get_by_email("grace@example.com")
        assert user is not None
        assert user.name == "Grace"
        assert user.password_hash == "$2b$04$hash-grace"

    def test_get_by_email_is_exact(self, store: UserStore) -> None:
        assert store.get_by_email("GRACE@example.com") is None

    def test_get_by_unknown_id(self, store: UserStore) -> None:
        assert store.get_by_id("0" * 32) is None

    def test_list_users(self, store: UserStore) -> None:
        assert {u.email for u in store.list_users()} == {"ada@example.com", "grace@example.com"}

    def test_ping(self, store: UserStore) -> None:
        assert store.ping() is True


class TestUpdate:
    def test_update_returns_new_state(self, store: UserStore) -> None:
        ada = store.get_by_email("ada@example.com")
        updated = store.update_user(ada.id, name="Ada Lovelace")
        assert updated is not None
        assert updated.name == "Ada Lovelace"
        assert updated.email == "ada@example.com"
        assert updated.id == ada.id
        assert updated.created_at == ada.created_at

    def test_update_unknown_id_returns_none(self, store: UserStore) -> None:
        assert store.update_user("f" * 32, name="Nobody") is None

    def test_update_to_taken_email_raises(self, store: UserStore) -> None:
        ada = store.get_by_email("ada@example.com")
        with pytest.raises(IntegrityError):
            store.update_user(ada.id, email="grace@example.com")

    def test_update_rejects_immutable_fields(self, store: UserStore) -> None:
        ada = store.get_by_email("ada@example.com")
        with pytest.raises(ValueError):
            store.update_user(ada.id, id="x" * 32)


class TestDelete:
    def test_delete_returns_prior_record(self, store: UserStore) -> None:
        grace = store.get_by_email("grace@example.com")
        removed = store.delete_user(grace.id)
        assert removed == grace
        assert store.get_by_id(grace.id) is None
        assert [u.email for u in store.list_users()] == ["ada@example.com"]

    def test_delete_unknown_id_returns_none(self, store: UserStore) -> None:
        assert store.delete_user("0" * 32) is None
        assert len(store.list_users()) == 2

    def test_concurrent_deletes_remove_once(self, tmp_path) -> None:
        s = UserStore(f"sqlite:///{tmp_path / 'users.db'}")
        user_id = s.create_user(User(name="Ada", email="ada@example.com", password_hash="h"))
        workers = 8
        barrier = threading.Barrier(workers)

        def delete() -> User | None:
            barrier.wait()
            return s.delete_user(user_id)

        try:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = list(pool.map(lambda _: delete(), range(workers)))
        finally:
            s.close()
        removed = [r for r in results if r is not None]
        assert len(removed) == 1
        assert removed[0].email == "ada@example.com"
