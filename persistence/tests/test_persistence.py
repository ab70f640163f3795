# persistence/tests/test_persistence.py
"""Tests for persistence layer."""

import sqlite3
import threading
from datetime import timedelta

import pytest

from auth.exceptions import DuplicateEmailError, StoreUnavailableError, UserNotFoundError
from auth.interfaces import SessionStore, UserRepository
from auth.models import User, utcnow
from persistence.db import Database
from persistence.sessions import SQLiteSessionStore
from persistence.users import SQLiteUserRepository


@pytest.fixture
def db(tmp_path):
    """Fresh database file per test."""
    database = Database(tmp_path / "test.db", timeout=5.0)
    database.init()
    yield database
    database.close()


@pytest.fixture
def users(db):
    return SQLiteUserRepository(db)


@pytest.fixture
def sessions(db):
    return SQLiteSessionStore(db)


def make_user(email="test@example.com", user_id=None):
    user = User.new(email=email)
    if user_id:
        user.id = user_id
    user.password_hash = "hashed_pw"
    return user


class TestDatabaseInit:
    """Test database initialization."""

    def test_init_creates_tables(self, db):
        with db.connection() as conn:
            tables = {
                row["name"]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            }
        assert {"users", "sessions"} <= tables

    def test_init_idempotent(self, db):
        db.init()
        db.init()

    def test_init_creates_parent_directory(self, tmp_path):
        database = Database(tmp_path / "nested" / "dir" / "app.db")
        database.init()
        assert (tmp_path / "nested" / "dir" / "app.db").exists()
        database.close()

    def test_reset_drops_tables(self, db):
        db.reset()
        with db.connection() as conn:
            tables = list(conn.execute("SELECT name FROM sqlite_master WHERE type='table'"))
        assert tables == []

    def test_connection_rolls_back_on_error(self, db, users):
        with pytest.raises(RuntimeError):
            with db.connection() as conn:
                conn.execute(
                    "INSERT INTO users VALUES ('u1', 'a@example.com', 'h', 'x', 'x')"
                )
                raise RuntimeError("abort")
        with pytest.raises(UserNotFoundError):
            users.get_by_id("u1")


class TestSQLiteUserRepository:
    """Tests for the users table adapter."""

    def test_satisfies_protocol(self, users):
        assert isinstance(users, UserRepository)

    def test_create_and_get_by_id(self, users):
        user = make_user(user_id="u1")
        users.create(user)

        got = users.get_by_id("u1")
        assert got.email == "test@example.com"
        assert got.password_hash == "hashed_pw"
        assert got.created_at == user.created_at

    def test_get_by_email(self, users):
        users.create(make_user())
        assert users.get_by_email("test@example.com").email == "test@example.com"

    def test_email_lookup_is_exact(self, users):
        users.create(make_user(email="Alice@example.com"))
        with pytest.raises(UserNotFoundError):
            users.get_by_email("alice@example.com")

    def test_not_found(self, users):
        with pytest.raises(UserNotFoundError):
            users.get_by_id("missing")
        with pytest.raises(UserNotFoundError):
            users.get_by_email("missing@example.com")

    def test_duplicate_email(self, users):
        users.create(make_user())
        with pytest.raises(DuplicateEmailError):
            users.create(make_user())
        assert users.count() == 1

    def test_store_failure_wrapped(self, users, db):
        db.reset()
        with pytest.raises(StoreUnavailableError) as exc_info:
            users.get_by_id("u1")
        assert isinstance(exc_info.value.__cause__, sqlite3.Error)

    def test_concurrent_creates_from_threads(self, users):
        errors = []

        def create(i):
            try:
                users.create(make_user(email=f"user{i}@example.com"))
            except Exception as e:  # collected for the assertion below
                errors.append(e)

        threads = [threading.Thread(target=create, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert users.count() == 8


class TestSQLiteSessionStore:
    """Tests for the sessions table adapter."""

    def test_satisfies_protocol(self, sessions):
        assert isinstance(sessions, SessionStore)

    def test_save_and_load(self, sessions):
        expires = utcnow() + timedelta(hours=1)
        sessions.save("tok", {"user_id": "u1"}, expires)

        record = sessions.load("tok")
        assert record.token == "tok"
        assert record.user_id == "u1"
        assert record.expires_at == expires

    def test_save_overwrites(self, sessions):
        expires = utcnow() + timedelta(hours=1)
        sessions.save("tok", {"user_id": "u1"}, expires)
        sessions.save("tok", {"user_id": "u2"}, expires)
        assert sessions.load("tok").user_id == "u2"

    def test_load_missing(self, sessions):
        assert sessions.load("missing") is None

    def test_expired_not_loaded(self, sessions):
        sessions.save("tok", {"user_id": "u1"}, utcnow() - timedelta(seconds=1))
        assert sessions.load("tok") is None

    def test_destroy(self, sessions):
        sessions.save("tok", {}, utcnow() + timedelta(hours=1))
        sessions.destroy("tok")
        assert sessions.load("tok") is None

    def test_delete_expired(self, sessions):
        sessions.save("old", {}, utcnow() - timedelta(minutes=1))
        sessions.save("new", {}, utcnow() + timedelta(minutes=1))

        assert sessions.delete_expired() == 1
        assert sessions.load("new") is not None
