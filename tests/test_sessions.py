"""Tests for the session store."""

from datetime import timedelta

from sqlalchemy import delete, func, select, update

from tenant_auth.models import Session as SessionModel
from tenant_auth.models import User


def _count_sessions(database) -> int:
    with database.session_scope() as db:
        return db.scalar(select(func.count()).select_from(SessionModel))


def _make_user(users, email="user@test.com"):
    return users.create(email, "$argon2id$placeholder")


class TestCreateAndGet:
    def test_create_sets_expiry_from_ttl(self, users, sessions, clock):
        user = _make_user(users)
        info = sessions.create(user.id)

        assert len(info.session_token) == 64
        assert info.expires == clock.now + timedelta(days=30)

    def test_get_returns_session_with_safe_user(self, users, sessions):
        user = _make_user(users)
        info = sessions.create(user.id)

        context = sessions.get(info.session_token)

        assert context is not None
        assert context.session.id == info.id
        assert context.user.id == user.id
        assert context.user.email == "user@test.com"
        assert "password_hash" not in context.user.model_dump()
        assert "passwordHash" not in context.user.model_dump(by_alias=True)

    def test_unknown_token_returns_none(self, sessions):
        assert sessions.get("0" * 64) is None

    def test_multiple_sessions_per_user(self, users, sessions):
        user = _make_user(users)
        first = sessions.create(user.id)
        second = sessions.create(user.id)

        assert first.session_token != second.session_token
        assert sessions.get(first.session_token) is not None
        assert sessions.get(second.session_token) is not None


class TestExpiry:
    def test_expired_session_is_deleted_on_lookup(self, database, users, sessions, clock):
        user = _make_user(users)
        info = sessions.create(user.id)
        with database.session_scope() as db:
            db.execute(
                update(SessionModel)
                .where(SessionModel.id == info.id)
                .values(expires=clock.now - timedelta(seconds=1))
            )

        assert sessions.get(info.session_token) is None
        assert _count_sessions(database) == 0
        # second lookup is a plain miss
        assert sessions.get(info.session_token) is None

    def test_session_expires_when_ttl_elapses(self, users, sessions, clock):
        user = _make_user(users)
        info = sessions.create(user.id)

        clock.advance(days=29, hours=23)
        assert sessions.get(info.session_token) is not None

        clock.advance(hours=1)
        assert sessions.get(info.session_token) is None

    def test_cleanup_removes_only_expired(self, database, users, sessions, clock):
        user = _make_user(users)
        old = sessions.create(user.id)
        clock.advance(days=20)
        fresh = sessions.create(user.id)
        clock.advance(days=15)

        assert sessions.cleanup_expired() == 1
        assert sessions.cleanup_expired() == 0
        assert _count_sessions(database) == 1
        assert sessions.get(fresh.session_token) is not None
        assert sessions.get(old.session_token) is None


class TestDelete:
    def test_delete_is_idempotent(self, database, users, sessions):
        user = _make_user(users)
        info = sessions.create(user.id)

        sessions.delete(info.session_token)
        sessions.delete(info.session_token)

        assert sessions.get(info.session_token) is None
        assert _count_sessions(database) == 0

    def test_delete_all_for_user(self, users, sessions):
        alice = _make_user(users, "alice@test.com")
        bob = _make_user(users, "bob@test.com")
        alice_tokens = [sessions.create(alice.id).session_token for _ in range(3)]
        bob_token = sessions.create(bob.id).session_token

        assert sessions.delete_all_for_user(alice.id) == 3
        assert all(sessions.get(t) is None for t in alice_tokens)
        assert sessions.get(bob_token) is not None
        assert sessions.delete_all_for_user(alice.id) == 0

    def test_deleting_user_removes_sessions(self, database, users, sessions):
        user = _make_user(users)
        info = sessions.create(user.id)

        # Bulk delete bypasses the ORM cascade; the foreign key must do it
        with database.session_scope() as db:
            db.execute(delete(User).where(User.id == user.id))

        assert _count_sessions(database) == 0
        assert sessions.get(info.session_token) is None
