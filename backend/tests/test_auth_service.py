"""Tests for authentication service."""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import jwt
import pytest

from cvbuilder.auth.models import SubscriptionTier, User, UserRole
from cvbuilder.auth.service import (
    EmailAlreadyRegistered,
    InvalidResetToken,
    authenticate_user,
    change_password,
    create_access_token,
    decode_access_token,
    ensure_admin_user,
    get_user_by_email,
    get_user_by_id,
    hash_password,
    issue_password_reset,
    register_user,
    reset_password,
    verify_password,
)
from cvbuilder.config import settings
from conftest import PASSWORD


class TestPasswordHashing:
    def test_hash_and_verify(self):
        password = "test_password_123"
        hashed = hash_password(password)
        assert hashed != password
        assert verify_password(password, hashed)

    def test_wrong_password_fails(self):
        hashed = hash_password("correct_password")
        assert not verify_password("wrong_password", hashed)

    def test_long_password_is_truncated_not_rejected(self):
        password = "x" * 100
        hashed = hash_password(password)
        assert verify_password(password, hashed)

    def test_malformed_hash_is_false(self):
        assert not verify_password("anything", "not-a-bcrypt-hash")


class TestGetUser:
    def test_finds_existing_user(self, db_session, test_user):
        user = get_user_by_email(db_session, "test@example.com")
        assert user is not None
        assert user.id == test_user.id

    def test_email_lookup_is_case_insensitive(self, db_session, test_user):
        assert get_user_by_email(db_session, "  TEST@Example.com ").id == test_user.id

    def test_returns_none_for_unknown(self, db_session):
        assert get_user_by_email(db_session, "unknown@example.com") is None

    def test_by_id_accepts_string(self, db_session, test_user):
        assert get_user_by_id(db_session, str(test_user.id)).id == test_user.id

    def test_by_id_invalid_uuid(self, db_session):
        assert get_user_by_id(db_session, "not-a-uuid") is None


class TestAuthenticateUser:
    def test_valid_credentials(self, db_session, test_user):
        result = authenticate_user(db_session, "test@example.com", PASSWORD)
        assert result is not None
        assert result.id == test_user.id

    def test_wrong_password(self, db_session, test_user):
        assert authenticate_user(db_session, "test@example.com", "wrongpassword") is None

    def test_nonexistent_user(self, db_session):
        assert authenticate_user(db_session, "nobody@test.com", "password") is None

    def test_inactive_user(self, db_session, test_user):
        test_user.is_active = False
        db_session.commit()
        assert authenticate_user(db_session, "test@example.com", PASSWORD) is None


class TestRegisterUser:
    def test_creates_free_user(self, db_session):
        user = register_user(db_session, " Jane Doe ", "Jane@Example.com", "Secret123")
        db_session.commit()

        assert user.name == "Jane Doe"
        assert user.email == "jane@example.com"
        assert user.role == UserRole.USER
        assert str(user.subscription) == "free"
        assert user.created_cvs == 0
        assert user.email_verified is False
        assert user.email_verification_token
        assert user.password_hash != "Secret123"

    def test_duplicate_email_rejected(self, db_session, test_user):
        with pytest.raises(EmailAlreadyRegistered):
            register_user(db_session, "Other", "TEST@example.com", "Secret123")
        assert db_session.query(User).count() == 1

    def test_unique_index_catches_missed_lookup(self, db_session, test_user):
        with patch("cvbuilder.auth.service.get_user_by_email", return_value=None):
            with pytest.raises(EmailAlreadyRegistered):
                register_user(db_session, "Other", "test@example.com", "Secret123")
        assert db_session.query(User).count() == 1


class TestFreeLimit:
    def test_free_user_at_limit(self, make_user):
        user = make_user()
        user.created_cvs = 2
        assert user.has_reached_free_limit(2)
        assert not user.has_reached_free_limit(3)

    def test_current_paid_plan_is_unlimited(self, premium_user):
        premium_user.created_cvs = 10
        assert not premium_user.has_reached_free_limit(2)

    def test_lapsed_paid_plan_counts_as_free(self, make_user):
        user = make_user(subscription=SubscriptionTier.PREMIUM, expiry=datetime.now(UTC) - timedelta(days=1))
        user.created_cvs = 2
        assert user.has_reached_free_limit(2)


class TestAccessToken:
    def test_roundtrip(self, test_user):
        token = create_access_token(test_user)
        assert decode_access_token(token) == str(test_user.id)

    def test_expired_token(self, test_user):
        now = datetime.now(UTC)
        token = jwt.encode(
            {"sub": str(test_user.id), "iat": now - timedelta(days=8), "exp": now - timedelta(days=1)},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        assert decode_access_token(token) is None

    def test_wrong_secret(self, test_user):
        token = jwt.encode({"sub": str(test_user.id)}, "another-secret-that-is-long-enough!!", algorithm="HS256")
        assert decode_access_token(token) is None

    def test_garbage(self):
        assert decode_access_token("not.a.token") is None


class TestPasswordReset:
    def test_only_hash_is_stored(self, db_session, test_user):
        token = issue_password_reset(db_session, test_user)
        assert token
        assert test_user.password_reset_token != token
        assert test_user.password_reset_expires is not None

    def test_reset_sets_new_password_and_clears_token(self, db_session, test_user):
        token = issue_password_reset(db_session, test_user)
        reset_password(db_session, token, "NewPassword1")
        db_session.commit()

        assert verify_password("NewPassword1", test_user.password_hash)
        assert test_user.password_reset_token is None
        assert test_user.password_reset_expires is None

    def test_token_is_single_use(self, db_session, test_user):
        token = issue_password_reset(db_session, test_user)
        reset_password(db_session, token, "NewPassword1")
        with pytest.raises(InvalidResetToken):
            reset_password(db_session, token, "OtherPassword1")

    def test_expired_token_rejected(self, db_session, test_user):
        token = issue_password_reset(db_session, test_user)
        test_user.password_reset_expires = datetime.now(UTC) - timedelta(minutes=1)
        db_session.commit()

        with pytest.raises(InvalidResetToken):
            reset_password(db_session, token, "NewPassword1")
        assert test_user.password_reset_token is None
        assert verify_password(PASSWORD, test_user.password_hash)

    def test_unknown_token_rejected(self, db_session, test_user):
        with pytest.raises(InvalidResetToken):
            reset_password(db_session, "deadbeef", "NewPassword1")


class TestChangePassword:
    def test_correct_current_password(self, db_session, test_user):
        assert change_password(db_session, test_user, PASSWORD, "Changed123")
        assert verify_password("Changed123", test_user.password_hash)

    def test_wrong_current_password(self, db_session, test_user):
        assert not change_password(db_session, test_user, "wrong", "Changed123")
        assert verify_password(PASSWORD, test_user.password_hash)


class TestEnsureAdminUser:
    def test_noop_without_credentials(self, db_session, monkeypatch):
        monkeypatch.setattr(settings, "admin_email", "")
        ensure_admin_user(db_session)
        assert db_session.query(User).count() == 0

    def test_creates_admin_once(self, db_session, monkeypatch):
        monkeypatch.setattr(settings, "admin_email", "Admin@Example.com")
        monkeypatch.setattr(settings, "admin_password", "AdminPass1")
        ensure_admin_user(db_session)
        ensure_admin_user(db_session)
        db_session.commit()

        admins = db_session.query(User).all()
        assert len(admins) == 1
        assert admins[0].email == "admin@example.com"
        assert admins[0].role == UserRole.ADMIN
