"""Authentication service: user management, password hashing, tokens."""

import hashlib
import logging
import secrets
from datetime import UTC, datetime, timedelta
from uuid import UUID

import bcrypt
import jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from .models import User, UserRole, as_utc

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes and newer releases reject longer input
_BCRYPT_MAX_BYTES = 72


class EmailAlreadyRegistered(Exception):
    """Raised when registering (or changing to) an email that is already taken."""


class InvalidResetToken(Exception):
    """Raised when a password reset token is unknown, used or expired."""


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode()[:_BCRYPT_MAX_BYTES], salt).decode()


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode()[:_BCRYPT_MAX_BYTES], hashed.encode())
    except ValueError:
        # malformed stored hash
        return False


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_user_by_id(db: Session, user_id) -> User | None:
    try:
        uid = user_id if isinstance(user_id, UUID) else UUID(str(user_id))
    except (ValueError, AttributeError, TypeError):
        return None
    return db.query(User).filter(User.id == uid).first()


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """Verify credentials and return user, or None if invalid.

    Unknown email and wrong password are indistinguishable to the caller.
    """
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    if not user.is_active:
        return None
    return user


def register_user(db: Session, name: str, email: str, password: str) -> User:
    if get_user_by_email(db, email):
        raise EmailAlreadyRegistered(email)

    user = User(
        name=name.strip(),
        email=normalize_email(email),
        password_hash=hash_password(password),
        created_cvs=0,
        email_verified=False,
        email_verification_token=secrets.token_hex(20),
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        # lost a race with a concurrent registration of the same email
        db.rollback()
        raise EmailAlreadyRegistered(email) from None
    logger.info("Registered user %s", user.id)
    return user


# ── JWT ───────────────────────────────────────────────────────────────


def create_access_token(user: User) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": str(user.id),
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_expires_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str | None:
    """Return the user id carried by a valid token, None otherwise."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        logger.debug("Expired token presented")
        return None
    except jwt.PyJWTError as e:
        logger.debug("Invalid token presented: %s", e)
        return None
    return payload.get("sub")


# ── Password reset ────────────────────────────────────────────────────


def _hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def issue_password_reset(db: Session, user: User) -> str:
    """Generate a reset token for ``user``. Only its hash is stored."""
    token = secrets.token_hex(20)
    user.password_reset_token = _hash_reset_token(token)
    user.password_reset_expires = datetime.now(UTC) + timedelta(minutes=settings.password_reset_ttl_minutes)
    db.flush()
    return token


def reset_password(db: Session, token: str, new_password: str) -> User:
    user = db.query(User).filter(User.password_reset_token == _hash_reset_token(token)).first()
    if not user:
        raise InvalidResetToken()
    expires = as_utc(user.password_reset_expires)
    if expires is None or expires <= datetime.now(UTC):
        user.password_reset_token = None
        user.password_reset_expires = None
        db.flush()
        raise InvalidResetToken()

    user.password_hash = hash_password(new_password)
    user.password_reset_token = None
    user.password_reset_expires = None
    db.flush()
    logger.info("Password reset completed for user %s", user.id)
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> bool:
    """Set a new password. Returns False when ``current_password`` is wrong."""
    if not verify_password(current_password, user.password_hash):
        return False
    user.password_hash = hash_password(new_password)
    db.flush()
    return True


def ensure_admin_user(db: Session) -> None:
    """Create admin user from env vars if it doesn't exist yet."""
    if not settings.admin_email or not settings.admin_password:
        return

    existing = get_user_by_email(db, settings.admin_email)
    if existing:
        return

    admin = User(
        name=settings.admin_name,
        email=normalize_email(settings.admin_email),
        password_hash=hash_password(settings.admin_password),
        role=UserRole.ADMIN,
        email_verified=True,
    )
    db.add(admin)
    db.flush()
    logger.info("Admin user %s created", admin.email)
