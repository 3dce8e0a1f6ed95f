"""User profile service."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth.models import User
from ..auth.service import EmailAlreadyRegistered, get_user_by_email, normalize_email

logger = logging.getLogger(__name__)


def update_profile(db: Session, user: User, name: str | None = None, email: str | None = None) -> User:
    """Apply the provided (non-empty) fields only."""
    if name and name.strip():
        user.name = name.strip()
    if email:
        email = normalize_email(email)
        if email != user.email:
            other = get_user_by_email(db, email)
            if other and other.id != user.id:
                raise EmailAlreadyRegistered(email)
            user.email = email
            user.email_verified = False
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise EmailAlreadyRegistered(email) from None
    return user


def delete_account(db: Session, user: User) -> None:
    """Hard-delete the user; their CVs go with them."""
    user_id = user.id
    db.delete(user)
    db.flush()
    logger.info("Deleted account %s", user_id)
