"""Shared FastAPI dependencies."""

import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .auth.models import User
from .auth.service import decode_access_token, get_user_by_id
from .database.base import get_db

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


class AuthRequired(Exception):
    """Raised when the request carries no valid bearer token. Handled in main.py."""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)
        self.message = message


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer JWT to an active user."""
    if credentials is None or not credentials.credentials:
        raise AuthRequired("No token, authorization denied")

    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise AuthRequired("Token is not valid")

    user = get_user_by_id(db, user_id)
    if not user or not user.is_active:
        logger.info("Token for unknown or disabled user %s rejected", user_id)
        raise AuthRequired("Token is not valid")
    return user
