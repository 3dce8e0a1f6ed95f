"""Authentication routes: register, login, current user, password reset."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..audit.service import audit
from ..config import settings
from ..database.base import get_db
from ..dependencies import get_current_user
from ..notifications.service import send_password_reset_email
from ..rate_limit import limiter
from .models import User
from .schemas import ForgotPasswordRequest, LoginRequest, RegisterRequest, ResetPasswordRequest
from .service import (
    EmailAlreadyRegistered,
    InvalidResetToken,
    authenticate_user,
    create_access_token,
    get_user_by_email,
    issue_password_reset,
    register_user,
    reset_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

_RESET_SENT = "If this email exists, a password reset link will be sent"


@router.post("/register")
@limiter.limit(settings.rate_limit_auth)
def register(request: Request, body: RegisterRequest, db: Session = Depends(get_db)):
    try:
        user = register_user(db, body.name, body.email, body.password)
    except EmailAlreadyRegistered:
        db.rollback()
        return JSONResponse({"message": "User already exists"}, status_code=400)

    audit(db, request, "register", f"email={user.email}", user_id=user.id)
    db.commit()
    return JSONResponse({"token": create_access_token(user), "user": user.to_public_dict()})


@router.post("/login")
@limiter.limit(settings.rate_limit_auth)
def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate_user(db, body.email, body.password)
    if not user:
        audit(db, request, "login_failed", f"email={body.email}")
        db.commit()
        return JSONResponse({"message": "Invalid credentials"}, status_code=400)

    audit(db, request, "login", user_id=user.id)
    db.commit()
    return JSONResponse({"token": create_access_token(user), "user": user.to_public_dict()})


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return JSONResponse({"user": user.to_public_dict()})


@router.post("/forgot-password")
@limiter.limit(settings.rate_limit_auth)
def forgot_password(request: Request, body: ForgotPasswordRequest, db: Session = Depends(get_db)):
    user = get_user_by_email(db, body.email)
    if not user or not user.is_active:
        return JSONResponse({"message": _RESET_SENT})

    token = issue_password_reset(db, user)
    send_password_reset_email(db, user, token)
    audit(db, request, "password_reset_requested", user_id=user.id)
    db.commit()

    content = {"message": _RESET_SENT}
    if settings.expose_reset_token:
        content["resetToken"] = token
    return JSONResponse(content)


@router.post("/reset-password")
@limiter.limit(settings.rate_limit_auth)
def reset_password_route(request: Request, body: ResetPasswordRequest, db: Session = Depends(get_db)):
    try:
        user = reset_password(db, body.token, body.password)
    except InvalidResetToken:
        db.commit()
        return JSONResponse({"message": "Password reset token is invalid or has expired"}, status_code=400)

    audit(db, request, "password_reset", user_id=user.id)
    db.commit()
    return JSONResponse({"message": "Password has been reset", "token": create_access_token(user)})
