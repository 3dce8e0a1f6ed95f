"""Current-user profile routes."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..audit.service import audit
from ..auth.models import User
from ..auth.service import EmailAlreadyRegistered, change_password
from ..database.base import get_db
from ..dependencies import get_current_user
from .schemas import PasswordChangeRequest, ProfileUpdateRequest
from .service import delete_account, update_profile

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me/profile")
def get_profile(user: User = Depends(get_current_user)):
    return JSONResponse({"data": user.to_public_dict()})


@router.put("/me/profile")
def update_profile_route(
    request: Request,
    body: ProfileUpdateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        update_profile(db, user, body.name, body.email)
    except EmailAlreadyRegistered:
        db.rollback()
        return JSONResponse({"message": "Email is already in use"}, status_code=400)
    audit(db, request, "profile_update", f"fields={','.join(sorted(body.model_fields_set))}", user_id=user.id)
    db.commit()
    return JSONResponse({"data": user.to_public_dict()})


@router.put("/me/password")
def change_password_route(
    request: Request,
    body: PasswordChangeRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not body.current_password or not body.new_password:
        return JSONResponse({"message": "Please provide current and new passwords"}, status_code=400)
    if len(body.new_password) < 8:
        return JSONResponse({"message": "Password must be at least 8 characters long"}, status_code=400)

    if not change_password(db, user, body.current_password, body.new_password):
        audit(db, request, "password_change_failed", user_id=user.id)
        db.commit()
        return JSONResponse({"message": "Current password is incorrect"}, status_code=400)

    audit(db, request, "password_change", user_id=user.id)
    db.commit()
    return JSONResponse({"message": "Password updated successfully"})


@router.delete("/me")
def delete_me(
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    audit(db, request, "account_delete", f"id={user.id}, email={user.email}")
    delete_account(db, user)
    db.commit()
    return JSONResponse({"message": "User account deleted successfully"})
