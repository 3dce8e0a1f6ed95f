"""CV routes: CRUD, ATS analysis, PDF export and HTML preview."""

import logging
import re

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
from sqlalchemy.orm import Session

from ..audit.service import audit
from ..auth.models import User
from ..config import settings
from ..database.base import get_db
from ..dependencies import get_current_user
from ..rendering.html import render_cv_html
from ..rendering.pdf import PDFRenderError, render_cv_pdf
from .ats import analyze_cv, apply_report
from .models import CV
from .schemas import AnalyzeRequest, CVCreateRequest, CVUpdateRequest
from .service import (
    CVLimitReached,
    create_cv,
    delete_cv,
    get_cv_by_id,
    list_user_cvs,
    mark_pdf_generated,
    update_cv,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cv", tags=["cv"])

_NOT_FOUND = {"message": "CV not found"}


def _load_owned(db: Session, cv_id: str, user: User, verb: str) -> tuple[CV | None, JSONResponse | None]:
    """Fetch a CV and check that ``user`` owns it."""
    cv = get_cv_by_id(db, cv_id)
    if not cv:
        return None, JSONResponse(_NOT_FOUND, status_code=404)
    if cv.user_id != user.id:
        logger.warning("User %s tried to %s CV %s owned by %s", user.id, verb, cv.id, cv.user_id)
        return None, JSONResponse({"message": f"Not authorized to {verb} this CV"}, status_code=403)
    return cv, None


def _pdf_filename(title: str) -> str:
    safe = re.sub(r"[^A-Za-z0-9._ -]", "_", title or "cv").strip() or "cv"
    return f"cv-{safe}.pdf"


@router.get("")
@router.get("/", include_in_schema=False)
def list_cvs(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return JSONResponse({"data": [cv.to_dict() for cv in list_user_cvs(db, user.id)]})


@router.get("/{cv_id}")
def get_cv(cv_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    cv, error = _load_owned(db, cv_id, user, "view")
    if error:
        return error
    return JSONResponse({"data": cv.to_dict()})


@router.post("")
@router.post("/", include_in_schema=False)
def create_cv_route(
    request: Request,
    body: CVCreateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        cv = create_cv(db, user, body, settings.free_cv_limit)
    except CVLimitReached:
        db.rollback()
        return JSONResponse(
            {"message": "Free plan limit reached. Upgrade to premium to create more CVs"},
            status_code=403,
        )
    audit(db, request, "cv_create", f"id={cv.id}, title={cv.title}", user_id=user.id)
    db.commit()
    db.refresh(cv)
    return JSONResponse({"data": cv.to_dict()}, status_code=201)


@router.put("/{cv_id}")
def update_cv_route(
    request: Request,
    cv_id: str,
    body: CVUpdateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    cv, error = _load_owned(db, cv_id, user, "update")
    if error:
        return error
    update_cv(db, cv, body)
    audit(db, request, "cv_update", f"id={cv.id}, fields={','.join(sorted(body.model_fields_set))}", user_id=user.id)
    db.commit()
    db.refresh(cv)
    return JSONResponse({"data": cv.to_dict()})


@router.delete("/{cv_id}")
def delete_cv_route(
    request: Request,
    cv_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    cv, error = _load_owned(db, cv_id, user, "delete")
    if error:
        return error
    audit(db, request, "cv_delete", f"id={cv.id}, title={cv.title}", user_id=user.id)
    delete_cv(db, cv)
    db.commit()
    return JSONResponse({"message": "CV removed"})


@router.post("/{cv_id}/analyze")
def analyze_cv_route(
    request: Request,
    cv_id: str,
    body: AnalyzeRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not body.job_description or not body.job_description.strip():
        return JSONResponse({"message": "Job description is required"}, status_code=400)

    cv, error = _load_owned(db, cv_id, user, "analyze")
    if error:
        return error
    if not user.is_premium:
        return JSONResponse({"message": "Premium subscription required for ATS analysis"}, status_code=403)

    report = analyze_cv(cv, body.job_description)
    apply_report(cv, report, body.target_job_title, body.target_company)
    audit(db, request, "cv_analyze", f"id={cv.id}, score={report.ats_score}", user_id=user.id)
    db.commit()
    return JSONResponse({"data": report.to_response()})


@router.get("/{cv_id}/pdf")
@router.get("/{cv_id}/download")
def download_pdf(
    request: Request,
    cv_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    cv, error = _load_owned(db, cv_id, user, "generate PDF for")
    if error:
        return error

    try:
        pdf = render_cv_pdf(cv.to_dict())
    except PDFRenderError:
        return JSONResponse({"message": "PDF generation failed"}, status_code=500)

    mark_pdf_generated(db, cv)
    audit(db, request, "cv_pdf", f"id={cv.id}, bytes={len(pdf)}", user_id=user.id)
    db.commit()
    return Response(
        pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{_pdf_filename(cv.title)}"'},
    )


@router.get("/{cv_id}/preview", response_class=HTMLResponse)
def preview_cv(
    cv_id: str,
    template: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    cv, error = _load_owned(db, cv_id, user, "view")
    if error:
        return error
    return HTMLResponse(render_cv_html(cv.to_dict(), template))
