"""CV service: CRUD operations and the free-plan quota."""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session

from ..auth.models import SubscriptionTier, User
from .models import CV, LIST_SECTIONS, default_metadata
from .schemas import CVCreateRequest, CVUpdateRequest

logger = logging.getLogger(__name__)

# API field name -> model attribute for scalar/sub-object fields
_SIMPLE_FIELDS = {
    "title": "title",
    "template": "template",
    "personalInfo": "personal_info",
    "summary": "summary",
    "metadata": "cv_metadata",
    "privacy": "privacy",
}


class CVLimitReached(Exception):
    """Raised when a free-plan user already owns the maximum number of CVs."""


def _to_uuid(value) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (ValueError, AttributeError, TypeError):
        return None


def count_user_cvs(db: Session, user_id: UUID) -> int:
    return db.scalar(select(func.count(CV.id)).where(CV.user_id == user_id)) or 0


def list_user_cvs(db: Session, user_id: UUID) -> list[CV]:
    """All CVs owned by the user, most recently updated first."""
    return db.query(CV).filter(CV.user_id == user_id).order_by(CV.updated_at.desc()).all()


def get_cv_by_id(db: Session, cv_id: str) -> CV | None:
    uid = _to_uuid(cv_id)
    if uid is None:
        return None
    return db.query(CV).filter(CV.id == uid).first()


def _reserve_cv_slot(db: Session, user_id: UUID, limit: int) -> None:
    """Bump the owner's CV counter, refusing when the free quota is used up.

    A single conditional UPDATE, so two concurrent creates cannot both pass
    the quota check: the row lock makes the second one re-evaluate the guard.
    A paid tier whose expiry has passed counts as free.
    """
    paid_and_current = and_(
        User.subscription != SubscriptionTier.FREE,
        User.subscription_expiry > datetime.now(UTC),
    )
    result = db.execute(
        update(User)
        .where(User.id == user_id)
        .where(or_(paid_and_current, User.created_cvs < limit))
        .values(created_cvs=User.created_cvs + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise CVLimitReached()


def _sync_cv_counter(db: Session, user_id: UUID) -> None:
    db.execute(
        update(User)
        .where(User.id == user_id)
        .values(created_cvs=select(func.count(CV.id)).where(CV.user_id == user_id).scalar_subquery())
        .execution_options(synchronize_session=False)
    )


def create_cv(db: Session, user: User, payload: CVCreateRequest, limit: int) -> CV:
    """Create a CV owned by ``user``. Raises CVLimitReached on a full free plan."""
    if user.has_reached_free_limit(limit):
        raise CVLimitReached()
    _reserve_cv_slot(db, user.id, limit)

    data = payload.to_document()
    cv = CV(
        user_id=user.id,
        title=payload.title,
        template=payload.template,
        personal_info=data["personalInfo"],
        summary=payload.summary or "",
        cv_metadata={**default_metadata(), **(data.get("metadata") or {})},
    )
    if payload.privacy is not None:
        cv.privacy = data["privacy"]
    for api_name, attr in LIST_SECTIONS.items():
        setattr(cv, attr, data.get(api_name) or [])

    db.add(cv)
    db.flush()
    db.refresh(user)
    logger.info("CV %s created for user %s (%d owned)", cv.id, user.id, user.created_cvs)
    return cv


def update_cv(db: Session, cv: CV, payload: CVUpdateRequest) -> CV:
    """Replace only the whitelisted fields present in the payload."""
    data = payload.to_document()
    provided = payload.model_fields_set

    for field_name in provided:
        alias = CVUpdateRequest.model_fields[field_name].alias or field_name
        value = data.get(alias)
        if value is None:
            continue
        if alias in _SIMPLE_FIELDS:
            setattr(cv, _SIMPLE_FIELDS[alias], getattr(payload, field_name) if alias == "template" else value)
        elif alias in LIST_SECTIONS:
            setattr(cv, LIST_SECTIONS[alias], value)

    db.flush()
    return cv


def delete_cv(db: Session, cv: CV) -> None:
    user_id = cv.user_id
    db.delete(cv)
    db.flush()
    _sync_cv_counter(db, user_id)


def mark_pdf_generated(db: Session, cv: CV) -> None:
    meta = {**default_metadata(), **(cv.cv_metadata or {})}
    meta["lastGeneratedPDF"] = datetime.now(UTC).isoformat()
    cv.cv_metadata = meta
    db.flush()
