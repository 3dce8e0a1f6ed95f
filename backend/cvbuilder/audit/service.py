"""Audit log service."""

from fastapi import Request
from sqlalchemy.orm import Session

from ..rate_limit import client_ip
from .models import AuditLog


def audit(db: Session, request: Request, action: str, detail: str = "", user_id=None) -> AuditLog:
    """Queue an audit entry on the session; the caller's commit persists it."""
    entry = AuditLog(
        user_id=user_id,
        action=action,
        detail=detail[:2000],
        method=request.method,
        path=request.url.path[:255],
        ip_address=client_ip(request)[:45],
    )
    db.add(entry)
    return entry
