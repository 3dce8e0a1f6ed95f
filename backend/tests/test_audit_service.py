"""Tests for audit service."""

from unittest.mock import MagicMock

from cvbuilder.audit.models import AuditLog
from cvbuilder.audit.service import audit
from cvbuilder.rate_limit import client_ip


def _request(headers=None, host="127.0.0.1", method="POST", path="/api/auth/login"):
    request = MagicMock()
    request.headers = headers or {}
    request.method = method
    request.url.path = path
    if host is None:
        request.client = None
    else:
        request.client.host = host
    return request


class TestClientIp:
    def test_extracts_forwarded_ip(self):
        assert client_ip(_request({"X-Forwarded-For": "1.2.3.4, 5.6.7.8"})) == "1.2.3.4"

    def test_uses_client_host(self):
        assert client_ip(_request(host="10.0.0.1")) == "10.0.0.1"

    def test_unknown_when_no_client(self):
        assert client_ip(_request(host=None)) == "unknown"


class TestAudit:
    def test_creates_audit_log(self, db_session, test_user):
        audit(db_session, _request({"X-Forwarded-For": "192.168.1.1"}), "login", "some detail", user_id=test_user.id)
        db_session.commit()

        logs = db_session.query(AuditLog).all()
        assert len(logs) == 1
        assert logs[0].action == "login"
        assert logs[0].detail == "some detail"
        assert logs[0].ip_address == "192.168.1.1"
        assert logs[0].method == "POST"
        assert logs[0].path == "/api/auth/login"
        assert logs[0].user_id == test_user.id

    def test_creates_log_without_user(self, db_session):
        audit(db_session, _request(), "login_failed", "email=nobody@example.com")
        db_session.commit()

        log = db_session.query(AuditLog).one()
        assert log.user_id is None
        assert log.ip_address == "127.0.0.1"

    def test_truncates_long_detail(self, db_session):
        audit(db_session, _request(), "cv_update", "x" * 5000)
        db_session.commit()
        assert len(db_session.query(AuditLog).one().detail) == 2000

    def test_not_persisted_without_commit(self, db_session):
        audit(db_session, _request(), "login")
        db_session.rollback()
        assert db_session.query(AuditLog).count() == 0
