"""Tests for CV service."""

import uuid
from datetime import UTC, datetime, timedelta

import pytest

from cvbuilder.auth.models import SubscriptionTier
from cvbuilder.cv.models import CV, CVTemplate
from cvbuilder.cv.schemas import CVCreateRequest, CVUpdateRequest
from cvbuilder.cv.service import (
    CVLimitReached,
    _reserve_cv_slot,
    count_user_cvs,
    create_cv,
    delete_cv,
    get_cv_by_id,
    list_user_cvs,
    mark_pdf_generated,
    update_cv,
)


def _create_payload(title="Backend CV", **extra) -> CVCreateRequest:
    return CVCreateRequest.model_validate({
        "title": title,
        "template": "modern",
        "personalInfo": {"fullName": "Jane Doe", "email": "jane@example.com"},
        **extra,
    })


class TestCreateCV:
    def test_creates_cv_and_bumps_counter(self, db_session, test_user):
        payload = _create_payload(
            workExperience=[{
                "company": "Acme",
                "position": "Engineer",
                "startDate": "2020-01-01",
                "current": True,
            }],
            skills=[{"name": "Python", "level": 5}],
        )
        cv = create_cv(db_session, test_user, payload, limit=2)
        db_session.commit()

        assert cv.user_id == test_user.id
        assert cv.template == CVTemplate.MODERN
        assert cv.personal_info["fullName"] == "Jane Doe"
        assert cv.work_experience[0]["company"] == "Acme"
        assert cv.work_experience[0]["startDate"] == "2020-01-01"
        assert cv.skills == [{"name": "Python", "level": 5, "category": None}]
        assert cv.education == []
        assert cv.cv_metadata["atsScore"] == 0
        assert test_user.created_cvs == 1

    def test_free_limit_enforced(self, db_session, test_user):
        create_cv(db_session, test_user, _create_payload("One"), limit=2)
        create_cv(db_session, test_user, _create_payload("Two"), limit=2)
        db_session.commit()

        with pytest.raises(CVLimitReached):
            create_cv(db_session, test_user, _create_payload("Three"), limit=2)
        db_session.rollback()

        assert count_user_cvs(db_session, test_user.id) == 2

    def test_paid_tier_has_no_limit(self, db_session, premium_user):
        for i in range(4):
            create_cv(db_session, premium_user, _create_payload(f"CV {i}"), limit=2)
        db_session.commit()
        assert count_user_cvs(db_session, premium_user.id) == 4

    def test_upgrade_lifts_limit(self, db_session, test_user):
        create_cv(db_session, test_user, _create_payload("One"), limit=1)
        db_session.commit()

        test_user.subscription = SubscriptionTier.PREMIUM
        test_user.subscription_expiry = datetime.now(UTC) + timedelta(days=30)
        db_session.commit()

        create_cv(db_session, test_user, _create_payload("Two"), limit=1)
        db_session.commit()
        assert count_user_cvs(db_session, test_user.id) == 2

    def test_lapsed_paid_tier_falls_back_to_free_limit(self, db_session, make_user):
        lapsed = make_user(
            subscription=SubscriptionTier.PREMIUM,
            expiry=datetime.now(UTC) - timedelta(days=1),
        )
        create_cv(db_session, lapsed, _create_payload("One"), limit=2)
        create_cv(db_session, lapsed, _create_payload("Two"), limit=2)
        db_session.commit()

        with pytest.raises(CVLimitReached):
            create_cv(db_session, lapsed, _create_payload("Three"), limit=2)
        db_session.rollback()

        assert count_user_cvs(db_session, lapsed.id) == 2

    def test_counter_update_refuses_lapsed_paid_tier(self, db_session, make_user):
        lapsed = make_user(
            subscription=SubscriptionTier.ENTERPRISE,
            expiry=datetime.now(UTC) - timedelta(days=1),
        )
        lapsed.created_cvs = 2
        db_session.commit()

        with pytest.raises(CVLimitReached):
            _reserve_cv_slot(db_session, lapsed.id, 2)

    def test_counter_update_allows_current_paid_tier(self, db_session, premium_user):
        premium_user.created_cvs = 5
        db_session.commit()

        _reserve_cv_slot(db_session, premium_user.id, 2)
        db_session.commit()
        db_session.refresh(premium_user)
        assert premium_user.created_cvs == 6


class TestQueries:
    def test_list_only_own_cvs(self, db_session, test_user, make_user, make_cv):
        other = make_user()
        make_cv(test_user, "Mine")
        make_cv(other, "Theirs")

        titles = [cv.title for cv in list_user_cvs(db_session, test_user.id)]
        assert titles == ["Mine"]

    def test_get_by_id(self, db_session, test_cv):
        assert get_cv_by_id(db_session, str(test_cv.id)).id == test_cv.id

    def test_get_by_unknown_id(self, db_session):
        assert get_cv_by_id(db_session, str(uuid.uuid4())) is None

    def test_get_by_malformed_id(self, db_session):
        assert get_cv_by_id(db_session, "123") is None


class TestUpdateCV:
    def test_only_provided_fields_change(self, db_session, test_cv):
        update_cv(db_session, test_cv, CVUpdateRequest.model_validate({"title": "Renamed"}))
        db_session.commit()

        assert test_cv.title == "Renamed"
        assert test_cv.summary == "Backend engineer with a focus on APIs."
        assert [s["name"] for s in test_cv.skills] == ["Python", "AWS"]

    def test_replaces_list_section(self, db_session, test_cv):
        update_cv(db_session, test_cv, CVUpdateRequest.model_validate({"skills": [{"name": "Go"}]}))
        db_session.commit()
        assert [s["name"] for s in test_cv.skills] == ["Go"]

    def test_template_change(self, db_session, test_cv):
        update_cv(db_session, test_cv, CVUpdateRequest.model_validate({"template": "classic"}))
        db_session.commit()
        assert test_cv.template == CVTemplate.CLASSIC

    def test_explicit_null_is_ignored(self, db_session, test_cv):
        update_cv(db_session, test_cv, CVUpdateRequest.model_validate({"summary": None}))
        db_session.commit()
        assert test_cv.summary == "Backend engineer with a focus on APIs."


class TestDeleteCV:
    def test_delete_resyncs_counter(self, db_session, test_user, make_cv):
        first = make_cv(test_user, "One")
        make_cv(test_user, "Two")
        assert test_user.created_cvs == 2

        delete_cv(db_session, first)
        db_session.commit()
        db_session.refresh(test_user)

        assert db_session.query(CV).count() == 1
        assert test_user.created_cvs == 1


class TestMarkPdfGenerated:
    def test_sets_timestamp_and_keeps_other_metadata(self, db_session, test_cv):
        test_cv.cv_metadata = {"atsScore": 40}
        db_session.commit()

        mark_pdf_generated(db_session, test_cv)
        db_session.commit()

        assert test_cv.cv_metadata["atsScore"] == 40
        assert test_cv.cv_metadata["lastGeneratedPDF"]
