import uuid
from datetime import date, timedelta

import pytest
from fastapi import HTTPException

from app.models.credential import CredentialStatus
from app.models.renewal import RenewalEntityType, RenewalStatus, RenewalWorkflow
from app.schemas.renewal import RenewalInitiate
from app.services.renewal import build_checklist, renewal_workflows
from tests.factories import make_csr, make_dea, make_license, make_physician

TODAY = date(2026, 3, 1)


def _initiate(db_session, credential, entity_type="license"):
    return renewal_workflows.initiate(
        db_session,
        RenewalInitiate(
            physician_id=credential.physician_id,
            entity_type=entity_type,
            entity_id=credential.id,
        ),
        today=TODAY,
    )


def _complete_required(db_session, workflow):
    for item in workflow.checklist:
        if item.required:
            renewal_workflows.toggle_item(db_session, str(workflow.id), str(item.id), True)


def _advance(db_session, workflow, *statuses):
    for status in statuses:
        if status == "filed":
            _complete_required(db_session, workflow)
        workflow = renewal_workflows.update_status(
            db_session,
            str(workflow.id),
            status,
            "Incomplete CME" if status == "rejected" else None,
        )
    return workflow


class TestChecklistTemplates:
    def test_license_checklist_for_state_with_background_check(self):
        items = build_checklist(RenewalEntityType.license, "ca", TODAY)
        keys = [item["key"] for item in items]
        assert keys[0] == "review-expiration"
        assert keys[-1] == "submit-renewal"
        assert [item["position"] for item in items] == list(range(1, len(items) + 1))
        background = next(i for i in items if i["key"] == "background-check")
        assert background["required"] is True
        cme = next(i for i in items if i["key"] == "cme-requirements")
        assert cme["due_date"] == TODAY + timedelta(days=60)

    def test_license_checklist_elsewhere(self):
        items = build_checklist(RenewalEntityType.license, "TX", TODAY)
        background = next(i for i in items if i["key"] == "background-check")
        assert background["required"] is False

    def test_dea_checklist_csr_step_optional_without_state_csr(self):
        items = build_checklist(RenewalEntityType.dea, "AK", TODAY)
        csr_step = next(i for i in items if i["key"] == "csr-valid")
        assert csr_step["required"] is False

    def test_csr_checklist(self):
        items = build_checklist(RenewalEntityType.csr, "FL", TODAY)
        keys = [item["key"] for item in items]
        assert "mate-training" in keys
        course = next(i for i in items if i["key"] == "prescribing-course")
        assert course["required"] is True


class TestInitiate:
    def test_initiate_license(self, db_session, physician):
        license_ = make_license(db_session, physician, days=100, today=TODAY)
        workflow = _initiate(db_session, license_)
        assert workflow.status == RenewalStatus.not_started
        assert workflow.progress_percentage == 0
        assert workflow.next_action_required == "Begin renewal application"
        assert workflow.next_action_due_date == license_.expiration_date - timedelta(
            days=90
        )
        assert len(workflow.checklist) == 8
        assert workflow.notes == f"Renewal initiated for {license_.label}"

    def test_duplicate_open_workflow(self, db_session, physician):
        license_ = make_license(db_session, physician, today=TODAY)
        _initiate(db_session, license_)
        with pytest.raises(HTTPException) as exc:
            _initiate(db_session, license_)
        assert exc.value.status_code == 409

    def test_credential_of_other_physician(self, db_session, physician):
        other = make_physician(db_session, full_legal_name="Other")
        license_ = make_license(db_session, other, today=TODAY)
        with pytest.raises(HTTPException) as exc:
            renewal_workflows.initiate(
                db_session,
                RenewalInitiate(
                    physician_id=physician.id,
                    entity_type="license",
                    entity_id=license_.id,
                ),
            )
        assert exc.value.status_code == 404

    def test_wrong_entity_type(self, db_session, physician):
        license_ = make_license(db_session, physician, today=TODAY)
        with pytest.raises(HTTPException) as exc:
            _initiate(db_session, license_, entity_type="dea")
        assert exc.value.detail == "DEA registration not found"

    def test_inactive_physician_rejected(self, db_session):
        retired = make_physician(db_session, is_active=False)
        license_ = make_license(db_session, retired, today=TODAY)
        with pytest.raises(HTTPException) as exc:
            _initiate(db_session, license_)
        assert exc.value.status_code == 400
        assert exc.value.detail == "Physician is inactive"


class TestStatusTransitions:
    def test_happy_path(self, db_session, physician):
        workflow = _initiate(db_session, make_license(db_session, physician, today=TODAY))
        workflow = _advance(
            db_session, workflow, "in_progress", "filed", "under_review", "approved"
        )
        assert workflow.status == RenewalStatus.approved
        assert workflow.application_date is not None
        assert workflow.filed_date is not None
        assert workflow.approval_date is not None
        assert workflow.progress_percentage == 100
        assert workflow.next_action_required is None
        assert workflow.next_action_due_date is None

    def test_invalid_transition_lists_allowed(self, db_session, physician):
        workflow = _initiate(db_session, make_license(db_session, physician, today=TODAY))
        with pytest.raises(HTTPException) as exc:
            renewal_workflows.update_status(db_session, str(workflow.id), "approved")
        assert exc.value.status_code == 409
        assert exc.value.detail["code"] == "invalid_transition"
        assert exc.value.detail["details"]["allowed_statuses"] == [
            "expired",
            "in_progress",
        ]

    def test_terminal_status_is_final(self, db_session, physician):
        workflow = _initiate(db_session, make_license(db_session, physician, today=TODAY))
        workflow = _advance(db_session, workflow, "expired")
        with pytest.raises(HTTPException) as exc:
            renewal_workflows.update_status(db_session, str(workflow.id), "in_progress")
        assert exc.value.detail["details"]["allowed_statuses"] == []

    def test_same_status_is_noop(self, db_session, physician):
        workflow = _initiate(db_session, make_license(db_session, physician, today=TODAY))
        same = renewal_workflows.update_status(db_session, str(workflow.id), "not_started")
        assert same.status == RenewalStatus.not_started

    def test_reject_requires_reason(self, db_session, physician):
        workflow = _initiate(db_session, make_license(db_session, physician, today=TODAY))
        workflow = _advance(db_session, workflow, "in_progress", "filed")
        with pytest.raises(HTTPException) as exc:
            renewal_workflows.update_status(db_session, str(workflow.id), "rejected", "  ")
        assert exc.value.status_code == 400
        assert exc.value.detail["code"] == "rejection_reason_required"

    def test_reason_only_when_rejecting(self, db_session, physician):
        workflow = _initiate(db_session, make_license(db_session, physician, today=TODAY))
        with pytest.raises(HTTPException) as exc:
            renewal_workflows.update_status(
                db_session, str(workflow.id), "in_progress", "because"
            )
        assert exc.value.detail["code"] == "unexpected_rejection_reason"

    def test_reason_cleared_on_resubmission(self, db_session, physician):
        workflow = _initiate(db_session, make_license(db_session, physician, today=TODAY))
        workflow = _advance(db_session, workflow, "in_progress", "filed", "rejected")
        assert workflow.rejection_reason == "Incomplete CME"
        assert workflow.rejection_date is not None
        workflow = _advance(db_session, workflow, "in_progress")
        assert workflow.rejection_reason is None

    def test_filing_requires_checklist(self, db_session, physician):
        workflow = _initiate(db_session, make_license(db_session, physician, today=TODAY))
        workflow = _advance(db_session, workflow, "in_progress")
        with pytest.raises(HTTPException) as exc:
            renewal_workflows.update_status(db_session, str(workflow.id), "filed")
        assert exc.value.detail["code"] == "checklist_incomplete"
        assert "submit-renewal" in exc.value.detail["details"]["pending_items"]

    def test_optional_items_do_not_block_filing(self, db_session, physician):
        license_ = make_license(db_session, physician, state="TX", today=TODAY)
        workflow = _initiate(db_session, license_)
        workflow = _advance(db_session, workflow, "in_progress", "filed")
        assert workflow.status == RenewalStatus.filed
        optional = [item for item in workflow.checklist if not item.required]
        assert optional and not any(item.completed for item in optional)


class TestChecklistAndProgress:
    def test_toggle_updates_progress(self, db_session, physician):
        workflow = _initiate(db_session, make_license(db_session, physician, today=TODAY))
        first = workflow.checklist[0]
        workflow = renewal_workflows.toggle_item(
            db_session, str(workflow.id), str(first.id), True
        )
        assert workflow.progress_percentage == 13
        assert first.completed_at is not None
        workflow = renewal_workflows.toggle_item(
            db_session, str(workflow.id), str(first.id), False
        )
        assert workflow.progress_percentage == 0
        assert first.completed_at is None

    def test_unknown_item(self, db_session, physician):
        workflow = _initiate(db_session, make_license(db_session, physician, today=TODAY))
        with pytest.raises(HTTPException) as exc:
            renewal_workflows.toggle_item(
                db_session, str(workflow.id), str(uuid.uuid4()), True
            )
        assert exc.value.status_code == 404

    def test_closed_checklist(self, db_session, physician):
        workflow = _initiate(db_session, make_license(db_session, physician, today=TODAY))
        workflow = _advance(db_session, workflow, "expired")
        with pytest.raises(HTTPException) as exc:
            renewal_workflows.toggle_item(
                db_session, str(workflow.id), str(workflow.checklist[0].id), True
            )
        assert exc.value.status_code == 409

    def test_set_progress_bounds(self, db_session, physician):
        workflow = _initiate(db_session, make_license(db_session, physician, today=TODAY))
        updated = renewal_workflows.set_progress(db_session, str(workflow.id), 40)
        assert updated.progress_percentage == 40
        with pytest.raises(HTTPException):
            renewal_workflows.set_progress(db_session, str(workflow.id), 101)


class TestReporting:
    def test_timeline_after_rejection(self, db_session, physician):
        workflow = _initiate(db_session, make_license(db_session, physician, today=TODAY))
        workflow = _advance(db_session, workflow, "in_progress", "filed", "rejected")
        timeline = renewal_workflows.timeline(db_session, str(workflow.id))
        assert [entry["status"] for entry in timeline] == [
            "not_started",
            "in_progress",
            "filed",
            "under_review",
            "rejected",
        ]
        assert timeline[-1]["description"] == "Renewal rejected: Incomplete CME"
        assert all(entry["completed"] for entry in timeline)

    def test_next_actions(self, db_session, physician):
        workflow = _initiate(db_session, make_license(db_session, physician, today=TODAY))
        actions = renewal_workflows.next_actions(db_session, str(workflow.id))
        assert actions["status"] == "not_started"
        assert actions["actions"][0] == "Begin renewal application"

    def test_upcoming_includes_overdue(self, db_session, physician):
        soon = _initiate(
            db_session, make_license(db_session, physician, days=80, today=TODAY)
        )
        later = _initiate(
            db_session, make_dea(db_session, physician, days=300, today=TODAY), "dea"
        )
        upcoming = renewal_workflows.upcoming(db_session, 30, today=TODAY)
        ids = [workflow.id for workflow in upcoming]
        assert soon.id in ids
        assert later.id not in ids

    def test_statistics(self, db_session, physician):
        workflow = _initiate(db_session, make_license(db_session, physician, today=TODAY))
        _advance(db_session, workflow, "in_progress")
        _initiate(db_session, make_csr(db_session, physician, today=TODAY), "csr")
        stats = renewal_workflows.statistics(db_session, today=TODAY)
        assert stats["total"] == 2
        assert stats["in_progress"] == 1
        assert stats["by_status"]["not_started"] == 1
        assert stats["completed"] == 0


class TestScheduledJobs:
    def test_auto_create_opens_workflows_once(self, db_session, physician):
        make_license(db_session, physician, days=45, today=TODAY)
        make_dea(db_session, physician, days=200, today=TODAY)
        make_csr(db_session, physician, days=-3, today=TODAY)
        created = renewal_workflows.auto_create(db_session, today=TODAY)
        assert [w.entity_type for w in created] == [RenewalEntityType.license]
        assert renewal_workflows.auto_create(db_session, today=TODAY) == []

    def test_auto_create_skips_inactive_physicians(self, db_session, physician):
        retired = make_physician(db_session, full_legal_name="Retired", is_active=False)
        make_license(db_session, retired, days=40, today=TODAY)
        kept = make_license(db_session, physician, days=40, today=TODAY)
        created = renewal_workflows.auto_create(db_session, today=TODAY)
        assert [w.entity_id for w in created] == [kept.id]

    def test_auto_create_skips_expired_status(self, db_session, physician):
        make_dea(
            db_session, physician, days=20, today=TODAY, status=CredentialStatus.expired
        )
        assert renewal_workflows.auto_create(db_session, today=TODAY) == []

    def test_auto_create_respects_recent_approval(self, db_session, physician):
        today = date.today()
        license_ = make_license(db_session, physician, days=45, today=today)
        workflow = renewal_workflows.initiate(
            db_session,
            RenewalInitiate(
                physician_id=physician.id, entity_type="license", entity_id=license_.id
            ),
            today=today,
        )
        _advance(db_session, workflow, "in_progress", "filed", "approved")
        assert renewal_workflows.auto_create(db_session, today=today) == []

    def test_auto_expire(self, db_session, physician):
        lapsed = make_license(db_session, physician, days=-1, today=TODAY)
        current = make_license(db_session, physician, days=60, today=TODAY)
        lapsed_wf = _initiate(db_session, lapsed)
        current_wf = _initiate(db_session, current)
        lapsed_dea = make_dea(db_session, physician, days=-10, today=TODAY)
        rejected_wf = _initiate(db_session, lapsed_dea, "dea")
        _advance(db_session, rejected_wf, "in_progress", "filed", "rejected")

        expired = renewal_workflows.auto_expire(db_session, today=TODAY)
        assert {w.id for w in expired} == {lapsed_wf.id, rejected_wf.id}
        db_session.refresh(current_wf)
        assert current_wf.status == RenewalStatus.not_started
        assert db_session.get(RenewalWorkflow, lapsed_wf.id).status == RenewalStatus.expired


class TestRenewalEndpoints:
    def test_initiate_and_status_flow(
        self, client, db_session, auth_headers, staff_user, physician
    ):
        license_ = make_license(db_session, physician)
        resp = client.post(
            "/renewals",
            json={
                "physician_id": str(physician.id),
                "entity_type": "license",
                "entity_id": str(license_.id),
            },
            headers=auth_headers,
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "not_started"
        assert data["created_by"] == str(staff_user.id)
        workflow_id = data["id"]

        resp = client.put(
            f"/renewals/{workflow_id}/status",
            json={"status": "in_progress"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "in_progress"

        resp = client.put(
            f"/renewals/{workflow_id}/status",
            json={"status": "approved"},
            headers=auth_headers,
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == "invalid_transition"

    def test_invalid_status_value(self, client, db_session, auth_headers, physician):
        workflow = _initiate(db_session, make_license(db_session, physician, today=TODAY))
        resp = client.put(
            f"/renewals/{workflow.id}/status",
            json={"status": "done"},
            headers=auth_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "status"

    def test_checklist_endpoint(self, client, db_session, auth_headers, physician):
        workflow = _initiate(db_session, make_license(db_session, physician, today=TODAY))
        item = workflow.checklist[0]
        resp = client.patch(
            f"/renewals/{workflow.id}/checklist/{item.id}",
            json={"completed": True},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["progress_percentage"] == 13
        assert resp.json()["checklist"][0]["completed"] is True

    def test_list_filters(self, client, db_session, auth_headers, physician):
        _initiate(db_session, make_license(db_session, physician, today=TODAY))
        _initiate(db_session, make_dea(db_session, physician, today=TODAY), "dea")
        resp = client.get("/renewals?entity_type=dea", headers=auth_headers)
        assert resp.json()["count"] == 1
        resp = client.get("/renewals?status=nope", headers=auth_headers)
        assert resp.status_code == 400

    def test_jobs_admin_only(self, client, auth_headers, admin_headers):
        resp = client.post("/renewals/jobs/auto-expire", headers=auth_headers)
        assert resp.status_code == 403
        resp = client.post("/renewals/jobs/auto-expire", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json() == {"processed": 0, "affected": []}

    def test_not_found(self, client, auth_headers):
        resp = client.get(f"/renewals/{uuid.uuid4()}", headers=auth_headers)
        assert resp.status_code == 404
