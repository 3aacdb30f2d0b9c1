import csv
import json
import uuid
from datetime import date, datetime, timezone
from io import StringIO

import pytest
from fastapi import HTTPException

from app.models.credential import CredentialStatus, RenewalCycle
from app.models.document import DocumentType
from app.models.physician import PhysicianCompliance, PhysicianStatus, ProviderRole
from app.models.renewal import RenewalEntityType, RenewalStatus, RenewalWorkflow
from app.services.analytics import REQUIRED_DOCUMENTS, analytics
from app.services.export import CREDENTIAL_FIELDS, exports, render
from tests.factories import (
    make_certification,
    make_csr,
    make_dea,
    make_document,
    make_license,
    make_physician,
)

TODAY = date(2026, 3, 1)


def _workflow(db, physician, status, created_at):
    workflow = RenewalWorkflow(
        physician_id=physician.id,
        entity_type=RenewalEntityType.license,
        entity_id=uuid.uuid4(),
        status=status,
        created_at=created_at,
    )
    db.add(workflow)
    db.commit()
    return workflow


class TestComplianceAnalytics:
    def test_overall_rate_counts_clean_records_only(self, db_session):
        clean = make_physician(db_session, practice_name="Cardiology")
        flagged = make_physician(db_session, practice_name="Cardiology")
        make_physician(db_session, practice_name="Oncology")
        db_session.add(PhysicianCompliance(physician_id=clean.id))
        db_session.add(PhysicianCompliance(physician_id=flagged.id, malpractice_claims=True))
        db_session.commit()

        result = analytics.compliance(db_session)

        assert result["overall"] == 33.33
        departments = {row["category"]: row for row in result["by_department"]}
        assert departments["Cardiology"]["compliant"] == 1
        assert departments["Cardiology"]["non_compliant"] == 1
        assert departments["Cardiology"]["compliance_rate"] == 50.0
        assert departments["Oncology"]["compliance_rate"] == 0.0

    def test_specialty_comes_from_first_certification(self, db_session, physician):
        make_certification(db_session, physician, specialty="Cardiology")
        result = analytics.compliance(db_session)
        assert [row["category"] for row in result["by_specialty"]] == ["Cardiology"]

    def test_physician_without_practice_is_unassigned(self, db_session, physician):
        result = analytics.compliance(db_session)
        assert result["by_department"][0]["category"] == "Unassigned"
        assert result["by_specialty"][0]["category"] == "General Practice"
        assert result["by_provider_role"][0]["category"] == "physician"

    def test_empty_database(self, db_session):
        result = analytics.compliance(db_session)
        assert result["overall"] == 0.0
        assert result["by_department"] == []


class TestRenewalTrends:
    def test_six_calendar_months(self, db_session):
        trends = analytics.renewal_trends(db_session, today=TODAY)
        assert [entry["period"] for entry in trends] == [
            "Oct 2025",
            "Nov 2025",
            "Dec 2025",
            "Jan 2026",
            "Feb 2026",
            "Mar 2026",
        ]

    def test_outcomes_bucketed_by_creation_month(self, db_session, physician):
        feb = datetime(2026, 2, 10, tzinfo=timezone.utc)
        _workflow(db_session, physician, RenewalStatus.approved, feb)
        _workflow(db_session, physician, RenewalStatus.rejected, feb)
        _workflow(db_session, physician, RenewalStatus.in_progress, feb)
        _workflow(db_session, physician, RenewalStatus.approved, datetime(2025, 1, 5))

        trends = {entry["period"]: entry for entry in analytics.renewal_trends(
            db_session, today=TODAY
        )}

        assert trends["Feb 2026"]["successful"] == 1
        assert trends["Feb 2026"]["failed"] == 1
        assert trends["Feb 2026"]["pending"] == 1
        assert trends["Feb 2026"]["success_rate"] == 33.33
        assert trends["Mar 2026"]["success_rate"] == 0.0


class TestExpirationForecast:
    def test_cumulative_windows(self, db_session, physician):
        make_license(db_session, physician, days=10, today=TODAY)
        make_license(db_session, physician, days=45, today=TODAY, license_number="B1")
        make_dea(db_session, physician, days=80, today=TODAY)
        make_csr(db_session, physician, days=200, today=TODAY)
        make_certification(db_session, physician, days=20, today=TODAY)

        forecast = analytics.expiration_forecast(db_session, today=TODAY)

        assert [entry["days"] for entry in forecast] == [30, 60, 90]
        thirty, sixty, ninety = forecast
        assert thirty["licenses"] == 1
        assert thirty["certifications"] == 1
        assert thirty["total"] == 2
        assert sixty["licenses"] == 2
        assert ninety["dea_registrations"] == 1
        assert ninety["csr_licenses"] == 0
        assert ninety["total"] == 4

    def test_stored_expired_and_lapsed_are_excluded(self, db_session, physician):
        make_dea(db_session, physician, days=10, today=TODAY, status=CredentialStatus.expired)
        make_license(db_session, physician, days=-5, today=TODAY)
        forecast = analytics.expiration_forecast(db_session, today=TODAY)
        assert all(entry["total"] == 0 for entry in forecast)

    def test_inactive_physicians_are_excluded(self, db_session):
        retired = make_physician(db_session, is_active=False)
        make_license(db_session, retired, days=10, today=TODAY)
        assert analytics.expiration_forecast(db_session, today=TODAY)[0]["total"] == 0


class TestLicenseDistribution:
    def test_grouping_by_state_type_and_status(self, db_session, physician):
        make_license(db_session, physician, days=10, today=TODAY, state="CA")
        make_license(db_session, physician, days=400, today=TODAY, state="CA")
        make_license(
            db_session, physician, days=60, today=TODAY, state="NY", license_type="surgical"
        )
        make_license(db_session, physician, days=-1, today=TODAY, state="TX")

        result = analytics.license_distribution(db_session, today=TODAY)

        assert result["by_state"][0] == {"category": "CA", "value": 2, "percentage": 50.0}
        types = {row["category"]: row["value"] for row in result["by_type"]}
        assert types == {"medical": 3, "surgical": 1}
        statuses = {row["category"]: row["value"] for row in result["by_status"]}
        assert statuses == {
            "expiring_soon": 1,
            "active": 1,
            "renewal_required": 1,
            "expired": 1,
        }


class TestProviderMetrics:
    def test_one_row_per_role(self, db_session):
        doctor = make_physician(db_session)
        make_physician(db_session, provider_role=ProviderRole.np)
        db_session.add(PhysicianCompliance(physician_id=doctor.id))
        db_session.commit()
        make_license(db_session, doctor, days=10, today=TODAY)
        make_license(db_session, doctor, days=300, today=TODAY, license_number="B2")

        metrics = {row["role"]: row for row in analytics.provider_metrics(
            db_session, today=TODAY
        )}

        assert set(metrics) == {"physician", "pa", "np"}
        assert metrics["physician"]["compliance_rate"] == 100.0
        assert metrics["physician"]["avg_licenses_per_provider"] == 2.0
        assert metrics["physician"]["expiring_within_30_days"] == 1
        assert metrics["np"]["non_compliant"] == 1
        assert metrics["pa"]["total"] == 0
        assert metrics["pa"]["avg_licenses_per_provider"] == 0.0


class TestDeaAndCsrMetrics:
    def test_dea_metrics(self, db_session, physician):
        make_dea(db_session, physician, days=20, today=TODAY, mate_attested=True)
        make_dea(
            db_session,
            physician,
            days=200,
            today=TODAY,
            state="NY",
            status=CredentialStatus.expired,
        )

        result = analytics.dea_metrics(db_session, today=TODAY)

        assert result["total_registrations"] == 2
        assert result["active_registrations"] == 1
        assert result["expired_registrations"] == 1
        assert result["expiring_within_30_days"] == 1
        assert result["mate_training_compliance"] == 50.0
        assert result["state_distribution"] == {"CA": 1, "NY": 1}

    def test_csr_metrics(self, db_session, physician):
        make_csr(db_session, physician, days=15, today=TODAY)
        make_csr(
            db_session,
            physician,
            days=500,
            today=TODAY,
            renewal_cycle=RenewalCycle.biennial,
        )

        result = analytics.csr_metrics(db_session, today=TODAY)

        assert result["total_licenses"] == 2
        assert result["expiring_within_30_days"] == 1
        assert result["renewal_cycle_breakdown"]["annual"] == 1
        assert result["renewal_cycle_breakdown"]["biennial"] == 1
        assert result["state_distribution"] == {"TX": 2}


class TestDocumentCompleteness:
    def test_missing_documents_listed(self, db_session, physician):
        make_document(db_session, physician, document_type=DocumentType.cv)
        make_document(db_session, physician, document_type=DocumentType.medical_license)

        (row,) = analytics.document_completeness(db_session)

        assert row["physician_id"] == physician.id
        assert row["category"] == "Jane Doe"
        assert row["required"] == len(REQUIRED_DOCUMENTS)
        assert row["uploaded"] == 2
        assert row["completeness_rate"] == 40.0
        assert "cv" not in row["missing_documents"]
        assert "dea_certificate" in row["missing_documents"]

    def test_archived_versions_do_not_count(self, db_session, physician):
        make_document(db_session, physician, document_type=DocumentType.cv, is_current=False)
        (row,) = analytics.document_completeness(db_session)
        assert row["uploaded"] == 0


class TestStatusSummaryAndReport:
    def test_status_summary_includes_every_status(self, db_session):
        make_physician(db_session)
        make_physician(db_session, status=PhysicianStatus.suspended)
        result = analytics.physician_status_summary(db_session)
        assert result["total"] == 2
        assert result["status_breakdown"]["active"] == 1
        assert result["status_breakdown"]["suspended"] == 1
        assert result["status_breakdown"]["terminated"] == 0

    def test_expiration_report_sorted_by_urgency(self, db_session, physician):
        make_license(db_session, physician, days=60, today=TODAY, license_number="L60")
        make_license(db_session, physician, days=5, today=TODAY, license_number="L5")
        make_license(db_session, physician, days=200, today=TODAY, license_number="L200")
        make_license(db_session, physician, days=-3, today=TODAY, license_number="OLD")

        report = analytics.license_expiration_report(db_session, days=90, today=TODAY)

        assert report["expiring_within_days"] == 2
        assert report["already_expired"] == 1
        assert [entry["license_number"] for entry in report["licenses"]] == ["L5", "L60"]
        assert report["licenses"][0]["physician_name"] == "Jane Doe"


class TestAnalyticsApi:
    @pytest.mark.parametrize(
        "path",
        [
            "/analytics/compliance",
            "/analytics/renewal-trends",
            "/analytics/expiration-forecast",
            "/analytics/license-distribution",
            "/analytics/provider-metrics",
            "/analytics/dea-metrics",
            "/analytics/csr-metrics",
            "/analytics/document-completeness",
            "/analytics/physicians/status-summary",
            "/analytics/licenses/expiration-report",
        ],
    )
    def test_endpoints_respond(self, client, auth_headers, physician, path):
        response = client.get(path, headers=auth_headers)
        assert response.status_code == 200

    def test_requires_auth(self, client):
        assert client.get("/analytics/compliance").status_code == 401

    def test_report_days_bounds(self, client, auth_headers):
        for days in (0, 366):
            response = client.get(
                f"/analytics/licenses/expiration-report?days={days}", headers=auth_headers
            )
            assert response.status_code == 422

    def test_report_lists_expiring_license(self, client, auth_headers, db_session, physician):
        make_license(db_session, physician, days=10)
        response = client.get(
            "/analytics/licenses/expiration-report?days=30", headers=auth_headers
        )
        body = response.json()
        assert body["days"] == 30
        assert body["expiring_within_days"] == 1
        assert body["licenses"][0]["days_until_expiration"] == 10


class TestExports:
    def test_credentials_csv_rows(self, db_session, physician):
        make_license(db_session, physician, days=20, today=TODAY)
        make_dea(db_session, physician, days=60, today=TODAY)

        content = exports.credentials(db_session, "csv", today=TODAY)
        rows = list(csv.DictReader(StringIO(content)))

        assert list(rows[0].keys()) == CREDENTIAL_FIELDS
        assert [row["credential_type"] for row in rows] == ["license", "dea"]
        assert rows[0]["days_until_expiration"] == "20"
        assert rows[0]["expiration_status"] == "expiring_soon"
        assert rows[1]["number"] == "AB1234567"
        assert rows[1]["expiration_status"] == "renewal_required"

    def test_credentials_json_keeps_stored_expired_status(self, db_session, physician):
        make_dea(db_session, physician, days=100, today=TODAY, status=CredentialStatus.expired)
        rows = json.loads(exports.credentials(db_session, "json", today=TODAY))
        assert rows[0]["expiration_status"] == "expired"
        assert rows[0]["physician_name"] == "Jane Doe"

    def test_physician_export_masks_ssn(self, db_session):
        make_physician(db_session, ssn="123-45-6789")
        rows = json.loads(exports.physicians(db_session, "json"))
        assert rows[0]["ssn"] == "***-**-6789"
        assert rows[0]["status"] == "active"

    def test_render_rejects_unknown_format(self):
        with pytest.raises(HTTPException) as exc:
            render([], CREDENTIAL_FIELDS, "xml")
        assert exc.value.status_code == 400

    def test_csv_download(self, client, auth_headers, db_session):
        make_physician(db_session, ssn="123-45-6789")
        response = client.get("/exports/physicians", headers=auth_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        disposition = response.headers["content-disposition"]
        assert disposition.startswith('attachment; filename="physicians_export_')
        assert disposition.endswith('.csv"')
        assert "123-45-6789" not in response.text
        assert "***-**-6789" in response.text

    def test_json_download(self, client, auth_headers, db_session, physician):
        make_license(db_session, physician, days=30)
        response = client.get("/exports/credentials?format=json", headers=auth_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert response.json()[0]["credential_type"] == "license"

    def test_unknown_format_rejected(self, client, auth_headers):
        response = client.get("/exports/credentials?format=xml", headers=auth_headers)
        assert response.status_code == 422
