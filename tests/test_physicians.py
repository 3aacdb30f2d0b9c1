import uuid
from datetime import date, timedelta

from app.models.credential import CredentialStatus
from tests.factories import make_dea, make_license, make_physician


def _physician_payload(**overrides):
    payload = {
        "full_legal_name": "Gregory House",
        "npi": "1234567890",
        "ssn": "123-45-6789",
        "gender": "male",
        "provider_role": "physician",
        "clinician_type": "md",
        "email_address": "house@example.com",
        "practice_name": "Diagnostics",
    }
    payload.update(overrides)
    return payload


class TestPhysicianEndpoints:
    def test_create(self, client, auth_headers, staff_user):
        resp = client.post("/physicians", json=_physician_payload(), headers=auth_headers)
        assert resp.status_code == 201
        data = resp.json()
        assert data["full_legal_name"] == "Gregory House"
        assert data["gender"] == "male"
        assert data["status"] == "active"
        assert data["ssn"] == "***-**-6789"

    def test_create_invalid_enum(self, client, auth_headers):
        resp = client.post(
            "/physicians",
            json=_physician_payload(clinician_type="wizard"),
            headers=auth_headers,
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "invalid_enum"
        assert body["details"]["field"] == "clinician_type"
        assert "md" in body["details"]["allowed_values"]

    def test_create_invalid_npi(self, client, auth_headers):
        resp = client.post(
            "/physicians", json=_physician_payload(npi="12345"), headers=auth_headers
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == "validation_error"

    def test_duplicate_npi(self, client, auth_headers):
        client.post("/physicians", json=_physician_payload(), headers=auth_headers)
        resp = client.post(
            "/physicians",
            json=_physician_payload(full_legal_name="Other"),
            headers=auth_headers,
        )
        assert resp.status_code == 409

    def test_unknown_supervisor(self, client, auth_headers):
        resp = client.post(
            "/physicians",
            json=_physician_payload(supervising_physician_id=str(uuid.uuid4())),
            headers=auth_headers,
        )
        assert resp.status_code == 404
        assert resp.json()["message"] == "Supervising physician not found"

    def test_get_not_found(self, client, auth_headers):
        resp = client.get(f"/physicians/{uuid.uuid4()}", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["message"] == "Physician not found"

    def test_get_bad_identifier(self, client, auth_headers):
        resp = client.get("/physicians/not-a-uuid", headers=auth_headers)
        assert resp.status_code == 400

    def test_list_search_and_filters(self, client, db_session, auth_headers):
        make_physician(db_session, full_legal_name="Alice Adams")
        make_physician(db_session, full_legal_name="Bob Brown", provider_role=None)
        resp = client.get("/physicians?search=alice", headers=auth_headers)
        assert resp.json()["count"] == 1
        resp = client.get("/physicians?provider_role=physician", headers=auth_headers)
        assert [p["full_legal_name"] for p in resp.json()["items"]] == ["Alice Adams"]
        resp = client.get("/physicians?status=bogus", headers=auth_headers)
        assert resp.status_code == 400

    def test_list_count_is_total_matches(self, client, db_session, auth_headers):
        for name in ("Ann Able", "Ben Baker", "Cal Cole"):
            make_physician(db_session, full_legal_name=name)
        resp = client.get("/physicians?limit=2&offset=0", headers=auth_headers)
        body = resp.json()
        assert len(body["items"]) == 2
        assert body["count"] == 3
        assert body["limit"] == 2
        resp = client.get("/physicians?limit=2&offset=2", headers=auth_headers)
        assert len(resp.json()["items"]) == 1
        assert resp.json()["count"] == 3

    def test_list_invalid_order_by(self, client, auth_headers):
        resp = client.get("/physicians?order_by=ssn", headers=auth_headers)
        assert resp.status_code == 400

    def test_update(self, client, auth_headers, physician):
        resp = client.patch(
            f"/physicians/{physician.id}",
            json={"status": "suspended", "practice_name": "North Clinic"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "suspended"
        assert resp.json()["practice_name"] == "North Clinic"

    def test_cannot_supervise_self(self, client, auth_headers, physician):
        resp = client.patch(
            f"/physicians/{physician.id}",
            json={"supervising_physician_id": str(physician.id)},
            headers=auth_headers,
        )
        assert resp.status_code == 400

    def test_delete_is_soft(self, client, auth_headers, physician):
        resp = client.delete(f"/physicians/{physician.id}", headers=auth_headers)
        assert resp.status_code == 204
        assert client.get("/physicians", headers=auth_headers).json()["count"] == 0
        detail = client.get(f"/physicians/{physician.id}", headers=auth_headers)
        assert detail.json()["is_active"] is False
        assert detail.json()["status"] == "inactive"

    def test_versioned_prefix(self, client, auth_headers, physician):
        resp = client.get(f"/api/v1/physicians/{physician.id}", headers=auth_headers)
        assert resp.status_code == 200


class TestCredentialRecords:
    def test_create_license(self, client, auth_headers, physician):
        expires = date.today() + timedelta(days=20)
        resp = client.post(
            f"/physicians/{physician.id}/licenses",
            json={
                "state": "NY",
                "license_number": "NY-555",
                "expiration_date": expires.isoformat(),
            },
            headers=auth_headers,
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["days_until_expiration"] == 20
        assert data["expiration_status"] == "expiring_soon"
        assert data["expiration_severity"] == "warning"
        assert data["label"] == "NY medical license #NY-555"

    def test_expiration_before_issue_rejected(self, client, auth_headers, physician):
        resp = client.post(
            f"/physicians/{physician.id}/licenses",
            json={
                "state": "NY",
                "license_number": "NY-555",
                "issue_date": "2025-06-01",
                "expiration_date": "2025-01-01",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 400

    def test_dea_number_format(self, client, auth_headers, physician):
        resp = client.post(
            f"/physicians/{physician.id}/dea-registrations",
            json={
                "state": "CA",
                "dea_number": "123",
                "issue_date": "2025-01-01",
                "expiration_date": "2028-01-01",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 422

    def test_csr_invalid_renewal_cycle(self, client, auth_headers, physician):
        resp = client.post(
            f"/physicians/{physician.id}/csr-licenses",
            json={
                "state": "TX",
                "csr_number": "C-1",
                "issue_date": "2025-01-01",
                "expiration_date": "2026-01-01",
                "renewal_cycle": "monthly",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "renewal_cycle"

    def test_stored_expired_status_wins(self, client, db_session, auth_headers, physician):
        dea = make_dea(db_session, physician, days=400, status=CredentialStatus.expired)
        resp = client.get(f"/dea-registrations/{dea.id}", headers=auth_headers)
        assert resp.json()["expiration_status"] == "expired"
        assert resp.json()["expiration_severity"] == "critical"

    def test_renewed_date_reactivates(self, client, db_session, auth_headers, physician):
        dea = make_dea(db_session, physician, days=-5, status=CredentialStatus.expired)
        new_date = (date.today() + timedelta(days=1000)).isoformat()
        resp = client.patch(
            f"/dea-registrations/{dea.id}",
            json={"expiration_date": new_date},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "active"
        assert resp.json()["expiration_status"] == "active"

    def test_list_nested_and_expiring(self, client, db_session, auth_headers, physician):
        make_license(db_session, physician, days=10, license_number="SOON")
        make_license(db_session, physician, days=300, license_number="LATER")
        resp = client.get(
            f"/physicians/{physician.id}/licenses?expiring_within_days=30",
            headers=auth_headers,
        )
        assert [item["license_number"] for item in resp.json()["items"]] == ["SOON"]
        resp = client.get("/licenses?order_dir=desc", headers=auth_headers)
        assert [item["license_number"] for item in resp.json()["items"]] == [
            "LATER",
            "SOON",
        ]

    def test_nested_list_unknown_physician(self, client, auth_headers):
        resp = client.get(f"/physicians/{uuid.uuid4()}/licenses", headers=auth_headers)
        assert resp.status_code == 404

    def test_delete_hides_record(self, client, db_session, auth_headers, physician):
        license_ = make_license(db_session, physician)
        resp = client.delete(f"/licenses/{license_.id}", headers=auth_headers)
        assert resp.status_code == 204
        assert client.get("/licenses", headers=auth_headers).json()["count"] == 0
        resp = client.get("/licenses?is_active=false", headers=auth_headers)
        assert resp.json()["count"] == 1

    def test_expiring_filter_rejected_for_education(
        self, client, auth_headers, physician
    ):
        resp = client.get("/education?expiring_within_days=30", headers=auth_headers)
        assert resp.status_code == 400


class TestBackgroundRecords:
    def test_education(self, client, auth_headers, physician):
        resp = client.post(
            f"/physicians/{physician.id}/education",
            json={
                "education_type": "residency",
                "institution_name": "Johns Hopkins",
                "start_date": "2010-07-01",
                "completion_date": "2013-06-30",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["education_type"] == "residency"

    def test_education_invalid_type(self, client, auth_headers, physician):
        resp = client.post(
            f"/physicians/{physician.id}/education",
            json={"education_type": "bootcamp", "institution_name": "X"},
            headers=auth_headers,
        )
        assert resp.status_code == 400

    def test_work_history_date_order(self, client, auth_headers, physician):
        resp = client.post(
            f"/physicians/{physician.id}/work-history",
            json={
                "employer_name": "General Hospital",
                "start_date": "2020-01-01",
                "end_date": "2019-01-01",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 400

    def test_hospital_affiliation(self, client, auth_headers, physician):
        resp = client.post(
            f"/physicians/{physician.id}/hospital-affiliations",
            json={"hospital_name": "Princeton-Plainsboro", "privileges": ["admitting"]},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["privileges"] == ["admitting"]


class TestCompliance:
    def test_not_found_until_saved(self, client, auth_headers, physician):
        resp = client.get(f"/physicians/{physician.id}/compliance", headers=auth_headers)
        assert resp.status_code == 404

    def test_upsert(self, client, auth_headers, physician):
        resp = client.put(
            f"/physicians/{physician.id}/compliance",
            json={"malpractice_claims": True, "malpractice_claims_explanation": "Settled"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["is_compliant"] is False
        resp = client.put(
            f"/physicians/{physician.id}/compliance",
            json={},
            headers=auth_headers,
        )
        assert resp.json()["is_compliant"] is True
        assert resp.json()["malpractice_claims"] is False
