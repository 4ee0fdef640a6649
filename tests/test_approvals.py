import pytest

from carehub.core.security import UserRole
from carehub.models.provider import ApprovalStatus

@pytest.fixture
def admin(create_user):
    return create_user(UserRole.ADMIN)

@pytest.fixture
def pending_doctor(create_user):
    return create_user(UserRole.DOCTOR, email="pending.doctor@example.com", status=ApprovalStatus.PENDING)

class TestApprovalQueue:

    def test_list_pending_by_role(self, client, admin, pending_doctor, create_user, auth_headers):
        create_user(UserRole.PHARMACY, status=ApprovalStatus.PENDING)
        create_user(UserRole.LABORATORY)  # already approved

        response = client.get("/api/admin/approvals", headers=auth_headers(admin))
        assert response.status_code == 200

        data = response.json()["data"]
        assert set(data) == {"doctor", "laboratory", "pharmacy", "nurse"}
        assert [record["email"] for record in data["doctor"]] == ["pending.doctor@example.com"]
        assert data["doctor"][0]["name"] == "Dr. Asha Rao"
        assert len(data["pharmacy"]) == 1
        assert data["laboratory"] == []

    def test_filter_role_and_status(self, client, admin, pending_doctor, create_user, auth_headers):
        create_user(UserRole.DOCTOR)

        response = client.get(
            "/api/admin/approvals",
            params={"role": "doctor", "status": "approved"},
            headers=auth_headers(admin)
        )
        data = response.json()["data"]
        assert list(data) == ["doctor"]
        assert len(data["doctor"]) == 1
        assert data["doctor"][0]["status"] == "approved"

    def test_unsupported_role(self, client, admin, auth_headers):
        response = client.get("/api/admin/approvals", params={"role": "patient"}, headers=auth_headers(admin))
        assert response.status_code == 400

    def test_invalid_status(self, client, admin, auth_headers):
        response = client.get("/api/admin/approvals", params={"status": "maybe"}, headers=auth_headers(admin))
        assert response.status_code == 400

    def test_admin_only(self, client, create_user, auth_headers):
        patient = create_user(UserRole.PATIENT)

        response = client.get("/api/admin/approvals", headers=auth_headers(patient))
        assert response.status_code == 403

class TestApprovalDecisions:

    def test_approve_allows_login(self, client, admin, pending_doctor, auth_headers):
        credentials = {"email": "pending.doctor@example.com", "password": "TestPassword123"}
        assert client.post("/api/auth/login", json=credentials).status_code == 403

        response = client.patch(
            f"/api/admin/approvals/doctor/{pending_doctor.doctor.id}/approve",
            headers=auth_headers(admin)
        )
        assert response.status_code == 200

        record = response.json()["data"]
        assert record["status"] == "approved"
        assert record["approved_by"] == admin.id
        assert record["approved_at"] is not None

        assert client.post("/api/auth/login", json=credentials).status_code == 200

    def test_approve_is_idempotent(self, client, admin, pending_doctor, auth_headers):
        url = f"/api/admin/approvals/doctor/{pending_doctor.doctor.id}/approve"
        client.patch(url, headers=auth_headers(admin))

        response = client.patch(url, headers=auth_headers(admin))
        assert response.status_code == 200
        assert response.json()["message"] == "Request already approved."

    def test_reject_with_reason(self, client, admin, pending_doctor, auth_headers):
        response = client.patch(
            f"/api/admin/approvals/doctor/{pending_doctor.doctor.id}/reject",
            json={"reason": "License could not be verified"},
            headers=auth_headers(admin)
        )
        assert response.status_code == 200

        record = response.json()["data"]
        assert record["status"] == "rejected"
        assert record["rejection_reason"] == "License could not be verified"

        login = client.post("/api/auth/login", json={
            "email": "pending.doctor@example.com", "password": "TestPassword123"
        })
        assert login.status_code == 403

    def test_reject_default_reason(self, client, admin, pending_doctor, auth_headers):
        url = f"/api/admin/approvals/doctor/{pending_doctor.doctor.id}/reject"

        response = client.patch(url, headers=auth_headers(admin))
        assert response.json()["data"]["rejection_reason"] == "Not specified"

        response = client.patch(url, headers=auth_headers(admin))
        assert response.json()["message"] == "Request already rejected with same reason."

    def test_approved_provider_loses_access_when_rejected(self, client, admin, create_user, auth_headers):
        nurse = create_user(UserRole.NURSE)
        assert client.get("/api/auth/me", headers=auth_headers(nurse)).status_code == 200

        client.patch(f"/api/admin/approvals/nurse/{nurse.nurse.id}/reject", headers=auth_headers(admin))

        response = client.get("/api/auth/me", headers=auth_headers(nurse))
        assert response.status_code == 403
        assert response.json()["message"] == "Account is not approved yet"

    def test_missing_record(self, client, admin, auth_headers):
        response = client.patch("/api/admin/approvals/pharmacy/999/approve", headers=auth_headers(admin))
        assert response.status_code == 404

    def test_unsupported_role(self, client, admin, auth_headers):
        response = client.patch("/api/admin/approvals/hospital/1/approve", headers=auth_headers(admin))
        assert response.status_code == 400
