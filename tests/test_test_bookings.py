import pytest

from carehub.core.security import UserRole
from carehub.models.provider import ApprovalStatus
from carehub.models import test_booking as booking_models
from carehub.schemas import test_booking as booking_schemas
from carehub.services import test_booking_service as booking_service

@pytest.fixture
def patient(create_user):
    return create_user(UserRole.PATIENT)

@pytest.fixture
def lab(create_user):
    return create_user(UserRole.LABORATORY)

def book(client, headers, laboratory_id, tests=None):
    return client.post("/api/test-bookings", json={
        "laboratory_id": laboratory_id,
        "tests": tests if tests is not None else [
            {"name": "Complete Blood Count", "code": "CBC", "price": 350},
            {"name": "Lipid Profile", "price": 799.5}
        ],
        "sample_collection_mode": "home_visit"
    }, headers=headers)

def set_status(client, headers, booking_id, status, **extra):
    return client.patch(
        f"/api/test-bookings/{booking_id}/status",
        json={"status": status, **extra},
        headers=headers
    )

class TestTransitionRules:

    @pytest.mark.parametrize("current, new", [
        ("ordered", "sample_pending"),
        ("pending", "sample_pending"),
        ("sample_pending", "sample_collected"),
        ("sample_collected", "in_progress"),
        ("in_progress", "completed"),
        ("in_progress", "cancelled"),
        ("ordered", "cancelled"),
    ])
    def test_allowed(self, current, new):
        assert booking_service.can_transition(
            booking_service.TestBookingStatus(current), booking_service.TestBookingStatus(new)
        )

    @pytest.mark.parametrize("current, new", [
        ("ordered", "completed"),
        ("sample_pending", "in_progress"),
        ("completed", "cancelled"),
        ("cancelled", "ordered"),
        ("in_progress", "sample_pending"),
    ])
    def test_rejected(self, current, new):
        assert not booking_service.can_transition(
            booking_service.TestBookingStatus(current), booking_service.TestBookingStatus(new)
        )

    def test_booking_classes_are_not_collected(self):
        classes = [
            booking_service.TestBookingService,
            booking_service.TestBookingStatus,
            booking_models.TestBooking,
            booking_schemas.TestBookingCreate,
            booking_schemas.TestBookingStatusUpdate,
            booking_schemas.TestBookingResponse,
            booking_schemas.TestBookingSummary,
        ]
        assert all(cls.__test__ is False for cls in classes)

class TestCreateBooking:

    def test_create(self, client, patient, lab, auth_headers):
        response = book(client, auth_headers(patient), lab.laboratory.id)
        assert response.status_code == 201

        data = response.json()["data"]
        assert data["status"] == "ordered"
        assert data["total_amount"] == 1149.5
        assert data["currency"] == "INR"
        assert data["sample_collection_mode"] == "home_visit"
        assert len(data["tests"]) == 2

    def test_empty_tests_rejected(self, client, patient, lab, auth_headers):
        response = book(client, auth_headers(patient), lab.laboratory.id, tests=[])
        assert response.status_code == 400

    def test_unapproved_lab(self, client, patient, create_user, auth_headers):
        pending_lab = create_user(UserRole.LABORATORY, status=ApprovalStatus.PENDING)

        response = book(client, auth_headers(patient), pending_lab.laboratory.id)
        assert response.status_code == 404

    def test_unknown_lab(self, client, patient, auth_headers):
        assert book(client, auth_headers(patient), 999).status_code == 404

    def test_lab_cannot_book(self, client, lab, auth_headers):
        assert book(client, auth_headers(lab), lab.laboratory.id).status_code == 403

    def test_patient_bookings(self, client, patient, lab, create_user, auth_headers):
        headers = auth_headers(patient)
        book(client, headers, lab.laboratory.id)
        book(client, headers, lab.laboratory.id)
        book(client, auth_headers(create_user(UserRole.PATIENT)), lab.laboratory.id)

        response = client.get("/api/test-bookings/patient/me", headers=headers)
        assert response.status_code == 200
        assert len(response.json()["data"]) == 2

class TestLaboratoryWorkflow:

    @pytest.fixture
    def booking_id(self, client, patient, lab, auth_headers):
        return book(client, auth_headers(patient), lab.laboratory.id).json()["data"]["id"]

    def test_full_workflow(self, client, lab, booking_id, auth_headers):
        headers = auth_headers(lab)
        for status in ("sample_pending", "sample_collected", "in_progress"):
            response = set_status(client, headers, booking_id, status)
            assert response.status_code == 200
            assert response.json()["data"]["status"] == status

        response = set_status(client, headers, booking_id, "completed", results_summary="All values normal")
        data = response.json()["data"]
        assert data["status"] == "completed"
        assert data["results_summary"] == "All values normal"
        assert data["collected_at"] is not None
        assert data["reported_at"] is not None

    def test_skipping_a_step_rejected(self, client, lab, booking_id, auth_headers):
        response = set_status(client, auth_headers(lab), booking_id, "completed")
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot change status from ordered to completed"

    def test_other_lab_cannot_update(self, client, booking_id, create_user, auth_headers):
        other_lab = create_user(UserRole.LABORATORY)

        response = set_status(client, auth_headers(other_lab), booking_id, "sample_pending")
        assert response.status_code == 404

    def test_lab_listing_with_status_filter(self, client, lab, patient, booking_id, auth_headers):
        book(client, auth_headers(patient), lab.laboratory.id)
        set_status(client, auth_headers(lab), booking_id, "sample_pending")

        headers = auth_headers(lab)
        response = client.get("/api/test-bookings/laboratory/me", headers=headers)
        assert response.json()["data"]["pagination"]["total"] == 2

        response = client.get("/api/test-bookings/laboratory/me", params={"status": "sample_pending"}, headers=headers)
        items = response.json()["data"]["items"]
        assert [item["id"] for item in items] == [booking_id]

    def test_lab_listing_ignores_bad_paging(self, client, lab, booking_id, auth_headers):
        response = client.get(
            "/api/test-bookings/laboratory/me",
            params={"page": "undefined", "limit": "ten"},
            headers=auth_headers(lab)
        )
        assert response.status_code == 200

        data = response.json()["data"]
        assert [item["id"] for item in data["items"]] == [booking_id]
        assert data["pagination"]["limit"] == 20

    def test_summary(self, client, lab, patient, booking_id, auth_headers):
        second = book(client, auth_headers(patient), lab.laboratory.id).json()["data"]["id"]
        book(client, auth_headers(patient), lab.laboratory.id)
        set_status(client, auth_headers(lab), booking_id, "sample_pending")
        set_status(client, auth_headers(lab), second, "cancelled")

        response = client.get("/api/test-bookings/laboratory/summary", headers=auth_headers(lab))
        assert response.status_code == 200

        summary = response.json()["data"]
        assert summary["total"] == 3
        assert summary["by_status"]["ordered"] == 1
        assert summary["by_status"]["sample_pending"] == 1
        assert summary["by_status"]["cancelled"] == 1
        assert summary["by_status"]["completed"] == 0

class TestPatientCancellation:

    def test_cancel(self, client, patient, lab, auth_headers):
        booking_id = book(client, auth_headers(patient), lab.laboratory.id).json()["data"]["id"]

        response = client.patch(f"/api/test-bookings/{booking_id}/cancel", headers=auth_headers(patient))
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "cancelled"

        response = client.patch(f"/api/test-bookings/{booking_id}/cancel", headers=auth_headers(patient))
        assert response.status_code == 400

    def test_cannot_cancel_others_booking(self, client, patient, lab, create_user, auth_headers):
        booking_id = book(client, auth_headers(patient), lab.laboratory.id).json()["data"]["id"]
        stranger = create_user(UserRole.PATIENT)

        response = client.patch(f"/api/test-bookings/{booking_id}/cancel", headers=auth_headers(stranger))
        assert response.status_code == 404
