"""
Appointment scheduling tests.
"""

from datetime import timedelta

from healthnet.models.all_models import DoctorType, Notification, utc_now
from healthnet.services.assignments import end_assignment


def book(client, headers, patient_id, when, **extra):
    payload = {"patient_id": patient_id, "when": when.isoformat(), **extra}
    return client.post("/api/doctor/appointments", json=payload, headers=headers)


class TestBooking:

    def test_assigned_doctor_books(self, client, db, medical_doctor, patient, assign, auth_headers):
        assign(medical_doctor, patient)
        response = book(client, auth_headers(medical_doctor), patient.user_id, utc_now() + timedelta(days=2), reason="Review")
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["appointment_id"].startswith("APT-")
        assert data["status"] == "SCHEDULED"
        assert data["duration"] == 30

        db.expire_all()
        titles = [n.title for n in db.query(Notification).filter(Notification.user_id == patient.id)]
        assert "New Appointment Scheduled" in titles

    def test_unassigned_doctor_cannot_book(self, client, medical_doctor, patient, auth_headers):
        response = book(client, auth_headers(medical_doctor), patient.user_id, utc_now() + timedelta(days=2))
        assert response.status_code == 403

    def test_duration_bounds(self, client, medical_doctor, patient, assign, auth_headers):
        assign(medical_doctor, patient)
        response = book(client, auth_headers(medical_doctor), patient.user_id, utc_now() + timedelta(days=1), duration=1)
        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"


class TestRescheduleAndComplete:

    def test_reschedule_future_appointment(self, client, db, medical_doctor, patient, assign, auth_headers):
        assign(medical_doctor, patient)
        headers = auth_headers(medical_doctor)
        appointment_id = book(client, headers, patient.user_id, utc_now() + timedelta(days=1)).json()["data"]["appointment_id"]

        new_when = utc_now() + timedelta(days=3)
        response = client.patch(
            f"/api/doctor/appointments/{appointment_id}/reschedule",
            json={"when": new_when.isoformat()},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "RESCHEDULED"

        db.expire_all()
        titles = [n.title for n in db.query(Notification).filter(Notification.user_id == patient.id)]
        assert "Appointment Rescheduled" in titles

    def test_cannot_reschedule_past_appointment(self, client, medical_doctor, patient, assign, auth_headers):
        assign(medical_doctor, patient)
        headers = auth_headers(medical_doctor)
        appointment_id = book(client, headers, patient.user_id, utc_now() - timedelta(hours=2)).json()["data"]["appointment_id"]

        response = client.patch(
            f"/api/doctor/appointments/{appointment_id}/reschedule",
            json={"when": (utc_now() + timedelta(days=1)).isoformat()},
            headers=headers,
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot reschedule past appointments"

    def test_cannot_reschedule_into_the_past(self, client, db, medical_doctor, patient, assign, auth_headers):
        assign(medical_doctor, patient)
        headers = auth_headers(medical_doctor)
        appointment_id = book(client, headers, patient.user_id, utc_now() + timedelta(days=1)).json()["data"]["appointment_id"]

        response = client.patch(
            f"/api/doctor/appointments/{appointment_id}/reschedule",
            json={"when": (utc_now() - timedelta(days=3)).isoformat()},
            headers=headers,
        )
        assert response.status_code == 400
        assert response.json()["message"] == "New appointment time must be in the future"

        data = client.get(f"/api/doctor/appointments/{appointment_id}", headers=headers).json()["data"]
        assert data["status"] == "SCHEDULED"

    def test_cannot_complete_future_appointment(self, client, medical_doctor, patient, assign, auth_headers):
        assign(medical_doctor, patient)
        headers = auth_headers(medical_doctor)
        appointment_id = book(client, headers, patient.user_id, utc_now() + timedelta(days=1)).json()["data"]["appointment_id"]

        response = client.patch(f"/api/doctor/appointments/{appointment_id}/complete", headers=headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot complete an appointment before its date/time"

    def test_complete_past_appointment(self, client, db, medical_doctor, patient, assign, auth_headers):
        assign(medical_doctor, patient)
        headers = auth_headers(medical_doctor)
        appointment_id = book(client, headers, patient.user_id, utc_now() - timedelta(hours=1)).json()["data"]["appointment_id"]

        response = client.patch(f"/api/doctor/appointments/{appointment_id}/complete", headers=headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "COMPLETED"
        assert data["completed_at"] is not None

        response = client.patch(f"/api/doctor/appointments/{appointment_id}/complete", headers=headers)
        assert response.status_code == 400

        db.expire_all()
        titles = [n.title for n in db.query(Notification).filter(Notification.user_id == patient.id)]
        assert "Appointment Completed" in titles

    def test_only_booking_doctor_may_change(self, client, make_doctor, patient, assign, auth_headers):
        owner = make_doctor(DoctorType.MEDICAL_DOCTOR)
        colleague = make_doctor(DoctorType.MEDICAL_DOCTOR)
        assign(owner, patient)
        assign(colleague, patient)
        appointment_id = book(client, auth_headers(owner), patient.user_id, utc_now() + timedelta(days=1)).json()["data"]["appointment_id"]

        response = client.patch(
            f"/api/doctor/appointments/{appointment_id}/reschedule",
            json={"when": (utc_now() + timedelta(days=2)).isoformat()},
            headers=auth_headers(colleague),
        )
        assert response.status_code == 403
        assert response.json()["message"] == "You can only reschedule your own appointments"

        response = client.patch(f"/api/doctor/appointments/{appointment_id}/complete", headers=auth_headers(colleague))
        assert response.status_code == 403


class TestListings:

    def test_listings_hide_ended_assignments(self, client, db, medical_doctor, patient, assign, auth_headers):
        assignment = assign(medical_doctor, patient)
        book(client, auth_headers(medical_doctor), patient.user_id, utc_now() + timedelta(days=1))

        assert len(client.get("/api/patient/appointments", headers=auth_headers(patient)).json()["data"]) == 1
        assert len(client.get("/api/doctor/appointments", headers=auth_headers(medical_doctor)).json()["data"]) == 1

        end_assignment(db, assignment.assignment_id)
        assert client.get("/api/patient/appointments", headers=auth_headers(patient)).json()["data"] == []
        assert client.get("/api/doctor/appointments", headers=auth_headers(medical_doctor)).json()["data"] == []
