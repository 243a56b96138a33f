"""
Assignment gate tests: doctors reach patient data only through an
active assignment.
"""

import pytest

from healthnet.exceptions import Conflict, PermissionDenied
from healthnet.models.all_models import Assignment, Notification
from healthnet.services import assignments as assignment_service


class TestAssignmentGate:

    def test_unassigned_doctor_is_rejected(self, client, medical_doctor, patient, auth_headers):
        response = client.get(f"/api/doctor/patients/{patient.user_id}", headers=auth_headers(medical_doctor))
        assert response.status_code == 403
        assert response.json()["message"] == "You are not assigned to this patient"

    def test_assigned_doctor_is_allowed(self, client, medical_doctor, patient, assign, auth_headers):
        assign(medical_doctor, patient)
        response = client.get(f"/api/doctor/patients/{patient.user_id}", headers=auth_headers(medical_doctor))
        assert response.status_code == 200
        assert response.json()["data"]["patient_id"] == patient.user_id

    def test_ended_assignment_closes_the_gate(self, client, admin, medical_doctor, patient, assign, auth_headers):
        assignment = assign(medical_doctor, patient)
        response = client.delete(f"/api/admin/assignments/{assignment.assignment_id}", headers=auth_headers(admin))
        assert response.status_code == 200
        assert response.json()["data"]["is_active"] is False

        response = client.get(f"/api/doctor/patients/{patient.user_id}/records", headers=auth_headers(medical_doctor))
        assert response.status_code == 403

    def test_check_assignment_service(self, db, medical_doctor, patient, assign):
        doctor_id = medical_doctor.doctor_profile.doctor_id
        with pytest.raises(PermissionDenied):
            assignment_service.check_assignment(db, doctor_id, patient.user_id)

        assign(medical_doctor, patient)
        assert assignment_service.check_assignment(db, doctor_id, patient.user_id).is_active


class TestAssignmentAdmin:

    def test_create_assignment_via_api(self, client, db, admin, medical_doctor, patient, auth_headers):
        response = client.post(
            "/api/admin/assignments",
            json={"doctor_id": medical_doctor.user_id, "patient_id": patient.user_id, "notes": "Follow-up"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["assignment_id"].startswith("ASG-")
        assert data["is_active"] is True
        assert data["assigned_by"] == admin.user_id

    def test_duplicate_active_assignment_conflicts(self, client, admin, medical_doctor, patient, assign, auth_headers):
        assign(medical_doctor, patient)
        response = client.post(
            "/api/admin/assignments",
            json={"doctor_id": medical_doctor.user_id, "patient_id": patient.user_id},
            headers=auth_headers(admin),
        )
        assert response.status_code == 409

    def test_reassign_after_ending(self, db, admin, medical_doctor, patient, assign):
        first = assign(medical_doctor, patient)
        assignment_service.end_assignment(db, first.assignment_id)
        second = assign(medical_doctor, patient)

        assert second.assignment_id != first.assignment_id
        assert db.query(Assignment).count() == 2

    def test_duplicate_via_service_raises_conflict(self, db, admin, medical_doctor, patient, assign):
        assign(medical_doctor, patient)
        with pytest.raises(Conflict):
            assign(medical_doctor, patient)

    def test_both_parties_are_notified(self, db, medical_doctor, patient, assign):
        assign(medical_doctor, patient)
        db.expire_all()

        doctor_titles = [n.title for n in db.query(Notification).filter(Notification.user_id == medical_doctor.id)]
        patient_titles = [n.title for n in db.query(Notification).filter(Notification.user_id == patient.id)]
        assert doctor_titles == ["New Patient Assigned"]
        assert patient_titles == ["New Doctor Assigned"]

    def test_active_only_listing(self, client, db, admin, medical_doctor, lab_technician, patient, assign, auth_headers):
        ended = assign(medical_doctor, patient)
        assign(lab_technician, patient)
        assignment_service.end_assignment(db, ended.assignment_id)

        everything = client.get("/api/admin/assignments", headers=auth_headers(admin)).json()["data"]
        active = client.get("/api/admin/assignments?active_only=true", headers=auth_headers(admin)).json()["data"]
        assert len(everything) == 2
        assert [a["doctor_id"] for a in active] == [lab_technician.user_id]


class TestDoctorPatientList:

    def test_lists_only_active_assignments(self, client, db, medical_doctor, make_patient, assign, auth_headers):
        kept = make_patient(name="Kept Patient")
        dropped = make_patient(name="Dropped Patient")
        assign(medical_doctor, kept)
        assignment_service.end_assignment(db, assign(medical_doctor, dropped).assignment_id)

        response = client.get("/api/doctor/patients", headers=auth_headers(medical_doctor))
        assert response.status_code == 200
        rows = response.json()["data"]
        assert [row["patient"]["patient_id"] for row in rows] == [kept.user_id]
        assert rows[0]["diagnosis_count"] == 0
