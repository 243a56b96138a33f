"""
Public emergency search by patient id.
"""

from healthnet.models.all_models import ProfileStatus
from healthnet.services import allergies as allergy_service
from healthnet.services import diagnoses as diagnosis_service
from healthnet.services import users as user_service


class TestEmergencySearch:

    def test_unknown_patient(self, client):
        response = client.get("/api/qr/emergency-search/PT-DOESNOTEXI")
        assert response.status_code == 404
        assert response.json()["message"] == "Patient registry ID not found"

    def test_inactive_patient_is_restricted(self, client, db, patient):
        user_service.set_user_status(db, patient.user_id, ProfileStatus.INACTIVE)
        response = client.get(f"/api/qr/emergency-search/{patient.user_id}")
        assert response.status_code == 403
        assert response.json()["message"] == "Patient record is currently restricted"

    def test_medical_info_is_restricted_by_default(self, client, patient):
        response = client.get(f"/api/qr/emergency-search/{patient.user_id}")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["blood_type"] == "Restricted"
        assert data["disability"] == "Restricted"
        assert data["emergency_info"]["blood_type"] == "Restricted"
        assert data["emergency_info"]["disability_info"] == "Restricted"
        assert data["emergency_info"]["known_allergies"] == "Restricted"
        assert data["diagnoses"] == []
        assert data["lab_results"] == []

    def test_visibility_flags_reveal_fields(self, client, patient, auth_headers):
        headers = auth_headers(patient)
        for field in ("blood_type", "disability"):
            response = client.patch(
                "/api/patient/medical-info/visibility",
                json={"field": field, "visible": True},
                headers=headers,
            )
            assert response.status_code == 200

        data = client.get(f"/api/qr/emergency-search/{patient.user_id}").json()["data"]
        assert data["blood_type"] == "O+"
        assert data["disability"] == "Hearing impairment"
        assert data["patient"] == {"name": "John Phiri", "gender": None, "dob": "1990-01-01"}

    def test_invalid_visibility_field(self, client, patient, auth_headers):
        response = client.patch(
            "/api/patient/medical-info/visibility",
            json={"field": "password", "visible": True},
            headers=auth_headers(patient),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid medical info field"

    def test_only_visible_records_are_projected(self, client, db, medical_doctor, patient, assign, auth_headers):
        assign(medical_doctor, patient)
        doctor = medical_doctor.doctor_profile
        shown = diagnosis_service.create_diagnosis(
            db, doctor, patient.user_id, {"disease_name": "Asthma", "symptoms": "Wheezing"}
        )
        diagnosis_service.create_diagnosis(db, doctor, patient.user_id, {"disease_name": "Flu", "symptoms": "Fever"})

        response = client.patch(
            f"/api/patient/diagnoses/{shown.diagnosis_id}/visibility",
            json={"visible": True},
            headers=auth_headers(patient),
        )
        assert response.status_code == 200

        data = client.get(f"/api/qr/emergency-search/{patient.user_id}").json()["data"]
        assert len(data["diagnoses"]) == 1
        assert set(data["diagnoses"][0]) == {"disease_name", "created_at", "status"}
        assert data["diagnoses"][0]["disease_name"] == "Asthma"

    def test_visible_allergies_are_listed(self, client, db, patient, auth_headers):
        allergy_service.add_allergy(db, patient.user_id, "Penicillin")
        hidden = allergy_service.add_allergy(db, patient.user_id, "Peanuts")
        allergy_service.set_allergy_visibility(db, patient.user_id, hidden.id, False)
        client.patch(
            "/api/patient/medical-info/visibility",
            json={"field": "allergies", "visible": True},
            headers=auth_headers(patient),
        )

        data = client.get(f"/api/qr/emergency-search/{patient.user_id}").json()["data"]
        assert data["emergency_info"]["known_allergies"] == "Penicillin"
