"""
Diagnosis workflow tests.
"""

from healthnet.models.all_models import DoctorType, Notification


class TestCreateDiagnosis:

    def test_medical_doctor_creates_diagnosis(self, client, db, medical_doctor, lab_technician, patient, assign, auth_headers):
        assign(medical_doctor, patient)
        assign(lab_technician, patient)

        response = client.post(
            f"/api/doctor/patients/{patient.user_id}/diagnoses",
            json={"disease_name": "Flu", "symptoms": "Fever, cough"},
            headers=auth_headers(medical_doctor),
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["diagnosis_id"].startswith("DIAG-")
        assert data["status"] == "PENDING"
        assert data["emergency_visible"] is False
        assert data["completed_at"] is None

        db.expire_all()
        tech_titles = [n.title for n in db.query(Notification).filter(Notification.user_id == lab_technician.id)]
        patient_titles = [n.title for n in db.query(Notification).filter(Notification.user_id == patient.id)]
        assert "New Diagnosis Created" in tech_titles
        assert "New Clinical Diagnosis" in patient_titles

    def test_lab_technician_cannot_create(self, client, lab_technician, patient, assign, auth_headers):
        assign(lab_technician, patient)
        response = client.post(
            f"/api/doctor/patients/{patient.user_id}/diagnoses",
            json={"disease_name": "Flu", "symptoms": "Fever"},
            headers=auth_headers(lab_technician),
        )
        assert response.status_code == 403

    def test_unassigned_doctor_cannot_create(self, client, medical_doctor, patient, auth_headers):
        response = client.post(
            f"/api/doctor/patients/{patient.user_id}/diagnoses",
            json={"disease_name": "Flu", "symptoms": "Fever"},
            headers=auth_headers(medical_doctor),
        )
        assert response.status_code == 403
        assert response.json()["message"] == "You are not assigned to this patient"

    def test_missing_fields(self, client, medical_doctor, patient, assign, auth_headers):
        assign(medical_doctor, patient)
        response = client.post(
            f"/api/doctor/patients/{patient.user_id}/diagnoses",
            json={"disease_name": "Flu"},
            headers=auth_headers(medical_doctor),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "disease_name and symptoms are required"

    def test_created_as_completed(self, client, medical_doctor, patient, assign, auth_headers):
        assign(medical_doctor, patient)
        response = client.post(
            f"/api/doctor/patients/{patient.user_id}/diagnoses",
            json={"diagnosed_disease": "Malaria", "symptoms": "Chills", "status": "COMPLETED"},
            headers=auth_headers(medical_doctor),
        )
        data = response.json()["data"]
        assert data["disease_name"] == "Malaria"
        assert data["status"] == "COMPLETED"
        assert data["completed_at"] is not None


class TestDiagnosisLifecycle:

    def create(self, client, headers, patient_id):
        response = client.post(
            f"/api/doctor/patients/{patient_id}/diagnoses",
            json={"disease_name": "Flu", "symptoms": "Fever"},
            headers=headers,
        )
        return response.json()["data"]["diagnosis_id"]

    def test_edit_then_complete(self, client, medical_doctor, patient, assign, auth_headers):
        assign(medical_doctor, patient)
        headers = auth_headers(medical_doctor)
        diagnosis_id = self.create(client, headers, patient.user_id)

        response = client.patch(
            f"/api/doctor/diagnoses/{diagnosis_id}",
            json={"medications": "Paracetamol"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["medications"] == "Paracetamol"

        response = client.patch(f"/api/doctor/diagnoses/{diagnosis_id}/complete", headers=headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "COMPLETED"

        response = client.patch(f"/api/doctor/diagnoses/{diagnosis_id}/complete", headers=headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Diagnosis is already completed"

        response = client.patch(f"/api/doctor/diagnoses/{diagnosis_id}", json={"conclusion": "x"}, headers=headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Can only edit diagnoses with PENDING status"

    def test_doctor_listing_follows_assignments(self, client, make_doctor, patient, assign, auth_headers):
        author = make_doctor(DoctorType.MEDICAL_DOCTOR)
        colleague = make_doctor(DoctorType.MEDICAL_DOCTOR)
        assign(author, patient)
        self.create(client, auth_headers(author), patient.user_id)

        assert client.get("/api/doctor/diagnoses", headers=auth_headers(colleague)).json()["data"] == []

        assign(colleague, patient)
        listed = client.get("/api/doctor/diagnoses", headers=auth_headers(colleague)).json()["data"]
        assert len(listed) == 1

    def test_patient_sees_own_diagnoses(self, client, medical_doctor, patient, make_patient, assign, auth_headers):
        assign(medical_doctor, patient)
        diagnosis_id = self.create(client, auth_headers(medical_doctor), patient.user_id)

        mine = client.get("/api/patient/diagnoses", headers=auth_headers(patient)).json()["data"]
        assert [d["diagnosis_id"] for d in mine] == [diagnosis_id]

        stranger = make_patient(name="Someone Else")
        response = client.get(f"/api/patient/diagnoses/{diagnosis_id}", headers=auth_headers(stranger))
        assert response.status_code == 404
