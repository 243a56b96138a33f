"""
Tests for application-level endpoints and error envelopes.
"""


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_root_redirects_to_docs(self, client):
        response = client.get("/", follow_redirects=False)
        assert response.status_code in (302, 307)
        assert response.headers["location"] == "/docs"

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data


class TestErrorEnvelopes:

    def test_unknown_route(self, client):
        response = client.get("/api/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Route not found"}

    def test_validation_error(self, client):
        response = client.post("/api/auth/login", json={"identifier": "x"})
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        assert {error["field"] for error in body["errors"]} >= {"password"}


class TestPublicStats:

    def test_stats_count_patients_and_facilities(self, client, make_patient, facility):
        make_patient()
        make_patient()
        response = client.get("/api/public/stats")
        assert response.status_code == 200
        assert response.json()["data"] == {"patients": 2, "facilities": 1, "security": 100}


class TestFacilities:

    def test_listing_requires_login(self, client, patient, auth_headers):
        assert client.get("/api/facilities").status_code == 401
        response = client.get("/api/facilities", headers=auth_headers(patient))
        assert response.status_code == 200
        assert len(response.json()["data"]) == 1

    def test_admin_creates_facility(self, client, admin, auth_headers):
        response = client.post(
            "/api/admin/facilities",
            json={"name": "Zomba Central Hospital", "city_town": "Zomba"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 201
        assert response.json()["data"]["hospital_id"].startswith("HO-")


class TestAdminAccounts:

    def test_create_patient_and_login(self, client, admin, facility, auth_headers):
        response = client.post(
            "/api/admin/patients",
            json={
                "name": "Chikondi Banda",
                "email": "Chikondi@HealthNet.mw",
                "phone": "0991234567",
                "password": "Welcome123",
                "facility_id": facility.hospital_id,
                "blood_type": "A+",
            },
            headers=auth_headers(admin),
        )
        assert response.status_code == 201
        patient_id = response.json()["data"]["patient_id"]
        assert patient_id.startswith("PT-")

        login = client.post("/api/auth/login", json={"identifier": patient_id, "password": "Welcome123"})
        assert login.status_code == 200
        assert login.json()["data"]["user"]["email"] == "chikondi@healthnet.mw"

    def test_duplicate_email(self, client, admin, patient, auth_headers):
        response = client.post(
            "/api/admin/patients",
            json={"name": "Copy", "email": patient.email, "phone": "0991234567", "password": "Welcome123"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 409

    def test_weak_password_rejected(self, client, admin, auth_headers):
        response = client.post(
            "/api/admin/patients",
            json={"name": "Weak", "email": "weak@healthnet.mw", "phone": "0991234567", "password": "short"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 400

    def test_doctor_requires_facility(self, client, admin, auth_headers):
        response = client.post(
            "/api/admin/doctors",
            json={
                "name": "Dr. No Facility",
                "email": "nofacility@healthnet.mw",
                "phone": "0881234567",
                "password": "Welcome123",
                "license_number": "LIC-9",
                "type": "MEDICAL_DOCTOR",
            },
            headers=auth_headers(admin),
        )
        assert response.status_code == 400

    def test_admin_actions_are_audited(self, client, admin, facility, auth_headers):
        headers = auth_headers(admin)
        client.post(
            "/api/admin/doctors",
            json={
                "name": "Dr. Audit",
                "email": "audit@healthnet.mw",
                "phone": "0881234567",
                "password": "Welcome123",
                "license_number": "LIC-10",
                "type": "LAB_TECHNICIAN",
                "facility_id": facility.hospital_id,
            },
            headers=headers,
        )
        logs = client.get("/api/admin/audit-logs?entity_type=DOCTOR", headers=headers).json()["data"]
        assert len(logs) == 1
        assert logs[0]["user_id"] == admin.user_id
        assert logs[0]["action_type"] == "CREATE"

    def test_admin_cannot_be_suspended(self, client, admin, auth_headers):
        response = client.patch(
            f"/api/admin/users/{admin.user_id}/status",
            json={"status": "INACTIVE"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 400

    def test_profile_update_syncs_emergency_card(self, client, db, admin, patient, auth_headers):
        response = client.put(
            f"/api/admin/users/{patient.user_id}",
            json={"name": "John K. Phiri"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200
        db.expire_all()
        assert patient.patient_profile.emergency_info.patient_name == "John K. Phiri"
