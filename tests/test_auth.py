"""
Authentication and session invalidation tests.
"""

from healthnet.models.all_models import ProfileStatus
from healthnet.services import users as user_service


class TestLogin:
    """Login by business id or email."""

    def test_login_with_email(self, client, patient, password):
        response = client.post("/api/auth/login", json={"identifier": patient.email, "password": password})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["token"]
        assert body["data"]["user"]["user_id"] == patient.user_id
        assert body["data"]["user"]["profile"]["patient_id"] == patient.user_id

    def test_login_with_business_id_is_case_insensitive(self, client, medical_doctor, password):
        response = client.post(
            "/api/auth/login",
            json={"identifier": medical_doctor.user_id.lower(), "password": password}
        )
        assert response.status_code == 200
        assert response.json()["data"]["user"]["role"] == "DOCTOR"

    def test_wrong_password(self, client, patient):
        response = client.post("/api/auth/login", json={"identifier": patient.email, "password": "nope"})
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid user ID/email or password"}

    def test_suspended_user_cannot_login(self, client, db, patient, password):
        user_service.set_user_status(db, patient.user_id, ProfileStatus.INACTIVE)
        response = client.post("/api/auth/login", json={"identifier": patient.email, "password": password})
        assert response.status_code == 403


class TestTokenVersion:
    """Tokens die when the user's token_version moves on."""

    def test_new_login_invalidates_previous_token(self, client, patient, password):
        first = client.post("/api/auth/login", json={"identifier": patient.email, "password": password})
        old_token = first.json()["data"]["token"]
        assert client.get("/api/auth/me", headers={"Authorization": f"Bearer {old_token}"}).status_code == 200

        second = client.post("/api/auth/login", json={"identifier": patient.email, "password": password})
        new_token = second.json()["data"]["token"]

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {old_token}"})
        assert response.status_code == 401
        assert response.json()["message"] == "Session expired. Please login again."
        assert client.get("/api/auth/me", headers={"Authorization": f"Bearer {new_token}"}).status_code == 200

    def test_logout_invalidates_token(self, client, patient, auth_headers):
        headers = auth_headers(patient)
        assert client.post("/api/auth/logout", headers=headers).status_code == 200

        response = client.get("/api/auth/me", headers=headers)
        assert response.status_code == 401
        assert response.json()["message"] == "Session expired. Please login again."

    def test_password_change_invalidates_token(self, client, patient, auth_headers, password):
        headers = auth_headers(patient)
        response = client.put(
            "/api/auth/update-password",
            json={"current_password": password, "new_password": "NewPassw0rd"},
            headers=headers,
        )
        assert response.status_code == 200
        assert client.get("/api/auth/me", headers=headers).status_code == 401

        relogin = client.post("/api/auth/login", json={"identifier": patient.email, "password": "NewPassw0rd"})
        assert relogin.status_code == 200

    def test_password_change_requires_current_password(self, client, patient, auth_headers):
        response = client.put(
            "/api/auth/update-password",
            json={"current_password": "wrong", "new_password": "NewPassw0rd"},
            headers=auth_headers(patient),
        )
        assert response.status_code == 400

    def test_admin_password_reset_invalidates_token(self, client, admin, patient, auth_headers):
        patient_headers = auth_headers(patient)
        response = client.patch(
            f"/api/admin/users/{patient.user_id}/password",
            json={"password": "Reset12345"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200
        assert client.get("/api/auth/me", headers=patient_headers).status_code == 401


class TestAuthDependency:

    def test_missing_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["message"] == "No token provided"

    def test_garbage_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_suspended_user_token_is_rejected(self, client, db, patient, auth_headers):
        headers = auth_headers(patient)
        user_service.set_user_status(db, patient.user_id, ProfileStatus.INACTIVE)
        assert client.get("/api/auth/me", headers=headers).status_code == 403

    def test_role_guard(self, client, patient, auth_headers):
        response = client.get("/api/admin/patients", headers=auth_headers(patient))
        assert response.status_code == 403
        assert response.json()["success"] is False
