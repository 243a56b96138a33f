"""
In-app notification inbox.
"""

import uuid

from healthnet.models.all_models import NotificationType
from healthnet.services import notifications as notification_service


class TestInbox:

    def test_list_and_unread_count(self, client, db, patient, auth_headers):
        for n in range(3):
            notification_service.create_notification(db, patient.id, NotificationType.SYSTEM, f"Notice {n}", "Hello")

        response = client.get("/api/notifications", headers=auth_headers(patient))
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["unread_count"] == 3
        assert len(data["notifications"]) == 3

    def test_list_is_capped(self, client, db, patient, auth_headers):
        for n in range(notification_service.NOTIFICATION_LIST_LIMIT + 5):
            notification_service.create_notification(db, patient.id, NotificationType.SYSTEM, f"Notice {n}", "Hello")

        data = client.get("/api/notifications", headers=auth_headers(patient)).json()["data"]
        assert len(data["notifications"]) == notification_service.NOTIFICATION_LIST_LIMIT
        assert data["unread_count"] == notification_service.NOTIFICATION_LIST_LIMIT + 5

    def test_mark_one_read(self, client, db, patient, auth_headers):
        notification = notification_service.create_notification(db, patient.id, NotificationType.SYSTEM, "Notice", "Hello")

        response = client.patch(f"/api/notifications/{notification.id}/read", headers=auth_headers(patient))
        assert response.status_code == 200
        assert response.json()["data"]["is_read"] is True
        assert notification_service.unread_count(db, patient) == 0

    def test_cannot_mark_someone_elses(self, client, db, patient, medical_doctor, auth_headers):
        notification = notification_service.create_notification(db, patient.id, NotificationType.SYSTEM, "Notice", "Hello")
        response = client.patch(f"/api/notifications/{notification.id}/read", headers=auth_headers(medical_doctor))
        assert response.status_code == 404

    def test_unknown_notification(self, client, patient, auth_headers):
        response = client.patch(f"/api/notifications/{uuid.uuid4()}/read", headers=auth_headers(patient))
        assert response.status_code == 404

    def test_mark_all_read(self, client, db, patient, auth_headers):
        for n in range(2):
            notification_service.create_notification(db, patient.id, NotificationType.SYSTEM, f"Notice {n}", "Hello")

        response = client.patch("/api/notifications/read-all", headers=auth_headers(patient))
        assert response.status_code == 200
        assert response.json()["data"]["updated"] == 2
        assert notification_service.unread_count(db, patient) == 0

    def test_requires_authentication(self, client):
        assert client.get("/api/notifications").status_code == 401


class TestFanOut:

    def test_notify_assigned_doctors_filters_by_type(self, db, medical_doctor, lab_technician, patient, assign):
        assign(medical_doctor, patient)
        assign(lab_technician, patient)
        before = notification_service.unread_count(db, medical_doctor)

        notification_service.notify_assigned_doctors(
            patient.user_id, NotificationType.LAB_RESULT, "Lab", "Lab result ready", doctor_type=lab_technician.doctor_profile.type
        )

        assert notification_service.unread_count(db, medical_doctor) == before
        titles = [n.title for n in notification_service.list_notifications(db, lab_technician)]
        assert "Lab" in titles

