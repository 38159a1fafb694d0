"""
Тесты для API
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from api_server import create_app
from smartcert.database import CertificateRepository
from smartcert.exceptions import ConflictError, StorageError


ISSUE_PAYLOAD = {
    "recipientName": "Aisha Bello",
    "email": "csc045@unijos.edu",
    "course": "Computer Science",
    "matricNo": "CSC/2017/045",
    "issueDate": "2024-06-01",
}


class TestCertificateAPI:
    """Тесты для API сертификатов"""

    @pytest.fixture
    def client(self, settings, db_manager):
        """Тестовый клиент"""
        with TestClient(create_app(settings, db_manager)) as client:
            yield client

    @pytest.fixture
    def auth_headers(self, services, issuer):
        """Заголовки с токеном основного издателя"""
        return {"Authorization": f"Bearer {services.token_manager.issue(issuer)}"}

    @pytest.fixture
    def issued(self, client, auth_headers):
        response = client.post("/api/certificates", json=ISSUE_PAYLOAD, headers=auth_headers)
        assert response.status_code == 201
        return response.json()["data"]

    def test_issue_requires_session(self, client):
        """Тест выпуска без токена"""
        response = client.post("/api/certificates", json=ISSUE_PAYLOAD)

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Unauthorized"}

    def test_issue_with_bad_token(self, client):
        response = client.post("/api/certificates", json=ISSUE_PAYLOAD,
                               headers={"Authorization": "Bearer not-a-token"})

        assert response.status_code == 401

    def test_issue_certificate_success(self, client, auth_headers):
        """Тест успешного выпуска сертификата"""
        response = client.post("/api/certificates", json=ISSUE_PAYLOAD, headers=auth_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert len(data["certificateId"]) == 8
        assert len(data["hash"]) == 64
        assert data["recipientName"] == "Aisha Bello"
        assert data["matricNo"] == "CSC/2017/045"
        assert data["status"] == "ISSUED"

    def test_issue_validation_error(self, client, auth_headers):
        """Тест ошибки валидации при выпуске"""
        payload = dict(ISSUE_PAYLOAD, course="")
        response = client.post("/api/certificates", json=payload, headers=auth_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "course" in body["message"]

    def test_issue_echoes_submitted_email(self, client, auth_headers):
        """Тест возврата email в исходном регистре"""
        payload = dict(ISSUE_PAYLOAD, email="Aisha.Bello@UniJos.edu")
        response = client.post("/api/certificates", json=payload, headers=auth_headers)

        assert response.status_code == 201
        assert response.json()["data"]["email"] == "Aisha.Bello@UniJos.edu"

        response = client.get("/api/certificates", params={"search": "aisha.bello@unijos"}, headers=auth_headers)
        assert response.json()["data"]["pagination"]["total"] == 1

    def test_issue_storage_failure_is_hidden(self, client, auth_headers):
        """Тест скрытия деталей ошибки хранилища"""
        error = StorageError("psql: host db.internal down")
        with patch.object(CertificateRepository, "create", side_effect=error):
            response = client.post("/api/certificates", json=ISSUE_PAYLOAD, headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Internal server error"}
        assert "db.internal" not in response.text

    def test_issue_repeated_collision_is_hidden(self, client, auth_headers):
        """Тест повторной коллизии кода или хеша"""
        error = ConflictError("duplicate key uq_certificates_verification_hash", column="verification_hash")
        with patch.object(CertificateRepository, "create", side_effect=error) as create:
            response = client.post("/api/certificates", json=ISSUE_PAYLOAD, headers=auth_headers)

        assert create.call_count == 2
        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Internal server error"}
        assert "verification_hash" not in response.text

    def test_verify_by_hash(self, client, issued):
        """Тест публичной проверки по хешу"""
        response = client.post("/api/verification", json={"certificateId": issued["hash"]})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["isValid"] is True
        assert body["message"] == "Certificate verified successfully"
        assert body["certificateData"]["recipientName"] == "Aisha Bello"
        assert body["certificateData"]["graduationYear"] == "2024"
        assert body["certificateData"]["university"] == "University of Jos"

    def test_verify_by_code(self, client, issued):
        response = client.post("/api/verification", json={"certificateId": issued["certificateId"]})

        assert response.json()["isValid"] is True

    def test_verify_not_found(self, client):
        """Тест проверки неизвестного хеша"""
        response = client.post("/api/verification", json={"certificateId": "not-a-real-hash"})

        assert response.status_code == 200
        assert response.json() == {
            "success": False,
            "isValid": False,
            "verdict": "NOT_FOUND",
            "message": "Certificate not found or invalid hash",
        }

    def test_verify_missing_candidate(self, client):
        response = client.post("/api/verification", json={})

        assert response.status_code == 400
        assert response.json()["message"] == "Certificate ID is required"

    def test_verify_revoked(self, client, auth_headers, issued):
        """Тест проверки отозванного сертификата"""
        response = client.patch(f"/api/certificates/{issued['id']}/status",
                                json={"status": "REVOKED"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Certificate status updated"

        response = client.post("/api/verification", json={"certificateId": issued["hash"]})

        body = response.json()
        assert body["isValid"] is False
        assert body["message"] == "Certificate is not valid (not issued)"
        assert "certificateData" not in body

    def test_verify_expired(self, client, auth_headers):
        yesterday = (datetime.now(timezone.utc).date() - timedelta(days=1)).isoformat()
        issued = client.post("/api/certificates", json=dict(ISSUE_PAYLOAD, expiryDate=yesterday),
                             headers=auth_headers).json()["data"]

        response = client.post("/api/verification", json={"certificateId": issued["hash"]})

        assert response.json()["message"] == "Certificate has expired"

    def test_status_change_rules(self, client, auth_headers, issued):
        """Тест недопустимых значений и переходов статуса"""
        url = f"/api/certificates/{issued['id']}/status"

        assert client.patch(url, json={"status": "ARCHIVED"}, headers=auth_headers).status_code == 400
        assert client.patch(url, json={}, headers=auth_headers).status_code == 400
        assert client.patch(url, json={"status": "PENDING"}, headers=auth_headers).status_code == 409

    def test_get_certificate_and_history(self, client, auth_headers, issued):
        response = client.get(f"/api/certificates/{issued['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"]["certificateId"] == issued["certificateId"]

        response = client.get(f"/api/certificates/{issued['id']}/history", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"][0]["action"] == "created"

    def test_other_issuer_cannot_see_certificate(self, client, services, other_issuer, issued):
        """Тест изоляции издателей"""
        headers = {"Authorization": f"Bearer {services.token_manager.issue(other_issuer)}"}

        response = client.get(f"/api/certificates/{issued['id']}", headers=headers)

        assert response.status_code == 404
        assert response.json()["message"] == "Certificate not found"

    def test_list_certificates(self, client, auth_headers):
        """Тест списка с пагинацией и фильтрами"""
        for _ in range(3):
            client.post("/api/certificates", json=ISSUE_PAYLOAD, headers=auth_headers)

        response = client.get("/api/certificates", params={"page": 1, "limit": 2}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data["certificates"]) == 2
        assert data["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}

        response = client.get("/api/certificates", params={"status": "REVOKED"}, headers=auth_headers)
        assert response.json()["data"]["pagination"]["total"] == 0

        response = client.get("/api/certificates", params={"search": "computer"}, headers=auth_headers)
        assert response.json()["data"]["pagination"]["total"] == 3

    def test_list_bad_limit(self, client, auth_headers):
        response = client.get("/api/certificates", params={"limit": 1000}, headers=auth_headers)

        assert response.status_code == 400

    def test_dashboard_stats(self, client, auth_headers, issued):
        response = client.get("/api/dashboard/stats", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalCertificates"] == 1
        assert data["issuedCertificates"] == 1
        assert data["todayIssued"] == 1

    def test_login(self, client, issuer):
        """Тест входа и использования выданного токена"""
        response = client.post("/api/auth/login", json={"email": "admin@unijos.edu", "password": "admin123"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["tokenType"] == "bearer"
        assert data["user"]["id"] == issuer.user_id

        headers = {"Authorization": f"Bearer {data['accessToken']}"}
        assert client.get("/api/dashboard/stats", headers=headers).status_code == 200

    def test_login_failure(self, client, issuer):
        response = client.post("/api/auth/login", json={"email": "admin@unijos.edu", "password": "nope"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    def test_profile(self, client, auth_headers, issuer, other_issuer):
        """Тест чтения и обновления профиля"""
        response = client.get("/api/user/profile", params={"userId": issuer.user_id}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"]["email"] == "admin@unijos.edu"

        response = client.get("/api/user/profile", params={"userId": other_issuer.user_id}, headers=auth_headers)
        assert response.status_code == 403

        response = client.put("/api/user/profile", params={"userId": issuer.user_id}, headers=auth_headers,
                              json={"name": "Dr. Admin", "email": "admin@unijos.edu"})
        assert response.status_code == 200
        assert response.json()["message"] == "Profile updated successfully"
        assert response.json()["data"]["name"] == "Dr. Admin"

    def test_health_check(self, client):
        """Тест проверки здоровья"""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["database"]["status"] == "healthy"
