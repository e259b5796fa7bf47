"""
API tests for admin user management and the status endpoints

Author: Academia
"""
import pytest
from unittest.mock import MagicMock

from app.api.users import get_user_admin_service
from app.main import app
from app.services.user_admin_service import UserAdminService


@pytest.fixture
def admin_service():
    service = MagicMock(spec=UserAdminService)
    service.create_user.return_value = {"success": True, "user": {"id": "new-user"}}
    service.update_user.return_value = {"success": True}
    service.delete_user.return_value = {"success": True}
    app.dependency_overrides[get_user_admin_service] = lambda: service
    return service


class TestUsersEndpoints:

    def test_admin_creates_user(self, client, mock_supabase, set_query_result, admin_service):
        set_query_result(mock_supabase, [{"role": "admin"}])

        response = client.post("/api/v1/users/", json={
            "email": "prof@example.com", "password": "s3cret!", "full_name": "Grace", "role": "professor",
        })

        assert response.status_code == 200
        assert response.json()["success"] is True
        data = admin_service.create_user.call_args[0][0]
        assert data.role == "professor"

    def test_non_admin_rejected(self, client, mock_supabase, set_query_result, admin_service):
        set_query_result(mock_supabase, [{"role": "professor"}])

        response = client.delete("/api/v1/users/user-2")

        assert response.status_code == 403
        assert response.json() == {"error": "Unauthorized: Admin access required"}
        admin_service.delete_user.assert_not_called()

    def test_caller_without_profile_rejected(self, client, mock_supabase, set_query_result, admin_service):
        set_query_result(mock_supabase, [])

        response = client.delete("/api/v1/users/user-2")

        assert response.status_code == 403
        assert response.json() == {"error": "Unauthorized: Admin access required"}
        admin_service.delete_user.assert_not_called()

    def test_update_and_delete(self, client, mock_supabase, set_query_result, admin_service):
        set_query_result(mock_supabase, [{"role": "admin"}])

        assert client.put("/api/v1/users/user-2", json={"full_name": "New"}).status_code == 200
        assert client.delete("/api/v1/users/user-2").status_code == 200

        admin_service.update_user.assert_called_once()
        assert admin_service.update_user.call_args[0][0] == "user-2"
        admin_service.delete_user.assert_called_once_with("user-2")

    def test_missing_password_is_validation_error(self, client, mock_supabase, set_query_result, admin_service):
        set_query_result(mock_supabase, [{"role": "admin"}])

        response = client.post("/api/v1/users/", json={"email": "x@example.com"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation failed"
        assert any("password" in message for message in body["details"])


class TestStatusEndpoints:

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "online"

    def test_health_reports_integrations(self, client, monkeypatch):
        monkeypatch.setattr("app.core.config.settings.SUPABASE_URL", "https://project.supabase.test")
        monkeypatch.setattr("app.core.config.settings.SUPABASE_SERVICE_ROLE_KEY", "service-role")
        monkeypatch.setattr("app.core.config.settings.STRIPE_SECRET_KEY", "")

        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["integrations"]["supabase"] is True
        assert body["integrations"]["stripe"] is False
