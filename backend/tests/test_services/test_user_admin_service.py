"""
Unit tests for UserAdminService

Author: Academia
"""
import pytest
from unittest.mock import MagicMock

from app.core.exceptions import ServiceError
from app.domain.user import UserCreate, UserUpdate
from app.repositories.profile_repository import ProfileRepository
from app.services.user_admin_service import UserAdminService


@pytest.fixture
def profiles():
    return MagicMock(spec=ProfileRepository)


@pytest.fixture
def service(mock_supabase, profiles):
    user = MagicMock(id="new-user")
    user.model_dump.return_value = {"id": "new-user", "email": "prof@example.com"}
    mock_supabase.auth.admin.create_user.return_value = MagicMock(user=user)
    return UserAdminService(mock_supabase, profiles)


class TestUserAdminService:

    def test_create_user_sets_profile_role(self, service, mock_supabase, profiles):
        # Act
        result = service.create_user(UserCreate(
            email="prof@example.com", password="s3cret!", full_name="Grace Hopper", role="professor"
        ))

        # Assert
        attributes = mock_supabase.auth.admin.create_user.call_args[0][0]
        assert attributes["email_confirm"] is True
        assert attributes["user_metadata"] == {"full_name": "Grace Hopper"}
        profiles.update.assert_called_once_with(
            "new-user", {"role": "professor", "full_name": "Grace Hopper"}, touch=False
        )
        assert result == {"success": True, "user": {"id": "new-user", "email": "prof@example.com"}}

    def test_create_user_rejects_unknown_role(self, service, mock_supabase):
        with pytest.raises(ServiceError, match="role must be one of"):
            service.create_user(UserCreate(email="x@example.com", password="pw", role="superuser"))

        mock_supabase.auth.admin.create_user.assert_not_called()

    def test_auth_errors_become_400(self, service, mock_supabase, profiles):
        mock_supabase.auth.admin.create_user.side_effect = Exception("User already registered")

        with pytest.raises(ServiceError) as exc:
            service.create_user(UserCreate(email="x@example.com", password="pw"))

        assert exc.value.status_code == 400
        assert exc.value.message == "User already registered"
        profiles.update.assert_not_called()

    def test_update_user(self, service, mock_supabase, profiles):
        result = service.update_user("user-1", UserUpdate(email="new@example.com", full_name="New Name"))

        mock_supabase.auth.admin.update_user_by_id.assert_called_once_with(
            "user-1", {"user_metadata": {"full_name": "New Name"}, "email": "new@example.com"}
        )
        profiles.update.assert_called_once_with("user-1", {"full_name": "New Name", "email": "new@example.com"})
        assert result == {"success": True}

    def test_update_without_email_keeps_it(self, service, mock_supabase, profiles):
        service.update_user("user-1", UserUpdate(full_name="Only Name"))

        attributes = mock_supabase.auth.admin.update_user_by_id.call_args[0][1]
        assert "email" not in attributes
        assert profiles.update.call_args[0][1] == {"full_name": "Only Name"}

    def test_update_without_full_name_keeps_it(self, service, mock_supabase, profiles):
        service.update_user("user-1", UserUpdate(email="new@example.com"))

        mock_supabase.auth.admin.update_user_by_id.assert_called_once_with("user-1", {"email": "new@example.com"})
        profiles.update.assert_called_once_with("user-1", {"email": "new@example.com"})

    def test_delete_user(self, service, mock_supabase):
        assert service.delete_user("user-1") == {"success": True}
        mock_supabase.auth.admin.delete_user.assert_called_once_with("user-1")
