"""
User Admin Service
Creates, updates and deletes platform users through the Supabase admin API

Author: Academia
"""
import logging
from typing import Any, Dict

from supabase import Client

from app.core.exceptions import ServiceError
from app.domain.user import ROLES, UserCreate, UserUpdate
from app.repositories.profile_repository import ProfileRepository


logger = logging.getLogger(__name__)


def _serialize_user(user: Any) -> Dict[str, Any]:
    if user is None:
        return {}
    if hasattr(user, "model_dump"):
        return user.model_dump(mode="json")
    return dict(user)


class UserAdminService:

    def __init__(self, sb: Client, profiles: ProfileRepository):
        self.sb = sb
        self.profiles = profiles

    def create_user(self, data: UserCreate) -> Dict[str, Any]:
        if data.role not in ROLES:
            raise ServiceError(f"role must be one of: {', '.join(ROLES)}")

        try:
            response = self.sb.auth.admin.create_user({
                "email": data.email,
                "password": data.password,
                "email_confirm": True,
                "user_metadata": {"full_name": data.full_name},
            })
        except Exception as e:
            logger.error(f"Failed to create user {data.email}: {e}")
            raise ServiceError(str(e))

        user = getattr(response, "user", None)
        if user is not None:
            # profiles row is created by a trigger on auth.users
            self.profiles.update(str(user.id), {"role": data.role, "full_name": data.full_name}, touch=False)
            logger.info(f"Created user {user.id} with role {data.role}")

        return {"success": True, "user": _serialize_user(user)}

    def update_user(self, user_id: str, data: UserUpdate) -> Dict[str, Any]:
        attributes: Dict[str, Any] = {}
        if data.full_name is not None:
            attributes["user_metadata"] = {"full_name": data.full_name}
        if data.email:
            attributes["email"] = data.email

        try:
            self.sb.auth.admin.update_user_by_id(user_id, attributes)
        except Exception as e:
            logger.error(f"Failed to update user {user_id}: {e}")
            raise ServiceError(str(e))

        profile_fields: Dict[str, Any] = {}
        if data.full_name is not None:
            profile_fields["full_name"] = data.full_name
        if data.email:
            profile_fields["email"] = data.email
        self.profiles.update(user_id, profile_fields)
        logger.info(f"Updated user {user_id}")
        return {"success": True}

    def delete_user(self, user_id: str) -> Dict[str, Any]:
        try:
            self.sb.auth.admin.delete_user(user_id)
        except Exception as e:
            logger.error(f"Failed to delete user {user_id}: {e}")
            raise ServiceError(str(e))

        logger.info(f"Deleted user {user_id}")
        return {"success": True}
