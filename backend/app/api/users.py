"""
User management API endpoints (admin only)
"""
from fastapi import APIRouter, Depends
from supabase import Client

from app.core.auth import AuthenticatedUser, require_admin
from app.core.database import get_supabase
from app.domain.user import UserCreate, UserUpdate
from app.repositories.profile_repository import ProfileRepository
from app.services.user_admin_service import UserAdminService


router = APIRouter()


def get_user_admin_service(sb: Client = Depends(get_supabase)) -> UserAdminService:
    return UserAdminService(sb, ProfileRepository(sb))


@router.post("/")
async def create_user(
    data: UserCreate,
    admin: AuthenticatedUser = Depends(require_admin),
    service: UserAdminService = Depends(get_user_admin_service)
):
    """Create a confirmed user and set their profile role"""
    return service.create_user(data)


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    data: UserUpdate,
    admin: AuthenticatedUser = Depends(require_admin),
    service: UserAdminService = Depends(get_user_admin_service)
):
    """Update a user's email and full name"""
    return service.update_user(user_id, data)


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    admin: AuthenticatedUser = Depends(require_admin),
    service: UserAdminService = Depends(get_user_admin_service)
):
    """Delete a user"""
    return service.delete_user(user_id)
