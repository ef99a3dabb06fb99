# ============================================================================
# Admin API Endpoints - Users
# ============================================================================
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from uuid import UUID

from ebedmas.api.deps import require_admin, require_super_admin
from ebedmas.core.database import get_db
from ebedmas.models.user import User, UserRole
from ebedmas.schemas.user import AdminStatusUpdate, AdminUpdate, CreateAdminRequest, RoleUpdate
from ebedmas.services.users.user_service import UserService

router = APIRouter(prefix="/admin", tags=["admin-users"])


@router.get("/users")
async def list_users(
    role: Optional[UserRole] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    users = await UserService(db).list_users(role=role)
    return {"users": users, "total": len(users)}


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_admin(
    request: CreateAdminRequest,
    admin: User = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db)
):
    return await UserService(db).create_admin(admin, request.email, request.username, request.password)


@router.put("/users/{user_id}/role")
async def update_user_role(
    user_id: UUID,
    request: RoleUpdate,
    admin: User = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db)
):
    return await UserService(db).set_role(admin, user_id, request.role)


@router.get("/admins")
async def list_admins(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    service = UserService(db)
    admins = await service.list_users(role=UserRole.ADMIN) + await service.list_users(role=UserRole.SUPER_ADMIN)
    return {"admins": admins, "total": len(admins)}


@router.put("/admins/{admin_id}")
async def update_admin(
    admin_id: UUID,
    request: AdminUpdate,
    admin: User = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db)
):
    return await UserService(db).update_admin(admin, admin_id, **request.model_dump(exclude_unset=True))


@router.delete("/admins/{admin_id}")
async def delete_admin(
    admin_id: UUID,
    admin: User = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db)
):
    await UserService(db).delete_admin(admin, admin_id)
    return {"message": "Administrator deleted successfully"}


@router.put("/admins/{admin_id}/status")
async def update_admin_status(
    admin_id: UUID,
    request: AdminStatusUpdate,
    admin: User = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db)
):
    return await UserService(db).set_admin_active(admin, admin_id, request.status == "active")
