# ============================================================================
# Authentication Endpoints
# ============================================================================
"""
Email/password authentication.

Accounts created through the trial checkout have no password; the learner
sets one with /auth/set-password using the token returned by the trial call.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import EmailStr

from ebedmas.core.database import get_db
from ebedmas.core.security import get_current_active_user
from ebedmas.models.user import User
from ebedmas.schemas.user import (
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    SetPasswordRequest,
)
from ebedmas.services.payments.subscription_manager import SubscriptionManager
from ebedmas.services.users.user_service import UserService

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register")
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db)
):
    return await UserService(db).register(request.email, request.username, request.password)


@router.post("/login")
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    return await UserService(db).login(request.email, request.password)


@router.get("/check-email")
async def check_email(
    email: EmailStr,
    db: AsyncSession = Depends(get_db)
):
    """Used by the checkout form before starting a trial"""
    return {"exists": await UserService(db).email_exists(email)}


@router.get("/me")
async def get_me(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Current user with their current subscription, if any"""
    manager = SubscriptionManager(db)
    subscription = await manager.get_current_subscription(current_user.id)
    return {
        "user": UserService.to_dict(current_user),
        "subscription": manager.to_dict(subscription) if subscription else None,
    }


@router.put("/me")
async def update_me(
    request: ProfileUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    return await UserService(db).update_profile(current_user, username=request.username)


@router.post("/set-password")
async def set_password(
    request: SetPasswordRequest,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    return await UserService(db).set_password(current_user, request.password)


@router.post("/change-password")
async def change_password(
    request: ChangePasswordRequest,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    await UserService(db).change_password(current_user, request.current_password, request.new_password)
    return {"success": True, "message": "Password changed"}
