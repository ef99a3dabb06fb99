# ============================================================================
# User Account Service
# ============================================================================
from typing import Optional, Dict, List, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select
from uuid import UUID
import logging

from ebedmas.config import get_settings
from ebedmas.core.clock import utcnow
from ebedmas.core.exceptions import (
    AuthenticationFailed,
    EbedmasException,
    PermissionDenied,
)
from ebedmas.core.security import create_user_token, get_password_hash, verify_password
from ebedmas.models.user import ADMIN_ROLES, User, UserRole

settings = get_settings()
logger = logging.getLogger(__name__)

class EmailAlreadyRegistered(EbedmasException):
    def __init__(self, email: str):
        super().__init__(
            detail=f"Email already registered: {email}",
            status_code=400,
            error_code="EMAIL_ALREADY_REGISTERED"
        )

class UserNotFound(EbedmasException):
    def __init__(self, user_id):
        super().__init__(
            detail=f"User not found: {user_id}",
            status_code=404,
            error_code="USER_NOT_FOUND"
        )

class CannotModifySelf(EbedmasException):
    def __init__(self, action: str):
        super().__init__(
            detail=f"Cannot {action} your own account",
            status_code=400,
            error_code="CANNOT_MODIFY_SELF"
        )

class UserService:
    """Registration, login and password/role management"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        return await self.find_by_email(email) is not None

    async def _create(self, email: str, username: str, password: str, role: UserRole) -> User:
        if await self.email_exists(email):
            raise EmailAlreadyRegistered(email)

        user = User(
            email=email,
            username=username,
            password_hash=get_password_hash(password),
            role=role,
            is_active=True
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise EmailAlreadyRegistered(email)
        await self.db.refresh(user)
        return user

    async def register(self, email: str, username: str, password: str) -> Dict[str, Any]:
        user = await self._create(email, username, password, UserRole.USER)
        logger.info(f"Registered user {user.email}")
        return {"token": create_user_token(user), "user": self.to_dict(user)}

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        user = await self.find_by_email(email)
        if not user or not user.password_hash or not verify_password(password, user.password_hash):
            raise AuthenticationFailed()
        if not user.is_active:
            raise AuthenticationFailed("Account is disabled")

        user.last_login = utcnow()
        await self.db.commit()
        return {"token": create_user_token(user), "user": self.to_dict(user)}

    async def set_password(self, user: User, password: str) -> Dict[str, Any]:
        """First password for an account created through a trial; promotes trial -> user"""
        if user.password_hash:
            raise EbedmasException("Password already set; use change-password", 400, "PASSWORD_ALREADY_SET")

        user.password_hash = get_password_hash(password)
        if user.role == UserRole.TRIAL:
            user.role = UserRole.USER
        await self.db.commit()
        logger.info(f"Password set for {user.email}")
        return {"token": create_user_token(user), "user": self.to_dict(user)}

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not user.password_hash or not verify_password(current_password, user.password_hash):
            raise AuthenticationFailed("Current password is incorrect")
        user.password_hash = get_password_hash(new_password)
        await self.db.commit()

    async def update_profile(self, user: User, username: Optional[str] = None) -> Dict[str, Any]:
        if username:
            user.username = username
        await self.db.commit()
        return self.to_dict(user)

    # ==================== Admin management ====================

    async def create_admin(self, actor: User, email: str, username: str, password: str) -> Dict[str, Any]:
        if actor.role != UserRole.SUPER_ADMIN:
            raise PermissionDenied("Only a super admin can create admins")
        user = await self._create(email, username, password, UserRole.ADMIN)
        logger.info(f"{actor.email} created admin {user.email}")
        return self.to_dict(user)

    async def set_role(self, actor: User, user_id: UUID, role: UserRole) -> Dict[str, Any]:
        if actor.role != UserRole.SUPER_ADMIN:
            raise PermissionDenied("Only a super admin can change roles")
        user = await self.db.get(User, user_id)
        if not user:
            raise UserNotFound(user_id)
        user.role = role
        await self.db.commit()
        logger.info(f"{actor.email} set role of {user.email} to {role.value}")
        return self.to_dict(user)

    async def _get_admin(self, admin_id: UUID) -> User:
        user = await self.db.get(User, admin_id)
        if not user or not user.is_admin:
            raise UserNotFound(admin_id)
        return user

    async def update_admin(
        self,
        actor: User,
        admin_id: UUID,
        email: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        role: Optional[UserRole] = None
    ) -> Dict[str, Any]:
        if actor.role != UserRole.SUPER_ADMIN:
            raise PermissionDenied("Only a super admin can update admin details")
        if role is not None and UserRole(role) not in ADMIN_ROLES:
            raise EbedmasException(f"Invalid admin role: {role}", 400, "INVALID_ROLE")

        admin = await self._get_admin(admin_id)
        if email and email != admin.email:
            if await self.email_exists(email):
                raise EmailAlreadyRegistered(email)
            admin.email = email
        if username:
            admin.username = username
        if password:
            admin.password_hash = get_password_hash(password)
        if role is not None:
            admin.role = UserRole(role)

        await self.db.commit()
        await self.db.refresh(admin)
        logger.info(f"{actor.email} updated admin {admin.email}")
        return self.to_dict(admin)

    async def delete_admin(self, actor: User, admin_id: UUID) -> None:
        if actor.role != UserRole.SUPER_ADMIN:
            raise PermissionDenied("Only a super admin can delete admins")
        if admin_id == actor.id:
            raise CannotModifySelf("delete")

        admin = await self._get_admin(admin_id)
        await self.db.delete(admin)
        await self.db.commit()
        logger.info(f"{actor.email} deleted admin {admin_id}")

    async def set_admin_active(self, actor: User, admin_id: UUID, is_active: bool) -> Dict[str, Any]:
        """Disabled admins can no longer log in or use their tokens"""
        if actor.role != UserRole.SUPER_ADMIN:
            raise PermissionDenied("Only a super admin can update admin status")
        if admin_id == actor.id:
            raise CannotModifySelf("change the status of")

        admin = await self._get_admin(admin_id)
        admin.is_active = is_active
        await self.db.commit()
        logger.info(f"{actor.email} set admin {admin.email} {'active' if is_active else 'inactive'}")
        return self.to_dict(admin)

    async def list_users(self, role: Optional[UserRole] = None) -> List[Dict[str, Any]]:
        query = select(User).order_by(User.created_at.desc())
        if role is not None:
            query = query.where(User.role == role)
        result = await self.db.execute(query)
        return [self.to_dict(user) for user in result.scalars().all()]

    @staticmethod
    def to_dict(user: User) -> Dict[str, Any]:
        return {
            "id": str(user.id),
            "email": user.email,
            "username": user.username,
            "role": user.role.value,
            "is_active": user.is_active,
            "has_subscription": bool(user.has_subscription),
            "has_password": user.has_password,
            "last_login": user.last_login.isoformat() if user.last_login else None,
        }
