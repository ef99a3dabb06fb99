# ============================================================================
# API Dependencies
# ============================================================================
from typing import Optional
from fastapi import Depends
import logging

from ebedmas.core.exceptions import PermissionDenied
from ebedmas.core.security import get_current_user, get_current_active_user
from ebedmas.models.user import User, UserRole
from ebedmas.services.payments.pricing import pricing_store, PricingStore

logger = logging.getLogger(__name__)


# ============================================================================
# Role Dependencies
# ============================================================================
async def require_admin(
    current_user: User = Depends(get_current_active_user)
) -> User:
    """Admin or super admin"""
    if not current_user.is_admin:
        logger.warning(f"Admin route refused for {current_user.email} ({current_user.role.value})")
        raise PermissionDenied()
    return current_user


async def require_super_admin(
    current_user: User = Depends(get_current_active_user)
) -> User:
    if current_user.role != UserRole.SUPER_ADMIN:
        raise PermissionDenied("Super admin privileges required")
    return current_user


async def get_optional_user(
    current_user: Optional[User] = Depends(get_current_user)
) -> Optional[User]:
    """Authenticated user when a valid token is sent, otherwise None"""
    if current_user and not current_user.is_active:
        return None
    return current_user


# ============================================================================
# Pricing
# ============================================================================
def get_pricing_store() -> PricingStore:
    return pricing_store
