# ============================================================================
# Payment API Endpoints
# ============================================================================
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ebedmas.core.database import get_db
from ebedmas.core.security import get_current_active_user
from ebedmas.models.user import User
from ebedmas.schemas.subscription import VerifyPaymentRequest
from ebedmas.services.payments.subscription_manager import SubscriptionManager

router = APIRouter(prefix="/payments", tags=["payments"])

@router.post("/verify")
async def verify_payment(
    request: VerifyPaymentRequest,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Verify a Paystack checkout reference and record the paid subscription"""
    manager = SubscriptionManager(db)
    return await manager.verify_payment(current_user, request.reference)
