# ============================================================================
# Subscription Endpoints
# ============================================================================
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from uuid import UUID

from ebedmas.api.deps import get_pricing_store, require_admin
from ebedmas.core.database import get_db
from ebedmas.core.security import get_current_active_user
from ebedmas.models.subscription import SubscriptionStatus
from ebedmas.models.user import User
from ebedmas.schemas.subscription import (
    AdditionalLearnerDiscountRequest,
    PriceQuoteRequest,
    SubscriptionTransitionResponse,
    TrialSubscriptionRequest,
    TrialSubscriptionResponse,
)
from ebedmas.services.payments.pricing import PricingPlan, PricingStore
from ebedmas.services.payments.subscription_manager import SubscriptionManager

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


# ============================================================================
# Pricing
# ============================================================================
@router.get("/default-pricing")
async def get_default_pricing(
    pricing: PricingStore = Depends(get_pricing_store)
):
    return [plan.to_blob() for plan in pricing.current().plans]


@router.put("/default-pricing")
async def update_default_pricing(
    plans: List[PricingPlan],
    admin: User = Depends(require_admin),
    pricing: PricingStore = Depends(get_pricing_store),
    db: AsyncSession = Depends(get_db)
):
    table = await pricing.update(db, plans)
    return {"success": True, "plans": [plan.to_blob() for plan in table.plans]}


@router.post("/default-pricing/reload")
async def reload_default_pricing(
    admin: User = Depends(require_admin),
    pricing: PricingStore = Depends(get_pricing_store),
    db: AsyncSession = Depends(get_db)
):
    """Re-read the stored pricing into this process"""
    table = await pricing.load(db)
    return {"success": True, "plans": [plan.to_blob() for plan in table.plans]}


@router.put("/additional-child-discount")
async def update_additional_child_discount(
    request: AdditionalLearnerDiscountRequest,
    admin: User = Depends(require_admin),
    pricing: PricingStore = Depends(get_pricing_store),
    db: AsyncSession = Depends(get_db)
):
    table = await pricing.update_additional_learner_discount(db, request.billing_cycle, request.amount)
    return {"success": True, "plans": [plan.to_blob() for plan in table.plans]}


@router.post("/quote")
async def quote_price(
    request: PriceQuoteRequest,
    pricing: PricingStore = Depends(get_pricing_store)
):
    return pricing.current().quote(request.plan_type, request.billing_cycle, request.children_count).to_dict()


# ============================================================================
# Lifecycle
# ============================================================================
@router.post("/trial", response_model=TrialSubscriptionResponse)
async def create_trial(
    request: TrialSubscriptionRequest,
    db: AsyncSession = Depends(get_db)
):
    """Start a trial from checkout; creates the account when the email is new"""
    manager = SubscriptionManager(db)
    return await manager.create_trial(
        email=request.email,
        plan_type=request.plan_type,
        billing_cycle=request.billing_cycle,
        children_count=request.children_count,
        payment_reference=request.reference,
        username=request.username,
        selected_subject=request.selected_subject,
        card_last_four=request.card_last_four
    )


@router.get("/me")
async def get_my_subscription(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    manager = SubscriptionManager(db)
    subscription = await manager.get_current_subscription(current_user.id)
    return {"subscription": manager.to_dict(subscription) if subscription else None}


@router.get("/subscribers")
async def list_subscribers(
    status: Optional[SubscriptionStatus] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    subscribers = await SubscriptionManager(db).list_subscribers(status=status)
    return {"subscribers": subscribers, "total": len(subscribers)}


@router.get("/{subscription_id}")
async def get_subscription(
    subscription_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await SubscriptionManager(db).get_subscription(subscription_id)


@router.put("/{subscription_id}/cancel", response_model=SubscriptionTransitionResponse)
async def cancel_subscription(
    subscription_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    return await SubscriptionManager(db).cancel(subscription_id, actor=current_user)


@router.put("/{subscription_id}/freeze", response_model=SubscriptionTransitionResponse)
async def toggle_freeze(
    subscription_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await SubscriptionManager(db).toggle_freeze(subscription_id)


@router.post("/{subscription_id}/evaluate-trial")
async def evaluate_trial_end(
    subscription_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Run the trial-end check for one subscription now"""
    return await SubscriptionManager(db).evaluate_trial_end(subscription_id)


@router.post("/sweep")
async def run_sweep(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await SubscriptionManager(db).run_sweep()
