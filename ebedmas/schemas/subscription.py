# ============================================================================
# Subscription & Payment Schemas
# ============================================================================
from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional
from decimal import Decimal

from ebedmas.models.subscription import BillingCycle, PlanType

class TrialSubscriptionRequest(BaseModel):
    email: EmailStr
    username: Optional[str] = Field(None, min_length=2, max_length=100)
    plan_type: PlanType
    billing_cycle: BillingCycle
    children_count: int = Field(1, ge=1)
    selected_subject: Optional[str] = None
    reference: str = Field(..., min_length=1, max_length=100)
    card_last_four: Optional[str] = Field(None, max_length=4)

    @model_validator(mode="after")
    def check_selected_subject(self):
        if self.plan_type == PlanType.SINGLE and not (self.selected_subject and self.selected_subject.strip()):
            raise ValueError("selected_subject is required for a single-subject plan")
        return self

class TrialSubscriptionResponse(BaseModel):
    trial_end_date: str
    user_id: str
    token: str
    subscription: dict
    amount_due: Decimal

class SubscriptionTransitionResponse(BaseModel):
    success: bool
    changed: bool
    message: str
    subscription: dict

class PriceQuoteRequest(BaseModel):
    plan_type: PlanType
    billing_cycle: BillingCycle
    children_count: int = Field(1, ge=1)

class AdditionalLearnerDiscountRequest(BaseModel):
    billing_cycle: BillingCycle
    amount: Decimal = Field(..., ge=0)

class VerifyPaymentRequest(BaseModel):
    reference: str = Field(..., min_length=1, max_length=100)
