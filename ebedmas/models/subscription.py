# ============================================================================
# Subscription Models
# ============================================================================
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey
from sqlalchemy import Text, Numeric, Enum, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
import enum
from ebedmas.core.clock import utcnow
from ebedmas.core.database import Base

class PlanType(str, enum.Enum):
    ALL_ACCESS = "all_access"
    COMBO = "combo"
    SINGLE = "single"

class BillingCycle(str, enum.Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"

class SubscriptionStatus(str, enum.Enum):
    TRIAL = "trial"
    ACTIVE = "active"
    UPCOMING = "upcoming"
    FROZEN = "frozen"
    CANCELLED = "cancelled"

# Statuses that make a subscription the user's "current" one
CURRENT_STATUSES = (
    SubscriptionStatus.TRIAL,
    SubscriptionStatus.ACTIVE,
    SubscriptionStatus.FROZEN,
    SubscriptionStatus.UPCOMING,
)

class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)

    plan_type = Column(Enum(PlanType), nullable=False)
    billing_cycle = Column(Enum(BillingCycle), nullable=False)
    children_count = Column(Integer, nullable=False, default=1)
    selected_subject = Column(String(100))  # Required for single-subject plans

    amount_paid = Column(Numeric(10, 2), nullable=False, default=0)
    payment_reference = Column(String(100), unique=True)
    card_last_four = Column(String(4))  # Display only

    status = Column(Enum(SubscriptionStatus), nullable=False, default=SubscriptionStatus.TRIAL, index=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    trial_end_date = Column(DateTime)
    auto_renew = Column(Boolean, nullable=False, default=True)

    # Persisted time of the next lifecycle evaluation (trial end, upcoming start)
    next_check_at = Column(DateTime, index=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, onupdate=func.now())

    user = relationship("User", back_populates="subscriptions")

    __table_args__ = (
        CheckConstraint("children_count >= 1", name="ck_subscriptions_children_count"),
        CheckConstraint("end_date >= start_date", name="ck_subscriptions_dates"),
    )

    @property
    def is_current(self) -> bool:
        return self.status in CURRENT_STATUSES

    def __repr__(self):
        return f"<Subscription {self.id} ({self.status.value})>"

class SubscriptionSetting(Base):
    """Named configuration blobs (the pricing table lives here)"""
    __tablename__ = "subscription_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<SubscriptionSetting {self.name}>"
