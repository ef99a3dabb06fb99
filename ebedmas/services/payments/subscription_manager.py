# ============================================================================
# Subscription Management
# ============================================================================
"""
Subscription lifecycle.

    trial    -> active      trial end reached with auto_renew on
    trial    -> cancelled   user cancels during the trial
    active  <-> frozen      admin toggle
    active   -> cancelled
    upcoming -> active      start date of a queued paid period reached

Every transition is a conditional UPDATE keyed on the expected prior status,
so concurrent cancels, freezes and duplicate sweep deliveries resolve to a
single consistent state. Pending trial ends and upcoming starts are found
through the persisted ``next_check_at`` column by a periodic sweep.
"""
from typing import Optional, Dict, List, Union
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select, update
from uuid import UUID
from datetime import datetime, timedelta
import logging

from ebedmas.config import get_settings
from ebedmas.core.clock import utcnow
from ebedmas.core.exceptions import (
    InvalidPlanSelection,
    PaymentVerificationFailed,
    PermissionDenied,
    PersistenceFailure,
    SubscriptionConflict,
    SubscriptionNotFound,
)
from ebedmas.core.security import create_user_token
from ebedmas.models.user import User, UserRole
from ebedmas.models.subscription import (
    BillingCycle,
    CURRENT_STATUSES,
    PlanType,
    Subscription,
    SubscriptionStatus,
)
from ebedmas.services.payments.paystack_client import PaystackClient
from ebedmas.services.payments.pricing import PricingStore, pricing_store

settings = get_settings()
logger = logging.getLogger(__name__)

def check_plan_selection(plan_type: PlanType, children_count: int, selected_subject: Optional[str]) -> None:
    """A single-subject plan names its subject; other plans do not need one"""
    if children_count < 1:
        raise InvalidPlanSelection("children_count must be at least 1")
    if plan_type == PlanType.SINGLE and not (selected_subject and selected_subject.strip()):
        raise InvalidPlanSelection("A single-subject plan requires selected_subject")

class SubscriptionManager:
    """Manages user subscriptions and their lifecycle"""

    def __init__(
        self,
        db: AsyncSession,
        gateway: Optional[PaystackClient] = None,
        pricing: Optional[PricingStore] = None
    ):
        self.db = db
        self.gateway = gateway or PaystackClient()
        self.pricing = pricing or pricing_store

    # ==================== Queries ====================

    async def _get_or_raise(self, subscription_id: UUID) -> Subscription:
        subscription = await self.db.get(Subscription, subscription_id)
        if not subscription:
            raise SubscriptionNotFound(subscription_id)
        return subscription

    async def get_subscription(self, subscription_id: UUID) -> Dict:
        return self.to_dict(await self._get_or_raise(subscription_id))

    async def get_current_subscription(self, user_id: UUID) -> Optional[Subscription]:
        """The user's current subscription; a queued upcoming one only if nothing else is current"""
        result = await self.db.execute(
            select(Subscription)
            .where(Subscription.user_id == user_id)
            .where(Subscription.status.in_(CURRENT_STATUSES))
            .order_by(Subscription.created_at.desc())
        )
        subscriptions = result.scalars().all()
        for subscription in subscriptions:
            if subscription.status != SubscriptionStatus.UPCOMING:
                return subscription
        return subscriptions[0] if subscriptions else None

    async def list_subscribers(self, status: Optional[SubscriptionStatus] = None) -> List[Dict]:
        """All subscriptions with their owners, newest first"""
        query = (
            select(Subscription, User)
            .join(User, Subscription.user_id == User.id)
            .order_by(Subscription.created_at.desc())
        )
        if status is not None:
            query = query.where(Subscription.status == status)
        result = await self.db.execute(query)

        return [
            {**self.to_dict(subscription), "username": user.username, "email": user.email}
            for subscription, user in result.all()
        ]

    # ==================== Trial Creation ====================

    async def create_trial(
        self,
        email: str,
        plan_type: PlanType,
        billing_cycle: BillingCycle,
        children_count: int,
        payment_reference: str,
        username: Optional[str] = None,
        selected_subject: Optional[str] = None,
        card_last_four: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Dict:
        """
        Start a trial for ``email``, creating the user if needed.

        The user and subscription rows are written in one transaction; a
        failure of either leaves neither behind.
        """
        now = now or utcnow()
        plan_type = PlanType(plan_type)
        billing_cycle = BillingCycle(billing_cycle)
        check_plan_selection(plan_type, children_count, selected_subject)

        quote = self.pricing.current().quote(plan_type, billing_cycle, children_count)

        user = await self._find_user_by_email(email)
        if user and await self.get_current_subscription(user.id):
            raise SubscriptionConflict()

        trial_end_date = now + timedelta(days=settings.TRIAL_PERIOD_DAYS)
        try:
            if user is None:
                user = User(
                    email=email,
                    username=username or email.split("@")[0],
                    role=UserRole.TRIAL,
                    is_active=True
                )
                self.db.add(user)
                await self.db.flush()

            subscription = Subscription(
                user_id=user.id,
                plan_type=plan_type,
                billing_cycle=billing_cycle,
                children_count=children_count,
                selected_subject=selected_subject,
                amount_paid=quote.total,
                payment_reference=payment_reference,
                card_last_four=card_last_four,
                status=SubscriptionStatus.TRIAL,
                start_date=now,
                end_date=now + timedelta(days=settings.SUBSCRIPTION_TERM_DAYS),
                trial_end_date=trial_end_date,
                next_check_at=trial_end_date,
                auto_renew=True
            )
            self.db.add(subscription)
            user.has_subscription = True
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Trial creation failed for {email} ({payment_reference}): {e}")
            raise PersistenceFailure("create the trial subscription")

        logger.info(f"Trial {subscription.id} started for {email}, ends {trial_end_date.isoformat()}")
        return {
            "success": True,
            "subscription": self.to_dict(subscription),
            "trial_end_date": trial_end_date.isoformat(),
            "user_id": str(user.id),
            "token": create_user_token(user),
            "amount_due": quote.total,
        }

    # ==================== Scheduled Transitions ====================

    async def evaluate_trial_end(self, subscription_id: UUID, now: Optional[datetime] = None) -> Dict:
        """
        Move a due trial to active.

        Safe to call any number of times: the status guard makes every call
        after the first a no-op.
        """
        now = now or utcnow()
        subscription = await self._get_or_raise(subscription_id)

        result = await self.db.execute(
            update(Subscription)
            .where(Subscription.id == subscription_id)
            .where(Subscription.status == SubscriptionStatus.TRIAL)
            .where(Subscription.auto_renew.is_(True))
            .where(Subscription.trial_end_date <= now)
            .values(
                status=SubscriptionStatus.ACTIVE,
                trial_end_date=None,
                next_check_at=None
            )
            .execution_options(synchronize_session=False)
        )
        transitioned = result.rowcount == 1

        if transitioned:
            # Charging the saved card authorization would happen here
            await self.db.execute(
                update(User)
                .where(User.id == subscription.user_id)
                .values(has_subscription=True)
                .execution_options(synchronize_session=False)
            )
        else:
            # Due trials with auto_renew off stay as they are; stop re-checking them
            await self.db.execute(
                update(Subscription)
                .where(Subscription.id == subscription_id)
                .where(Subscription.status == SubscriptionStatus.TRIAL)
                .where(Subscription.auto_renew.is_(False))
                .where(Subscription.trial_end_date <= now)
                .values(next_check_at=None)
                .execution_options(synchronize_session=False)
            )

        await self._commit("evaluate the trial end")
        await self.db.refresh(subscription)

        if transitioned:
            logger.info(f"Trial {subscription_id} converted to active")
        return {"transitioned": transitioned, "subscription": self.to_dict(subscription)}

    async def activate_upcoming(self, subscription_id: UUID, now: Optional[datetime] = None) -> Dict:
        """Start a queued paid period once its start date has arrived"""
        now = now or utcnow()
        subscription = await self._get_or_raise(subscription_id)

        result = await self.db.execute(
            update(Subscription)
            .where(Subscription.id == subscription_id)
            .where(Subscription.status == SubscriptionStatus.UPCOMING)
            .where(Subscription.start_date <= now)
            .values(status=SubscriptionStatus.ACTIVE, next_check_at=None)
            .execution_options(synchronize_session=False)
        )
        transitioned = result.rowcount == 1

        await self._commit("activate the upcoming subscription")
        await self.db.refresh(subscription)

        if transitioned:
            logger.info(f"Upcoming subscription {subscription_id} is now active")
        return {"transitioned": transitioned, "subscription": self.to_dict(subscription)}

    async def run_sweep(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Evaluate every subscription whose next check time has passed"""
        now = now or utcnow()
        result = await self.db.execute(
            select(Subscription.id, Subscription.status)
            .where(Subscription.next_check_at.is_not(None))
            .where(Subscription.next_check_at <= now)
            .where(Subscription.status.in_([SubscriptionStatus.TRIAL, SubscriptionStatus.UPCOMING]))
        )
        due = result.all()

        summary = {"checked": len(due), "trials_activated": 0, "upcoming_activated": 0, "failed": 0}
        for subscription_id, status in due:
            try:
                if status == SubscriptionStatus.TRIAL:
                    outcome = await self.evaluate_trial_end(subscription_id, now=now)
                    summary["trials_activated"] += int(outcome["transitioned"])
                else:
                    outcome = await self.activate_upcoming(subscription_id, now=now)
                    summary["upcoming_activated"] += int(outcome["transitioned"])
            except (SubscriptionNotFound, PersistenceFailure) as e:
                summary["failed"] += 1
                logger.error(f"Sweep failed for subscription {subscription_id}: {e.detail}")

        logger.info(f"Subscription sweep: {summary}")
        return summary

    # ==================== User / Admin Transitions ====================

    async def cancel(self, subscription_id: UUID, actor: Optional[User] = None) -> Dict:
        """Cancel immediately and stop renewal. Cancelling twice is a no-op success."""
        subscription = await self._get_or_raise(subscription_id)
        if actor is not None and not actor.is_admin and subscription.user_id != actor.id:
            raise PermissionDenied("You can only cancel your own subscription")

        result = await self.db.execute(
            update(Subscription)
            .where(Subscription.id == subscription_id)
            .where(Subscription.status != SubscriptionStatus.CANCELLED)
            .values(
                status=SubscriptionStatus.CANCELLED,
                auto_renew=False,
                trial_end_date=None,
                next_check_at=None
            )
            .execution_options(synchronize_session=False)
        )
        changed = result.rowcount == 1

        if changed and not await self._has_other_current(subscription.user_id, subscription_id):
            await self.db.execute(
                update(User)
                .where(User.id == subscription.user_id)
                .values(has_subscription=False)
                .execution_options(synchronize_session=False)
            )

        await self._commit("cancel the subscription")
        await self.db.refresh(subscription)

        if changed:
            logger.info(f"Subscription {subscription_id} cancelled")
        return {
            "success": True,
            "changed": changed,
            "message": "Subscription cancelled" if changed else "Subscription was already cancelled",
            "subscription": self.to_dict(subscription),
        }

    async def toggle_freeze(self, subscription_id: UUID) -> Dict:
        """
        Flip an active subscription to frozen and back.

        Subscriptions in any other state are left untouched.
        """
        subscription = await self._get_or_raise(subscription_id)
        current = subscription.status

        if current == SubscriptionStatus.ACTIVE:
            target = SubscriptionStatus.FROZEN
        elif current == SubscriptionStatus.FROZEN:
            target = SubscriptionStatus.ACTIVE
        else:
            logger.warning(f"Ignoring freeze toggle on {current.value} subscription {subscription_id}")
            return {
                "success": True,
                "changed": False,
                "message": f"Only active or frozen subscriptions can be frozen (status is {current.value})",
                "subscription": self.to_dict(subscription),
            }

        result = await self.db.execute(
            update(Subscription)
            .where(Subscription.id == subscription_id)
            .where(Subscription.status == current)
            .values(status=target)
            .execution_options(synchronize_session=False)
        )
        changed = result.rowcount == 1

        await self._commit("update the subscription status")
        await self.db.refresh(subscription)

        if changed:
            logger.info(f"Subscription {subscription_id}: {current.value} -> {target.value}")
        return {
            "success": True,
            "changed": changed,
            "message": "Subscription status updated successfully",
            "subscription": self.to_dict(subscription),
        }

    # ==================== Paid Subscriptions ====================

    async def verify_payment(self, user: User, reference: str, now: Optional[datetime] = None) -> Dict:
        """
        Verify a checkout reference with Paystack and record the paid period.

        A payment made while another paid period is running is queued as
        ``upcoming`` from the end of that period. Paying during a trial ends
        the trial.
        """
        now = now or utcnow()
        verification = await self.gateway.verify_transaction(reference)
        if not verification.success:
            logger.warning(f"Payment {reference} not verified: {verification.error or verification.status}")
            raise PaymentVerificationFailed(reference)

        metadata = verification.metadata
        try:
            plan_type = PlanType(metadata.get("plan_type") or metadata.get("selectedPackage"))
            billing_cycle = BillingCycle(metadata.get("billing_cycle") or metadata.get("billingCycle"))
            children_count = int(metadata.get("children_count") or metadata.get("childrenCount") or 1)
        except (TypeError, ValueError):
            raise PaymentVerificationFailed(reference, "Payment metadata does not describe a plan")
        selected_subject = metadata.get("selected_subject") or metadata.get("selectedSubject")
        check_plan_selection(plan_type, children_count, selected_subject)

        duration = timedelta(
            days=settings.YEARLY_CYCLE_DAYS if billing_cycle == BillingCycle.YEARLY else settings.MONTHLY_CYCLE_DAYS
        )

        current = await self.get_current_subscription(user.id)
        status = SubscriptionStatus.ACTIVE
        start_date = now
        if current is not None:
            if current.status in (SubscriptionStatus.FROZEN, SubscriptionStatus.UPCOMING):
                raise SubscriptionConflict(
                    f"Cannot start a new subscription while one is {current.status.value}"
                )
            if current.status == SubscriptionStatus.ACTIVE and current.end_date > now:
                status = SubscriptionStatus.UPCOMING
                start_date = current.end_date

        try:
            if current is not None and current.status == SubscriptionStatus.TRIAL:
                current.status = SubscriptionStatus.CANCELLED
                current.auto_renew = False
                current.trial_end_date = None
                current.next_check_at = None

            subscription = Subscription(
                user_id=user.id,
                plan_type=plan_type,
                billing_cycle=billing_cycle,
                children_count=children_count,
                selected_subject=selected_subject,
                amount_paid=verification.amount,
                payment_reference=reference,
                card_last_four=verification.card_last_four,
                status=status,
                start_date=start_date,
                end_date=start_date + duration,
                next_check_at=start_date if status == SubscriptionStatus.UPCOMING else None,
                auto_renew=True
            )
            self.db.add(subscription)
            user.has_subscription = True
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Recording payment {reference} failed: {e}")
            raise PersistenceFailure("record the payment")

        logger.info(f"Payment {reference} verified; subscription {subscription.id} is {status.value}")
        return {
            "success": True,
            "message": "Payment verified and subscription created",
            "subscription": self.to_dict(subscription),
        }

    # ==================== Helpers ====================

    async def _find_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def _has_other_current(self, user_id: UUID, subscription_id: UUID) -> bool:
        result = await self.db.execute(
            select(Subscription.id)
            .where(Subscription.user_id == user_id)
            .where(Subscription.id != subscription_id)
            .where(Subscription.status.in_(CURRENT_STATUSES))
            .limit(1)
        )
        return result.first() is not None

    async def _commit(self, operation: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to {operation}: {e}")
            raise PersistenceFailure(operation)

    @staticmethod
    def _isoformat(value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None

    def to_dict(self, subscription: Subscription) -> Dict[str, Union[str, int, float, bool, None]]:
        return {
            "id": str(subscription.id),
            "user_id": str(subscription.user_id),
            "plan_type": subscription.plan_type.value,
            "billing_cycle": subscription.billing_cycle.value,
            "children_count": subscription.children_count,
            "selected_subject": subscription.selected_subject,
            "amount_paid": float(subscription.amount_paid or 0),
            "payment_reference": subscription.payment_reference,
            "card_last_four": subscription.card_last_four,
            "status": subscription.status.value,
            "start_date": self._isoformat(subscription.start_date),
            "end_date": self._isoformat(subscription.end_date),
            "trial_end_date": self._isoformat(subscription.trial_end_date),
            "auto_renew": subscription.auto_renew,
            "next_check_at": self._isoformat(subscription.next_check_at),
            "created_at": self._isoformat(subscription.created_at),
        }
