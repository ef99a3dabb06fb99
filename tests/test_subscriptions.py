# ============================================================================
# Subscription Lifecycle Tests
# ============================================================================
import pytest
from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy import func, select

from conftest import make_user
from ebedmas.core.clock import utcnow
from ebedmas.core.exceptions import (
    InvalidPlanSelection,
    PaymentVerificationFailed,
    PermissionDenied,
    PersistenceFailure,
    SubscriptionConflict,
    SubscriptionNotFound,
)
from ebedmas.models.subscription import BillingCycle, PlanType, Subscription, SubscriptionStatus
from ebedmas.models.user import User, UserRole
from ebedmas.services.payments.paystack_client import PaystackVerification
from ebedmas.services.payments.subscription_manager import SubscriptionManager

async def count_rows(db, model) -> int:
    return await db.scalar(select(func.count()).select_from(model))

async def start_trial(manager, email="parent@example.com", reference="ref_trial_1", **kwargs):
    params = {
        "email": email,
        "plan_type": PlanType.COMBO,
        "billing_cycle": BillingCycle.MONTHLY,
        "children_count": 3,
        "payment_reference": reference,
    }
    params.update(kwargs)
    return await manager.create_trial(**params)

def gateway_returning(**kwargs):
    verification = PaystackVerification(
        success=kwargs.pop("success", True),
        status=kwargs.pop("status", "success"),
        reference=kwargs.pop("reference", "ref_paid_1"),
        amount=kwargs.pop("amount", Decimal("27.00")),
        card_last_four="4081",
        metadata=kwargs.pop("metadata", {
            "selectedPackage": "combo",
            "billingCycle": "monthly",
            "childrenCount": 3,
        }),
    )
    gateway = MagicMock()
    gateway.verify_transaction = AsyncMock(return_value=verification)
    return gateway

class TestCreateTrial:
    """Tests for trial creation"""

    @pytest.mark.asyncio
    async def test_creates_user_and_trial(self, db_session, pricing):
        """Test creates user and trial"""
        now = utcnow()
        result = await start_trial(SubscriptionManager(db_session), now=now)

        assert result["success"] is True
        assert result["amount_due"] == Decimal("27.00")
        assert result["token"]
        assert await count_rows(db_session, User) == 1
        assert await count_rows(db_session, Subscription) == 1

        subscription = (await db_session.execute(select(Subscription))).scalar_one()
        assert subscription.status == SubscriptionStatus.TRIAL
        assert subscription.trial_end_date == now + timedelta(days=7)
        assert subscription.next_check_at == subscription.trial_end_date
        assert subscription.end_date == now + timedelta(days=365)
        assert subscription.auto_renew is True

        user = await db_session.get(User, subscription.user_id)
        assert user.role == UserRole.TRIAL
        assert user.password_hash is None
        assert user.has_subscription is True

    @pytest.mark.asyncio
    async def test_existing_user_without_subscription(self, db_session, pricing, learner):
        """Test existing user without subscription"""
        result = await start_trial(SubscriptionManager(db_session), email=learner.email)
        assert result["user_id"] == str(learner.id)
        assert await count_rows(db_session, User) == 1

    @pytest.mark.asyncio
    async def test_second_trial_conflicts(self, db_session, pricing):
        """Test second trial conflicts"""
        manager = SubscriptionManager(db_session)
        await start_trial(manager)
        with pytest.raises(SubscriptionConflict):
            await start_trial(manager, reference="ref_trial_2")
        assert await count_rows(db_session, Subscription) == 1

    @pytest.mark.asyncio
    async def test_duplicate_reference_leaves_no_orphan_user(self, db_session, pricing):
        """Test duplicate reference leaves no orphan user"""
        manager = SubscriptionManager(db_session)
        await start_trial(manager)

        with pytest.raises(PersistenceFailure):
            await start_trial(manager, email="other@example.com")

        assert await count_rows(db_session, User) == 1
        assert await count_rows(db_session, Subscription) == 1
        emails = (await db_session.execute(select(User.email))).scalars().all()
        assert emails == ["parent@example.com"]

    @pytest.mark.asyncio
    async def test_single_plan_needs_subject(self, db_session, pricing):
        """Test single plan needs subject"""
        with pytest.raises(InvalidPlanSelection):
            await start_trial(SubscriptionManager(db_session), plan_type=PlanType.SINGLE)
        assert await count_rows(db_session, User) == 0

class TestTrialEnd:
    """Tests for trial end evaluation"""

    @pytest.mark.asyncio
    async def test_due_trial_becomes_active(self, db_session, pricing):
        """Test due trial becomes active"""
        manager = SubscriptionManager(db_session)
        now = utcnow()
        trial = await start_trial(manager, now=now)
        subscription_id = trial["subscription"]["id"]

        later = now + timedelta(days=7, seconds=1)
        outcome = await manager.evaluate_trial_end(_uuid(subscription_id), now=later)

        assert outcome["transitioned"] is True
        assert outcome["subscription"]["status"] == "active"
        assert outcome["subscription"]["trial_end_date"] is None
        assert outcome["subscription"]["next_check_at"] is None

    @pytest.mark.asyncio
    async def test_duplicate_firing_is_a_no_op(self, db_session, pricing):
        """Test duplicate firing is a no op"""
        manager = SubscriptionManager(db_session)
        now = utcnow()
        trial = await start_trial(manager, now=now)
        subscription_id = _uuid(trial["subscription"]["id"])
        later = now + timedelta(days=8)

        first = await manager.evaluate_trial_end(subscription_id, now=later)
        second = await manager.evaluate_trial_end(subscription_id, now=later)

        assert first["transitioned"] is True
        assert second["transitioned"] is False
        assert second["subscription"]["status"] == "active"

    @pytest.mark.asyncio
    async def test_not_yet_due(self, db_session, pricing):
        """Test not yet due"""
        manager = SubscriptionManager(db_session)
        now = utcnow()
        trial = await start_trial(manager, now=now)

        outcome = await manager.evaluate_trial_end(_uuid(trial["subscription"]["id"]), now=now + timedelta(days=1))
        assert outcome["transitioned"] is False
        assert outcome["subscription"]["status"] == "trial"

    @pytest.mark.asyncio
    async def test_cancelled_trial_stays_cancelled(self, db_session, pricing):
        """Test cancelled trial stays cancelled"""
        manager = SubscriptionManager(db_session)
        now = utcnow()
        trial = await start_trial(manager, now=now)
        subscription_id = _uuid(trial["subscription"]["id"])

        await manager.cancel(subscription_id)
        outcome = await manager.evaluate_trial_end(subscription_id, now=now + timedelta(days=8))

        assert outcome["transitioned"] is False
        assert outcome["subscription"]["status"] == "cancelled"

    @pytest.mark.asyncio
    async def test_unknown_subscription(self, db_session):
        """Test unknown subscription"""
        import uuid
        with pytest.raises(SubscriptionNotFound):
            await SubscriptionManager(db_session).evaluate_trial_end(uuid.uuid4())

class TestSweep:
    """Tests for the lifecycle sweep"""

    @pytest.mark.asyncio
    async def test_sweep_activates_due_trials_only(self, db_session, pricing):
        """Test sweep activates due trials only"""
        manager = SubscriptionManager(db_session)
        now = utcnow()
        await start_trial(manager, email="a@example.com", reference="ref_a", now=now - timedelta(days=8))
        await start_trial(manager, email="b@example.com", reference="ref_b", now=now)

        summary = await manager.run_sweep(now=now)
        assert summary == {"checked": 1, "trials_activated": 1, "upcoming_activated": 0, "failed": 0}

        again = await manager.run_sweep(now=now)
        assert again["checked"] == 0

        statuses = (await db_session.execute(
            select(Subscription.status).order_by(Subscription.start_date)
        )).scalars().all()
        assert statuses == [SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIAL]

    @pytest.mark.asyncio
    async def test_sweep_activates_upcoming(self, db_session, learner):
        """Test sweep activates upcoming"""
        now = utcnow()
        upcoming = Subscription(
            user_id=learner.id,
            plan_type=PlanType.ALL_ACCESS,
            billing_cycle=BillingCycle.MONTHLY,
            children_count=1,
            amount_paid=15,
            status=SubscriptionStatus.UPCOMING,
            start_date=now - timedelta(minutes=1),
            end_date=now + timedelta(days=30),
            next_check_at=now - timedelta(minutes=1),
        )
        db_session.add(upcoming)
        await db_session.commit()

        summary = await SubscriptionManager(db_session).run_sweep(now=now)
        assert summary["upcoming_activated"] == 1
        await db_session.refresh(upcoming)
        assert upcoming.status == SubscriptionStatus.ACTIVE

class TestCancel:
    """Tests for cancellation"""

    @pytest.mark.asyncio
    async def test_cancel_twice_is_idempotent(self, db_session, pricing):
        """Test cancel twice is idempotent"""
        manager = SubscriptionManager(db_session)
        trial = await start_trial(manager)
        subscription_id = _uuid(trial["subscription"]["id"])

        first = await manager.cancel(subscription_id)
        second = await manager.cancel(subscription_id)

        assert first["changed"] is True
        assert second["changed"] is False
        assert second["success"] is True
        assert second["subscription"]["status"] == "cancelled"
        assert second["subscription"]["auto_renew"] is False
        assert second["subscription"]["trial_end_date"] is None

        user = await db_session.get(User, _uuid(trial["user_id"]))
        await db_session.refresh(user)
        assert user.has_subscription is False

    @pytest.mark.asyncio
    async def test_only_owner_or_admin(self, db_session, pricing, learner, admin):
        """Test only owner or admin"""
        manager = SubscriptionManager(db_session)
        trial = await start_trial(manager)
        subscription_id = _uuid(trial["subscription"]["id"])

        with pytest.raises(PermissionDenied):
            await manager.cancel(subscription_id, actor=learner)

        result = await manager.cancel(subscription_id, actor=admin)
        assert result["changed"] is True

class TestFreeze:
    """Tests for freeze and unfreeze"""

    async def _active(self, db_session, pricing_manager):
        now = utcnow()
        trial = await start_trial(pricing_manager, now=now - timedelta(days=8))
        subscription_id = _uuid(trial["subscription"]["id"])
        await pricing_manager.evaluate_trial_end(subscription_id, now=now)
        return subscription_id

    @pytest.mark.asyncio
    async def test_toggle_active_and_frozen(self, db_session, pricing):
        """Test toggle active and frozen"""
        manager = SubscriptionManager(db_session)
        subscription_id = await self._active(db_session, manager)

        frozen = await manager.toggle_freeze(subscription_id)
        assert frozen["changed"] is True
        assert frozen["subscription"]["status"] == "frozen"

        thawed = await manager.toggle_freeze(subscription_id)
        assert thawed["subscription"]["status"] == "active"

    @pytest.mark.parametrize("cancel_first", [False, True])
    @pytest.mark.asyncio
    async def test_other_states_untouched(self, db_session, pricing, cancel_first):
        """Test other states untouched"""
        manager = SubscriptionManager(db_session)
        trial = await start_trial(manager)
        subscription_id = _uuid(trial["subscription"]["id"])
        if cancel_first:
            await manager.cancel(subscription_id)
        before = (await manager.get_subscription(subscription_id))["status"]

        result = await manager.toggle_freeze(subscription_id)
        assert result["changed"] is False
        assert result["subscription"]["status"] == before

class TestVerifyPayment:
    """Tests for payment verification"""

    @pytest.mark.asyncio
    async def test_new_paid_subscription(self, db_session, learner):
        """Test new paid subscription"""
        manager = SubscriptionManager(db_session, gateway=gateway_returning())
        result = await manager.verify_payment(learner, "ref_paid_1")

        subscription = result["subscription"]
        assert subscription["status"] == "active"
        assert subscription["plan_type"] == "combo"
        assert subscription["children_count"] == 3
        assert subscription["amount_paid"] == 27.0
        assert subscription["card_last_four"] == "4081"

    @pytest.mark.asyncio
    async def test_payment_during_trial_cancels_trial(self, db_session, pricing):
        """Test payment during trial cancels trial"""
        manager = SubscriptionManager(db_session)
        trial = await start_trial(manager)
        user = await db_session.get(User, _uuid(trial["user_id"]))

        manager.gateway = gateway_returning()
        result = await manager.verify_payment(user, "ref_paid_1")
        assert result["subscription"]["status"] == "active"

        old = await manager.get_subscription(_uuid(trial["subscription"]["id"]))
        assert old["status"] == "cancelled"

    @pytest.mark.asyncio
    async def test_payment_during_active_period_is_queued(self, db_session, learner):
        """Test payment during active period is queued"""
        now = utcnow()
        manager = SubscriptionManager(db_session, gateway=gateway_returning(reference="ref_first"))
        first = await manager.verify_payment(learner, "ref_first", now=now)

        manager.gateway = gateway_returning(reference="ref_second")
        second = await manager.verify_payment(learner, "ref_second", now=now + timedelta(days=1))

        assert second["subscription"]["status"] == "upcoming"
        assert second["subscription"]["start_date"] == first["subscription"]["end_date"]
        assert second["subscription"]["next_check_at"] == first["subscription"]["end_date"]

    @pytest.mark.asyncio
    async def test_failed_verification(self, db_session, learner):
        """Test failed verification"""
        manager = SubscriptionManager(db_session, gateway=gateway_returning(success=False, status="failed"))
        with pytest.raises(PaymentVerificationFailed):
            await manager.verify_payment(learner, "ref_bad")
        assert await count_rows(db_session, Subscription) == 0

    @pytest.mark.asyncio
    async def test_metadata_without_plan(self, db_session, learner):
        """Test metadata without plan"""
        manager = SubscriptionManager(db_session, gateway=gateway_returning(metadata={}))
        with pytest.raises(PaymentVerificationFailed):
            await manager.verify_payment(learner, "ref_no_plan")

class TestQueries:
    """Tests for subscription queries"""

    @pytest.mark.asyncio
    async def test_list_subscribers(self, db_session, pricing):
        """Test list subscribers"""
        manager = SubscriptionManager(db_session)
        await start_trial(manager, email="a@example.com", reference="ref_a")
        await start_trial(manager, email="b@example.com", reference="ref_b")

        subscribers = await manager.list_subscribers()
        assert {s["email"] for s in subscribers} == {"a@example.com", "b@example.com"}
        assert await manager.list_subscribers(status=SubscriptionStatus.ACTIVE) == []

    @pytest.mark.asyncio
    async def test_current_subscription_prefers_running_one(self, db_session, learner):
        """Test current subscription prefers running one"""
        now = utcnow()
        manager = SubscriptionManager(db_session, gateway=gateway_returning(reference="ref_first"))
        first = await manager.verify_payment(learner, "ref_first", now=now)
        manager.gateway = gateway_returning(reference="ref_second")
        await manager.verify_payment(learner, "ref_second", now=now)

        current = await manager.get_current_subscription(learner.id)
        assert str(current.id) == first["subscription"]["id"]

def _uuid(value):
    import uuid
    return uuid.UUID(str(value))
