# ============================================================================
# Learner & Admin Management Tests
# ============================================================================
import pytest
import uuid
from datetime import timedelta
from httpx import AsyncClient

from conftest import auth_headers, make_user
from ebedmas.core.clock import utcnow
from ebedmas.core.exceptions import (
    LearnerLimitExceeded,
    LearnerNotFound,
    PermissionDenied,
    SubscriptionRequired,
)
from ebedmas.models.subscription import BillingCycle, PlanType, Subscription, SubscriptionStatus
from ebedmas.models.user import User, UserRole
from ebedmas.services.users.learner_service import LearnerService
from ebedmas.services.users.user_service import CannotModifySelf, UserService

API = "/api/v1"

async def subscribe(db, user, plan_type=PlanType.COMBO, children_count=2,
                    status=SubscriptionStatus.ACTIVE, created_at=None) -> Subscription:
    now = utcnow()
    subscription = Subscription(
        user_id=user.id,
        plan_type=plan_type,
        billing_cycle=BillingCycle.MONTHLY,
        children_count=children_count,
        status=status,
        start_date=now,
        end_date=now + timedelta(days=30),
        created_at=created_at or now,
    )
    db.add(subscription)
    await db.commit()
    return subscription

class TestLearnerService:
    """Tests for the plan cap on learners"""

    @pytest.mark.asyncio
    async def test_add_up_to_children_count(self, db_session, learner):
        """Test a combo plan for two children takes two learners"""
        await subscribe(db_session, learner, children_count=2)
        service = LearnerService(db_session)

        result = await service.add_learners(learner, [
            {"name": "Ada", "grade": "Year 3"},
            {"name": "Tunde", "grade": "Year 5"},
        ])

        assert result["count"] == 2
        assert sorted(item["name"] for item in await service.list_learners(learner)) == ["Ada", "Tunde"]

    @pytest.mark.asyncio
    async def test_batch_over_limit_adds_nothing(self, db_session, learner):
        """Test a batch that overshoots the cap is refused whole"""
        await subscribe(db_session, learner, children_count=2)
        service = LearnerService(db_session)
        await service.add_learners(learner, [{"name": "Ada", "grade": "Year 3"}])

        with pytest.raises(LearnerLimitExceeded):
            await service.add_learners(learner, [
                {"name": "Tunde", "grade": "Year 5"},
                {"name": "Kemi", "grade": "Year 1"},
            ])
        assert await service.count_learners(learner.id) == 1

    @pytest.mark.asyncio
    async def test_single_plan_allows_one(self, db_session, learner):
        """Test a single-subject plan caps at one learner whatever children_count says"""
        await subscribe(db_session, learner, plan_type=PlanType.SINGLE, children_count=3)

        with pytest.raises(LearnerLimitExceeded) as exc:
            await LearnerService(db_session).add_learners(learner, [
                {"name": "Ada", "grade": "Year 3"},
                {"name": "Tunde", "grade": "Year 5"},
            ])
        assert "maximum of 1 learner." in exc.value.detail

    @pytest.mark.asyncio
    async def test_latest_non_cancelled_subscription_counts(self, db_session, learner):
        """Test a cancelled plan is ignored in favour of the latest live one"""
        now = utcnow()
        await subscribe(db_session, learner, children_count=1, created_at=now - timedelta(days=10))
        await subscribe(db_session, learner, children_count=4, status=SubscriptionStatus.CANCELLED, created_at=now)

        with pytest.raises(LearnerLimitExceeded):
            await LearnerService(db_session).add_learners(learner, [
                {"name": "Ada", "grade": "Year 3"},
                {"name": "Tunde", "grade": "Year 5"},
            ])

    @pytest.mark.asyncio
    async def test_requires_subscription(self, db_session, learner):
        """Test learners cannot be added without a subscription"""
        with pytest.raises(SubscriptionRequired):
            await LearnerService(db_session).add_learners(learner, [{"name": "Ada", "grade": "Year 3"}])

    @pytest.mark.asyncio
    async def test_delete_only_own_learner(self, db_session, learner):
        """Test another parent's learner cannot be deleted"""
        await subscribe(db_session, learner)
        service = LearnerService(db_session)
        added = await service.add_learners(learner, [{"name": "Ada", "grade": "Year 3"}])
        learner_id = uuid.UUID(added["learners"][0]["id"])
        stranger = await make_user(db_session, "stranger@example.com")

        with pytest.raises(LearnerNotFound):
            await service.delete_learner(stranger, learner_id)

        await service.delete_learner(learner, learner_id)
        assert await service.count_learners(learner.id) == 0

class TestLearnerEndpoints:
    """Tests for /learners"""

    @pytest.mark.asyncio
    async def test_add_list_delete(self, client: AsyncClient, db_session, learner):
        """Test the learner round trip over HTTP"""
        await subscribe(db_session, learner, children_count=1)
        headers = auth_headers(learner)

        created = await client.post(
            f"{API}/learners",
            json={"learners": [{"name": "Ada", "grade": "Year 3"}]},
            headers=headers
        )
        assert created.status_code == 201

        over = await client.post(
            f"{API}/learners",
            json={"learners": [{"name": "Tunde", "grade": "Year 5"}]},
            headers=headers
        )
        assert over.status_code == 400
        assert over.json()["error_code"] == "LEARNER_LIMIT_EXCEEDED"

        listed = (await client.get(f"{API}/learners", headers=headers)).json()
        assert listed["total"] == 1

        deleted = await client.delete(f"{API}/learners/{listed['learners'][0]['id']}", headers=headers)
        assert deleted.status_code == 200
        assert (await client.get(f"{API}/learners", headers=headers)).json()["total"] == 0

    @pytest.mark.asyncio
    async def test_empty_batch_rejected(self, client: AsyncClient, learner):
        """Test an empty learner list fails validation"""
        response = await client.post(f"{API}/learners", json={"learners": []}, headers=auth_headers(learner))
        assert response.status_code == 422

class TestAdminLifecycle:
    """Tests for super-admin management of admins"""

    @pytest.mark.asyncio
    async def test_update_admin(self, db_session, admin, super_admin):
        """Test a super admin edits an admin's email and role"""
        result = await UserService(db_session).update_admin(
            super_admin, admin.id, email="ops@example.com", role=UserRole.SUPER_ADMIN
        )
        assert result["email"] == "ops@example.com"
        assert result["role"] == "super_admin"

    @pytest.mark.asyncio
    async def test_plain_admin_cannot_update(self, db_session, admin, super_admin):
        """Test only a super admin edits admins"""
        with pytest.raises(PermissionDenied):
            await UserService(db_session).update_admin(admin, super_admin.id, username="root2")

    @pytest.mark.asyncio
    async def test_cannot_delete_or_disable_self(self, db_session, super_admin):
        """Test a super admin cannot remove or disable their own account"""
        service = UserService(db_session)
        with pytest.raises(CannotModifySelf):
            await service.delete_admin(super_admin, super_admin.id)
        with pytest.raises(CannotModifySelf):
            await service.set_admin_active(super_admin, super_admin.id, False)

    @pytest.mark.asyncio
    async def test_disabled_admin_cannot_log_in(self, client: AsyncClient, admin, super_admin):
        """Test the status toggle locks an admin out"""
        response = await client.put(
            f"{API}/admin/admins/{admin.id}/status",
            json={"status": "inactive"},
            headers=auth_headers(super_admin)
        )
        assert response.status_code == 200
        assert response.json()["is_active"] is False

        login = await client.post(f"{API}/auth/login", json={"email": admin.email, "password": "password123"})
        assert login.status_code == 401

        bad_status = await client.put(
            f"{API}/admin/admins/{admin.id}/status",
            json={"status": "paused"},
            headers=auth_headers(super_admin)
        )
        assert bad_status.status_code == 422

    @pytest.mark.asyncio
    async def test_delete_admin(self, client: AsyncClient, db_session, admin, super_admin):
        """Test a super admin deletes an admin"""
        admin_id = admin.id
        headers = auth_headers(super_admin)
        response = await client.delete(f"{API}/admin/admins/{admin_id}", headers=headers)
        assert response.status_code == 200
        assert await db_session.get(User, admin_id) is None

        missing = await client.delete(f"{API}/admin/admins/{admin_id}", headers=headers)
        assert missing.status_code == 404
