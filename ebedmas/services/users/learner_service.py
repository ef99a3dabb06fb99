# ============================================================================
# Learner Management Service
# ============================================================================
"""
Learners are the children a parent account practises for.

The number of learners is capped by the parent's latest non-cancelled
subscription: one for a single-subject plan, otherwise the subscription's
``children_count``. A batch is added in one transaction, so it either fits
under the cap entirely or nothing is written.
"""
from typing import Optional, Dict, List, Any, Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select, func
from uuid import UUID
import logging

from ebedmas.core.exceptions import (
    LearnerLimitExceeded,
    LearnerNotFound,
    PersistenceFailure,
    SubscriptionRequired,
)
from ebedmas.models.learner import Learner
from ebedmas.models.subscription import PlanType, Subscription, SubscriptionStatus
from ebedmas.models.user import User

logger = logging.getLogger(__name__)


def max_learners_for(subscription: Subscription) -> int:
    if subscription.plan_type == PlanType.SINGLE:
        return 1
    return subscription.children_count or 1


class LearnerService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _latest_subscription(self, user_id: UUID) -> Optional[Subscription]:
        result = await self.db.execute(
            select(Subscription)
            .where(Subscription.user_id == user_id)
            .where(Subscription.status != SubscriptionStatus.CANCELLED)
            .order_by(Subscription.created_at.desc())
            .limit(1)
            .with_for_update()
        )
        return result.scalar_one_or_none()

    async def count_learners(self, user_id: UUID) -> int:
        return await self.db.scalar(
            select(func.count(Learner.id)).where(Learner.user_id == user_id)
        ) or 0

    async def add_learners(self, user: User, learners: Iterable[Dict[str, str]]) -> Dict[str, Any]:
        learners = list(learners)
        subscription = await self._latest_subscription(user.id)
        if subscription is None:
            raise SubscriptionRequired()

        limit = max_learners_for(subscription)
        current = await self.count_learners(user.id)
        if current + len(learners) > limit:
            logger.info(f"User {user.id} tried to add {len(learners)} learners with {current}/{limit} used")
            raise LearnerLimitExceeded(limit)

        rows = [Learner(user_id=user.id, name=item["name"], grade=item["grade"]) for item in learners]
        self.db.add_all(rows)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to add learners for {user.id}: {e}")
            raise PersistenceFailure("add learners")

        for row in rows:
            await self.db.refresh(row)
        logger.info(f"Added {len(rows)} learners for user {user.id}")
        return {
            "message": "Learners added successfully",
            "count": len(rows),
            "learners": [self.to_dict(row) for row in rows],
        }

    async def list_learners(self, user: User) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(Learner).where(Learner.user_id == user.id).order_by(Learner.created_at)
        )
        return [self.to_dict(row) for row in result.scalars().all()]

    async def delete_learner(self, user: User, learner_id: UUID) -> None:
        learner = await self.db.get(Learner, learner_id)
        # Someone else's learner looks the same as a missing one
        if not learner or learner.user_id != user.id:
            raise LearnerNotFound(learner_id)
        await self.db.delete(learner)
        await self.db.commit()
        logger.info(f"Deleted learner {learner_id} of user {user.id}")

    @staticmethod
    def to_dict(learner: Learner) -> Dict[str, Any]:
        return {
            "id": str(learner.id),
            "name": learner.name,
            "grade": learner.grade,
            "created_at": learner.created_at.isoformat() if learner.created_at else None,
        }
