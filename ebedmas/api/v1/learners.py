# ============================================================================
# Learner Endpoints
# ============================================================================
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from ebedmas.core.database import get_db
from ebedmas.core.security import get_current_active_user
from ebedmas.models.user import User
from ebedmas.schemas.learner import AddLearnersRequest
from ebedmas.services.users.learner_service import LearnerService

router = APIRouter(prefix="/learners", tags=["learners"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_learners(
    request: AddLearnersRequest,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Add learners up to the limit of the current subscription"""
    return await LearnerService(db).add_learners(
        current_user,
        [learner.model_dump() for learner in request.learners]
    )


@router.get("")
async def list_learners(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    learners = await LearnerService(db).list_learners(current_user)
    return {"learners": learners, "total": len(learners)}


@router.delete("/{learner_id}")
async def delete_learner(
    learner_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    await LearnerService(db).delete_learner(current_user, learner_id)
    return {"message": "Learner deleted successfully"}
