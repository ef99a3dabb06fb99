# ============================================================================
# Quiz Progress Endpoints
# ============================================================================
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from ebedmas.core.database import get_db
from ebedmas.core.security import get_current_active_user
from ebedmas.models.user import User
from ebedmas.schemas.practice import RecordProgressRequest, StartQuizRequest
from ebedmas.services.practice.quiz_progress import QuizProgressService

router = APIRouter(prefix="/quiz", tags=["quiz"])


@router.post("/progress")
async def start_quiz(
    request: StartQuizRequest,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    return await QuizProgressService(db).start_quiz(current_user, request.topic_id)


@router.get("/progress")
async def recent_progress(
    days: int = Query(30, ge=1, le=365),
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    progress = await QuizProgressService(db).list_recent(current_user, days=days)
    return {"progress": progress, "total": len(progress)}


@router.get("/progress/topic/{topic_id}")
async def topic_progress(
    topic_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    return {"progress": await QuizProgressService(db).list_for_topic(current_user, topic_id)}


@router.post("/progress/{progress_id}/answers")
async def record_answer(
    progress_id: UUID,
    request: RecordProgressRequest,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    return await QuizProgressService(db).record_answer(
        progress_id,
        current_user,
        request.question_id,
        request.is_correct,
        answer=request.answer,
        time_spent_seconds=request.time_spent
    )


@router.put("/progress/{progress_id}/complete")
async def complete_quiz(
    progress_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    return await QuizProgressService(db).complete(progress_id, current_user)


@router.put("/progress/{progress_id}/abandon")
async def abandon_quiz(
    progress_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    return await QuizProgressService(db).abandon(progress_id, current_user)
