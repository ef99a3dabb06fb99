# ============================================================================
# Question & Answer Endpoints
# ============================================================================
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from uuid import UUID

from ebedmas.api.deps import get_optional_user
from ebedmas.core.database import get_db
from ebedmas.core.exceptions import ContentNotFound
from ebedmas.models.curriculum import Topic
from ebedmas.models.user import User
from ebedmas.schemas.practice import SubmitAnswerRequest, SubmitAnswerResponse
from ebedmas.services.content.content_service import ContentManagementService
from ebedmas.services.practice.answer_service import AnswerService

router = APIRouter(prefix="/questions", tags=["questions"])


@router.post("/answer", response_model=SubmitAnswerResponse)
async def submit_answer(
    request: SubmitAnswerRequest,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Grade one answer.

    When ``progressId`` is sent by a signed-in learner the graded answer is
    also recorded on that quiz run.
    """
    service = AnswerService(db)
    return await service.submit(
        request.questionId,
        request.answer,
        user=current_user,
        progress_id=request.progressId,
        time_spent_seconds=request.timeSpent
    )


@router.get("/topic/{topic_id}")
async def get_topic_questions(
    topic_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    topic = await db.get(Topic, topic_id)
    if not topic:
        raise ContentNotFound("topic", topic_id)

    questions = await ContentManagementService(db).questions_for_topic(topic_id)
    return {
        "topic": {"id": str(topic.id), "name": topic.name, "description": topic.description},
        "questions": questions,
        "total": len(questions),
    }
