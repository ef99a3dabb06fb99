# ============================================================================
# Answer Submission
# ============================================================================
from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID
import logging

from ebedmas.core.exceptions import QuestionNotFound
from ebedmas.models.curriculum import Question
from ebedmas.models.user import User
from ebedmas.services.practice.answer_grader import grade_answer
from ebedmas.services.practice.quiz_progress import QuizProgressService

logger = logging.getLogger(__name__)

class AnswerService:
    """Grades a submitted answer and, when asked, records it on a quiz run"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.progress = QuizProgressService(db)

    async def submit(
        self,
        question_id: UUID,
        answer: Optional[str],
        user: Optional[User] = None,
        progress_id: Optional[UUID] = None,
        time_spent_seconds: int = 0
    ) -> Dict[str, Any]:
        question = await self.db.get(Question, question_id)
        if not question:
            raise QuestionNotFound(question_id)

        is_correct = grade_answer(
            question.question_type,
            question.correct_answer,
            answer,
            question_id=question.id
        )
        logger.debug(f"Question {question_id} ({question.question_type.value}) graded: {is_correct}")

        response = {
            "isCorrect": is_correct,
            "explanation": question.explanation or "",
            # Manually-marked answers do not reveal the reference answer
            "correctAnswer": question.correct_answer if is_correct is not None else None,
        }

        if progress_id is not None and user is not None:
            response["progress"] = await self.progress.record_answer(
                progress_id,
                user,
                question.id,
                is_correct,
                answer=answer,
                time_spent_seconds=time_spent_seconds
            )

        return response
