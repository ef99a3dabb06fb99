# ============================================================================
# Quiz Progress Tracking
# ============================================================================
from typing import Optional, Dict, List, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from uuid import UUID
from datetime import datetime, timedelta
import logging

from ebedmas.core.clock import utcnow
from ebedmas.core.exceptions import (
    ContentNotFound,
    PermissionDenied,
    QuestionAlreadyAnswered,
    QuestionNotFound,
    QuestionNotInQuiz,
    QuizProgressClosed,
    QuizProgressNotFound,
)
from ebedmas.models.curriculum import Question, Topic
from ebedmas.models.practice import QuizProgress, QuizStatus
from ebedmas.models.user import User

logger = logging.getLogger(__name__)

class QuizProgressService:
    """Tracks a learner's run through the questions of one topic"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def start_quiz(self, user: User, topic_id: UUID) -> Dict[str, Any]:
        topic = await self.db.get(Topic, topic_id)
        if not topic:
            raise ContentNotFound("topic", topic_id)

        total = await self.db.scalar(
            select(func.count(Question.id)).where(Question.topic_id == topic_id)
        )
        progress = QuizProgress(
            user_id=user.id,
            topic_id=topic_id,
            total_questions=total or 0,
            completed_questions=0,
            score=0,
            time_spent_seconds=0,
            status=QuizStatus.IN_PROGRESS.value,
            answers=[],
            started_at=utcnow()
        )
        self.db.add(progress)
        await self.db.commit()
        await self.db.refresh(progress)

        logger.info(f"User {user.id} started quiz {progress.id} on topic {topic_id}")
        return self._to_dict(progress)

    async def _get_owned(self, progress_id: UUID, user: User) -> QuizProgress:
        progress = await self.db.get(QuizProgress, progress_id)
        if not progress:
            raise QuizProgressNotFound(progress_id)
        if progress.user_id != user.id:
            raise PermissionDenied("This quiz belongs to another user")
        return progress

    async def record_answer(
        self,
        progress_id: UUID,
        user: User,
        question_id: UUID,
        is_correct: Optional[bool],
        answer: Optional[str] = None,
        time_spent_seconds: int = 0
    ) -> Dict[str, Any]:
        """
        Add one graded answer to an in-progress quiz.

        Manually-marked answers (``is_correct`` is None) count as completed
        but do not add to the score. Each question of the topic is counted
        once per run.
        """
        progress = await self._get_owned(progress_id, user)
        if progress.is_terminal:
            raise QuizProgressClosed(progress_id, progress.status)

        question = await self.db.get(Question, question_id)
        if not question:
            raise QuestionNotFound(question_id)
        if question.topic_id != progress.topic_id:
            raise QuestionNotInQuiz(question_id, progress.topic_id)
        if any(entry.get("question_id") == str(question_id) for entry in progress.answers or []):
            raise QuestionAlreadyAnswered(progress_id, question_id)

        # Reassign JSON columns so the change is tracked
        progress.answers = list(progress.answers or []) + [{
            "question_id": str(question_id),
            "answer": answer,
            "is_correct": is_correct,
            "time_spent": time_spent_seconds,
            "answered_at": utcnow().isoformat(),
        }]
        progress.question_id = question_id
        progress.completed_questions = (progress.completed_questions or 0) + 1
        progress.time_spent_seconds = (progress.time_spent_seconds or 0) + max(time_spent_seconds, 0)
        if is_correct:
            progress.score = (progress.score or 0) + 1

        if progress.total_questions and progress.completed_questions >= progress.total_questions:
            progress.status = QuizStatus.COMPLETED.value
            progress.completed_at = utcnow()
            logger.info(f"Quiz {progress_id} completed with score {progress.score}/{progress.total_questions}")

        await self.db.commit()
        await self.db.refresh(progress)
        return self._to_dict(progress)

    async def complete(self, progress_id: UUID, user: User) -> Dict[str, Any]:
        return await self._close(progress_id, user, QuizStatus.COMPLETED)

    async def abandon(self, progress_id: UUID, user: User) -> Dict[str, Any]:
        return await self._close(progress_id, user, QuizStatus.ABANDONED)

    async def _close(self, progress_id: UUID, user: User, status: QuizStatus) -> Dict[str, Any]:
        progress = await self._get_owned(progress_id, user)
        if progress.is_terminal:
            raise QuizProgressClosed(progress_id, progress.status)

        progress.status = status.value
        progress.completed_at = utcnow()
        await self.db.commit()
        await self.db.refresh(progress)
        return self._to_dict(progress)

    async def list_recent(self, user: User, days: int = 30) -> List[Dict[str, Any]]:
        """Progress records from the last ``days`` days, oldest first, for charts"""
        since = utcnow() - timedelta(days=days)
        result = await self.db.execute(
            select(QuizProgress, Topic.name)
            .join(Topic, QuizProgress.topic_id == Topic.id)
            .where(QuizProgress.user_id == user.id)
            .where(QuizProgress.started_at >= since)
            .order_by(QuizProgress.started_at.asc())
        )
        return [
            {**self._to_dict(progress), "topic_name": topic_name}
            for progress, topic_name in result.all()
        ]

    async def list_for_topic(self, user: User, topic_id: UUID) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(QuizProgress)
            .where(QuizProgress.user_id == user.id)
            .where(QuizProgress.topic_id == topic_id)
            .order_by(QuizProgress.started_at.desc())
        )
        return [self._to_dict(progress) for progress in result.scalars().all()]

    @staticmethod
    def _isoformat(value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None

    def _to_dict(self, progress: QuizProgress) -> Dict[str, Any]:
        return {
            "id": str(progress.id),
            "user_id": str(progress.user_id),
            "topic_id": str(progress.topic_id),
            "question_id": str(progress.question_id) if progress.question_id else None,
            "score": progress.score,
            "total_questions": progress.total_questions,
            "completed_questions": progress.completed_questions,
            "score_percentage": progress.score_percentage,
            "status": progress.status,
            "time_spent_seconds": progress.time_spent_seconds,
            "answers": progress.answers or [],
            "started_at": self._isoformat(progress.started_at),
            "completed_at": self._isoformat(progress.completed_at),
        }
