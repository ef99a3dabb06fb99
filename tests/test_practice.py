# ============================================================================
# Practice Tests (answers and quiz progress)
# ============================================================================
import pytest
import uuid

from conftest import make_user
from ebedmas.core.exceptions import (
    ContentNotFound,
    InvalidQuestionState,
    MissingAnswer,
    PermissionDenied,
    QuestionNotFound,
    QuestionAlreadyAnswered,
    QuestionNotInQuiz,
    QuizProgressClosed,
    QuizProgressNotFound,
)
from ebedmas.models.curriculum import Question, QuestionType, Topic
from ebedmas.services.practice.answer_service import AnswerService
from ebedmas.services.practice.quiz_progress import QuizProgressService

class TestAnswerService:
    """Tests for grading and recording answers"""

    @pytest.mark.asyncio
    async def test_correct_text_answer(self, db_session, questions):
        """Test correct text answer"""
        question = questions[QuestionType.TEXT]
        result = await AnswerService(db_session).submit(question.id, " four ")

        assert result == {
            "isCorrect": True,
            "explanation": "2 + 2 = 4",
            "correctAnswer": "Four",
        }

    @pytest.mark.asyncio
    async def test_drag_answer_in_any_order(self, db_session, questions):
        """Test drag answer in any order"""
        question = questions[QuestionType.DRAG]
        result = await AnswerService(db_session).submit(question.id, "Dog, Cat")
        assert result["isCorrect"] is True

    @pytest.mark.asyncio
    async def test_draw_answer_not_graded(self, db_session, questions):
        """Test draw answer not graded"""
        result = await AnswerService(db_session).submit(questions[QuestionType.DRAW].id, "<svg/>")
        assert result["isCorrect"] is None
        assert result["explanation"] == ""
        assert result["correctAnswer"] is None

    @pytest.mark.asyncio
    async def test_unknown_question(self, db_session):
        """Test unknown question"""
        with pytest.raises(QuestionNotFound):
            await AnswerService(db_session).submit(uuid.uuid4(), "x")

    @pytest.mark.asyncio
    async def test_missing_answer(self, db_session, questions):
        """Test missing answer"""
        with pytest.raises(MissingAnswer):
            await AnswerService(db_session).submit(questions[QuestionType.TEXT].id, None)

    @pytest.mark.asyncio
    async def test_question_without_key(self, db_session, topic):
        """Test question without key"""
        question = Question(topic_id=topic.id, question_type=QuestionType.TEXT, content="?", correct_answer=None)
        db_session.add(question)
        await db_session.commit()

        with pytest.raises(InvalidQuestionState):
            await AnswerService(db_session).submit(question.id, "anything")

    @pytest.mark.asyncio
    async def test_records_on_progress(self, db_session, questions, topic, learner):
        """Test records on progress"""
        progress = await QuizProgressService(db_session).start_quiz(learner, topic.id)
        result = await AnswerService(db_session).submit(
            questions[QuestionType.CLICK].id,
            "dog",
            user=learner,
            progress_id=uuid.UUID(progress["id"]),
            time_spent_seconds=12
        )

        assert result["isCorrect"] is True
        assert result["progress"]["score"] == 1
        assert result["progress"]["completed_questions"] == 1
        assert result["progress"]["time_spent_seconds"] == 12

class TestQuizProgress:
    """Tests for quiz progress tracking"""

    @pytest.mark.asyncio
    async def test_start_counts_topic_questions(self, db_session, questions, topic, learner):
        """Test start counts topic questions"""
        progress = await QuizProgressService(db_session).start_quiz(learner, topic.id)
        assert progress["total_questions"] == 4
        assert progress["status"] == "in_progress"
        assert progress["answers"] == []

    @pytest.mark.asyncio
    async def test_start_unknown_topic(self, db_session, learner):
        """Test start unknown topic"""
        with pytest.raises(ContentNotFound):
            await QuizProgressService(db_session).start_quiz(learner, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_auto_completes_after_last_question(self, db_session, questions, topic, learner):
        """Test auto completes after last question"""
        service = QuizProgressService(db_session)
        progress = await service.start_quiz(learner, topic.id)
        progress_id = uuid.UUID(progress["id"])

        outcomes = [True, False, None, True]
        for question, is_correct in zip(questions.values(), outcomes):
            progress = await service.record_answer(progress_id, learner, question.id, is_correct)

        assert progress["status"] == "completed"
        assert progress["score"] == 2
        assert progress["completed_questions"] == 4
        assert progress["score_percentage"] == 50.0
        assert len(progress["answers"]) == 4
        assert progress["completed_at"] is not None

        with pytest.raises(QuizProgressClosed):
            await service.record_answer(progress_id, learner, questions[QuestionType.TEXT].id, True)

    @pytest.mark.asyncio
    async def test_abandon_then_complete_refused(self, db_session, questions, topic, learner):
        """Test abandon then complete refused"""
        service = QuizProgressService(db_session)
        progress = await service.start_quiz(learner, topic.id)
        progress_id = uuid.UUID(progress["id"])

        abandoned = await service.abandon(progress_id, learner)
        assert abandoned["status"] == "abandoned"
        with pytest.raises(QuizProgressClosed):
            await service.complete(progress_id, learner)

    @pytest.mark.asyncio
    async def test_other_users_progress(self, db_session, questions, topic, learner):
        """Test another user's quiz cannot be closed"""
        service = QuizProgressService(db_session)
        progress = await service.start_quiz(learner, topic.id)
        stranger = await make_user(db_session, "stranger@example.com")

        with pytest.raises(PermissionDenied):
            await service.complete(uuid.UUID(progress["id"]), stranger)

    @pytest.mark.asyncio
    async def test_unknown_progress(self, db_session, learner):
        """Test unknown progress"""
        with pytest.raises(QuizProgressNotFound):
            await QuizProgressService(db_session).complete(uuid.uuid4(), learner)

    @pytest.mark.asyncio
    async def test_recent_and_topic_lists(self, db_session, questions, topic, learner):
        """Test recent and topic lists"""
        service = QuizProgressService(db_session)
        await service.start_quiz(learner, topic.id)
        await service.start_quiz(learner, topic.id)

        recent = await service.list_recent(learner)
        assert len(recent) == 2
        assert recent[0]["topic_name"] == topic.name
        assert len(await service.list_for_topic(learner, topic.id)) == 2

    @pytest.mark.asyncio
    async def test_repeat_answer_does_not_inflate_score(self, db_session, questions, topic, learner):
        """Test repeat answer does not inflate score"""
        service = QuizProgressService(db_session)
        progress = await service.start_quiz(learner, topic.id)
        progress_id = uuid.UUID(progress["id"])
        question = questions[QuestionType.TEXT]

        await AnswerService(db_session).submit(question.id, "four", user=learner, progress_id=progress_id)
        for _ in range(3):
            with pytest.raises(QuestionAlreadyAnswered):
                await AnswerService(db_session).submit(question.id, "four", user=learner, progress_id=progress_id)

        progress = await service.complete(progress_id, learner)
        assert progress["score"] == 1
        assert progress["completed_questions"] == 1
        assert len(progress["answers"]) == 1

    @pytest.mark.asyncio
    async def test_question_from_another_topic(self, db_session, questions, topic, learner):
        """Test question from another topic"""
        other = Topic(subject_id=topic.subject_id, name="Shapes")
        db_session.add(other)
        await db_session.commit()
        stray = Question(topic_id=other.id, question_type=QuestionType.TEXT, content="Sides of a square?", correct_answer="4")
        db_session.add(stray)
        await db_session.commit()

        service = QuizProgressService(db_session)
        progress = await service.start_quiz(learner, topic.id)

        with pytest.raises(QuestionNotInQuiz):
            await service.record_answer(uuid.UUID(progress["id"]), learner, stray.id, True)

        progress = await service.complete(uuid.UUID(progress["id"]), learner)
        assert progress["completed_questions"] == 0
        assert progress["score"] == 0
