# ============================================================================
# Content Management Service
# ============================================================================
"""
Service layer for the content hierarchy.

Grade -> Subject -> Topic -> Section -> Question is a strict tree. Every child
references exactly one existing parent, and a node that still has children
cannot be deleted.
"""
from typing import Dict, List, Optional, Any, Tuple, Type
from dataclasses import dataclass, field
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from datetime import datetime
from uuid import UUID
import enum
import logging

from ebedmas.core.exceptions import ContentHasChildren, ContentNotFound
from ebedmas.models.curriculum import Grade, Subject, Topic, Section, Question, QuestionType
from ebedmas.models.user import User
from ebedmas.services.practice.answer_grader import parse_answer_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentLevel:
    model: Type
    parent_field: Optional[str] = None
    parent_kind: Optional[str] = None
    # (child model, foreign key column name, label used in errors)
    children: Tuple[Tuple[Type, str, str], ...] = field(default_factory=tuple)
    editable: Tuple[str, ...] = ("name", "description", "order_index")


HIERARCHY: Dict[str, ContentLevel] = {
    "grade": ContentLevel(
        model=Grade,
        children=((Subject, "grade_id", "subjects"),),
    ),
    "subject": ContentLevel(
        model=Subject,
        parent_field="grade_id",
        parent_kind="grade",
        children=((Topic, "subject_id", "topics"),),
        editable=("name", "description", "is_active"),
    ),
    "topic": ContentLevel(
        model=Topic,
        parent_field="subject_id",
        parent_kind="subject",
        children=((Section, "topic_id", "sections"), (Question, "topic_id", "questions")),
    ),
    "section": ContentLevel(
        model=Section,
        parent_field="topic_id",
        parent_kind="topic",
        children=((Question, "section_id", "questions"),),
    ),
}

QUESTION_FIELDS = (
    "topic_id", "section_id", "question_type", "content", "options",
    "correct_answer", "explanation", "images", "explanation_image",
)


def serialize(obj) -> Dict[str, Any]:
    """Column values of a row, JSON-friendly"""
    data = {}
    for column in obj.__table__.columns:
        value = getattr(obj, column.name)
        if isinstance(value, UUID):
            value = str(value)
        elif isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, enum.Enum):
            value = value.value
        data[column.name] = value
    return data


class ContentManagementService:
    """
    CRUD for grades, subjects, topics, sections and questions.

    Question writes validate the answer key against the question type so
    malformed keys never reach grading.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Generic hierarchy nodes
    # =========================================================================
    async def get_item(self, kind: str, item_id: UUID):
        level = HIERARCHY[kind]
        item = await self.db.get(level.model, item_id)
        if not item:
            raise ContentNotFound(kind, item_id)
        return item

    async def list_items(self, kind: str, parent_id: Optional[UUID] = None) -> List[Dict[str, Any]]:
        level = HIERARCHY[kind]
        query = select(level.model)
        if parent_id is not None and level.parent_field:
            query = query.where(getattr(level.model, level.parent_field) == parent_id)
        order_column = getattr(level.model, "order_index", None)
        query = query.order_by(order_column if order_column is not None else level.model.name, level.model.name)

        result = await self.db.execute(query)
        items = []
        for item in result.scalars().all():
            data = serialize(item)
            for child_model, fk, label in level.children:
                data[f"{label}_count"] = await self._count_children(child_model, fk, item.id)
            items.append(data)
        return items

    async def create_item(self, kind: str, data: Dict[str, Any], admin: Optional[User] = None) -> Dict[str, Any]:
        level = HIERARCHY[kind]
        if level.parent_field:
            await self.get_item(level.parent_kind, data[level.parent_field])

        values = {key: data[key] for key in level.editable if data.get(key) is not None}
        if level.parent_field:
            values[level.parent_field] = data[level.parent_field]

        item = level.model(**values, created_by=admin.id if admin else None)
        self.db.add(item)
        await self.db.commit()
        await self.db.refresh(item)

        logger.info(f"Created {kind} {item.id} ({item.name})")
        return serialize(item)

    async def update_item(self, kind: str, item_id: UUID, updates: Dict[str, Any]) -> Dict[str, Any]:
        level = HIERARCHY[kind]
        item = await self.get_item(kind, item_id)

        if level.parent_field and updates.get(level.parent_field) is not None:
            await self.get_item(level.parent_kind, updates[level.parent_field])
            setattr(item, level.parent_field, updates[level.parent_field])

        for key in level.editable:
            if updates.get(key) is not None:
                setattr(item, key, updates[key])

        await self.db.commit()
        await self.db.refresh(item)
        return serialize(item)

    async def delete_item(self, kind: str, item_id: UUID) -> None:
        level = HIERARCHY[kind]
        item = await self.get_item(kind, item_id)

        for child_model, fk, label in level.children:
            count = await self._count_children(child_model, fk, item.id)
            if count:
                raise ContentHasChildren(kind, label, count)

        await self.db.delete(item)
        await self.db.commit()
        logger.info(f"Deleted {kind} {item_id}")

    async def _count_children(self, child_model, fk: str, parent_id: UUID) -> int:
        count = await self.db.scalar(
            select(func.count(child_model.id)).where(getattr(child_model, fk) == parent_id)
        )
        return count or 0

    # =========================================================================
    # Questions
    # =========================================================================
    async def _check_question_parents(self, topic_id: UUID, section_id: Optional[UUID]) -> None:
        await self.get_item("topic", topic_id)
        if section_id is not None:
            section = await self.get_item("section", section_id)
            if section.topic_id != topic_id:
                raise ContentNotFound("section", f"{section_id} in topic {topic_id}")

    async def get_question(self, question_id: UUID) -> Question:
        question = await self.db.get(Question, question_id)
        if not question:
            raise ContentNotFound("question", question_id)
        return question

    async def list_questions(
        self,
        topic_id: Optional[UUID] = None,
        section_id: Optional[UUID] = None,
        question_type: Optional[QuestionType] = None
    ) -> List[Dict[str, Any]]:
        query = select(Question)
        if topic_id is not None:
            query = query.where(Question.topic_id == topic_id)
        if section_id is not None:
            query = query.where(Question.section_id == section_id)
        if question_type is not None:
            query = query.where(Question.question_type == question_type)

        result = await self.db.execute(query.order_by(Question.created_at))
        return [serialize(question) for question in result.scalars().all()]

    async def create_question(self, data: Dict[str, Any], admin: Optional[User] = None) -> Dict[str, Any]:
        await self._check_question_parents(data["topic_id"], data.get("section_id"))
        parse_answer_key(data["question_type"], data.get("correct_answer"), data.get("options"))

        question = Question(
            **{key: data.get(key) for key in QUESTION_FIELDS},
            created_by=admin.id if admin else None
        )
        if question.options is None:
            question.options = []
        if question.images is None:
            question.images = []

        self.db.add(question)
        await self.db.commit()
        await self.db.refresh(question)

        logger.info(f"Created {question.question_type.value} question {question.id} in topic {question.topic_id}")
        return serialize(question)

    async def update_question(self, question_id: UUID, updates: Dict[str, Any]) -> Dict[str, Any]:
        question = await self.get_question(question_id)
        merged = {key: getattr(question, key) for key in QUESTION_FIELDS}
        merged.update({key: value for key, value in updates.items() if key in QUESTION_FIELDS and value is not None})

        if merged["topic_id"] != question.topic_id or merged["section_id"] != question.section_id:
            await self._check_question_parents(merged["topic_id"], merged["section_id"])
        parse_answer_key(merged["question_type"], merged["correct_answer"], merged["options"])

        for key, value in merged.items():
            setattr(question, key, value)

        await self.db.commit()
        await self.db.refresh(question)
        return serialize(question)

    async def delete_question(self, question_id: UUID) -> None:
        question = await self.get_question(question_id)
        await self.db.delete(question)
        await self.db.commit()
        logger.info(f"Deleted question {question_id}")

    async def questions_for_topic(self, topic_id: UUID) -> List[Dict[str, Any]]:
        """Learner-facing question list with options laid out per type"""
        result = await self.db.execute(
            select(Question).where(Question.topic_id == topic_id).order_by(Question.created_at)
        )
        return [self._learner_view(question) for question in result.scalars().all()]

    @staticmethod
    def _learner_view(question: Question) -> Dict[str, Any]:
        raw_options = question.options if isinstance(question.options, list) else []
        options = []
        if question.question_type == QuestionType.CLICK:
            correct = (question.correct_answer or "").strip()
            options = [
                {"id": index + 1, "text": str(option).strip(), "isCorrect": str(option).strip() == correct}
                for index, option in enumerate(raw_options)
            ]
        elif question.question_type == QuestionType.DRAG:
            options = [
                {"id": index + 1, "text": str(option).strip(), "isCorrect": True}
                for index, option in enumerate(raw_options)
            ]

        return {
            "id": str(question.id),
            "content": question.content,
            "type": question.question_type.value,
            "options": options,
            "correctAnswer": question.correct_answer,
            "explanation": question.explanation,
            "images": question.images or [],
            "explanation_image": question.explanation_image,
            "section_id": str(question.section_id) if question.section_id else None,
        }
