# ============================================================================
# Curriculum Schemas
# ============================================================================
from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from uuid import UUID

from ebedmas.core.exceptions import InvalidAnswerKey
from ebedmas.models.curriculum import QuestionType
from ebedmas.services.practice.answer_grader import parse_answer_key

class GradeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    order_index: int = 0

class GradeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    order_index: Optional[int] = None

class SubjectCreate(BaseModel):
    grade_id: UUID
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None

class SubjectUpdate(BaseModel):
    grade_id: Optional[UUID] = None
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None

class TopicCreate(BaseModel):
    subject_id: UUID
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    order_index: int = 0

class TopicUpdate(BaseModel):
    subject_id: Optional[UUID] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    order_index: Optional[int] = None

class SectionCreate(BaseModel):
    topic_id: UUID
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    order_index: int = 0

class SectionUpdate(BaseModel):
    topic_id: Optional[UUID] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    order_index: Optional[int] = None

class QuestionCreate(BaseModel):
    topic_id: UUID
    section_id: Optional[UUID] = None
    question_type: QuestionType
    content: str = Field(..., min_length=1)
    options: List[str] = []
    correct_answer: Optional[str] = None
    explanation: Optional[str] = None
    images: List[str] = []
    explanation_image: Optional[str] = None

    @model_validator(mode="after")
    def check_answer_key(self):
        try:
            parse_answer_key(self.question_type, self.correct_answer, self.options)
        except InvalidAnswerKey as e:
            raise ValueError(e.detail)
        return self

class QuestionUpdate(BaseModel):
    topic_id: Optional[UUID] = None
    section_id: Optional[UUID] = None
    question_type: Optional[QuestionType] = None
    content: Optional[str] = Field(None, min_length=1)
    options: Optional[List[str]] = None
    correct_answer: Optional[str] = None
    explanation: Optional[str] = None
    images: Optional[List[str]] = None
    explanation_image: Optional[str] = None
