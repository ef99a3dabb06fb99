# ============================================================================
# Practice Schemas
# ============================================================================
from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID

class SubmitAnswerRequest(BaseModel):
    questionId: UUID
    answer: Optional[str] = None
    progressId: Optional[UUID] = None
    timeSpent: int = Field(0, ge=0)

class SubmitAnswerResponse(BaseModel):
    isCorrect: Optional[bool]
    explanation: str
    correctAnswer: Optional[str]
    progress: Optional[dict] = None

class StartQuizRequest(BaseModel):
    topic_id: UUID

class RecordProgressRequest(BaseModel):
    """Record an answer graded elsewhere (client-side quizzes)"""
    question_id: UUID
    is_correct: bool
    answer: Optional[str] = None
    time_spent: int = Field(0, ge=0)
