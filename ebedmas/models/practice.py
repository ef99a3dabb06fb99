# ============================================================================
# Quiz Progress Model
# ============================================================================
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
import enum
from ebedmas.core.clock import utcnow
from ebedmas.core.database import Base

class QuizStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"

class QuizProgress(Base):
    __tablename__ = "quiz_progress"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    topic_id = Column(UUID(as_uuid=True), ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(UUID(as_uuid=True), ForeignKey("questions.id"), nullable=True)  # Last answered

    score = Column(Integer, default=0)
    total_questions = Column(Integer, nullable=False, default=0)
    completed_questions = Column(Integer, default=0)
    status = Column(String(20), default=QuizStatus.IN_PROGRESS.value, index=True)  # in_progress, completed, abandoned
    time_spent_seconds = Column(Integer, default=0)
    answers = Column(JSON, default=list)  # [{"question_id", "answer", "is_correct", "time_spent"}]

    started_at = Column(DateTime, default=utcnow)
    completed_at = Column(DateTime)

    user = relationship("User", back_populates="quiz_progress")
    topic = relationship("Topic")

    @property
    def is_terminal(self) -> bool:
        return self.status != QuizStatus.IN_PROGRESS.value

    @property
    def score_percentage(self) -> float:
        if not self.completed_questions:
            return 0.0
        return round((self.score / self.completed_questions) * 100, 2)

    def __repr__(self):
        return f"<QuizProgress {self.id} ({self.status})>"
