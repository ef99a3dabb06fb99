# ============================================================================
# Learner Model
# ============================================================================
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
from ebedmas.core.clock import utcnow
from ebedmas.core.database import Base

class Learner(Base):
    """A child registered under a parent account; capped by the parent's plan"""
    __tablename__ = "learners"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    grade = Column(String(50), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="learners")

    def __repr__(self):
        return f"<Learner {self.name} ({self.grade})>"
