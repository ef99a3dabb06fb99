# ============================================================================
# Curriculum Models
# ============================================================================
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey
from sqlalchemy import Text, Enum, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
import enum
from ebedmas.core.database import Base

class QuestionType(str, enum.Enum):
    TEXT = "text"
    CLICK = "click"
    DRAG = "drag"
    DRAW = "draw"
    PAINT = "paint"

class Grade(Base):
    __tablename__ = "grades"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True)  # e.g. "Year 1"
    description = Column(Text)
    order_index = Column(Integer, default=0)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    subjects = relationship("Subject", back_populates="grade")

    def __repr__(self):
        return f"<Grade {self.name}>"

class Subject(Base):
    __tablename__ = "subjects"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    grade_id = Column(UUID(as_uuid=True), ForeignKey("grades.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, default=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    grade = relationship("Grade", back_populates="subjects")
    topics = relationship("Topic", back_populates="subject")

    def __repr__(self):
        return f"<Subject {self.name}>"

class Topic(Base):
    __tablename__ = "topics"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    subject_id = Column(UUID(as_uuid=True), ForeignKey("subjects.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    order_index = Column(Integer, default=0)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    subject = relationship("Subject", back_populates="topics")
    sections = relationship("Section", back_populates="topic")
    questions = relationship("Question", back_populates="topic")

    def __repr__(self):
        return f"<Topic {self.name}>"

class Section(Base):
    __tablename__ = "sections"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    topic_id = Column(UUID(as_uuid=True), ForeignKey("topics.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    order_index = Column(Integer, default=0)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    topic = relationship("Topic", back_populates="sections")
    questions = relationship("Question", back_populates="section")

    def __repr__(self):
        return f"<Section {self.name}>"

class Question(Base):
    __tablename__ = "questions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    topic_id = Column(UUID(as_uuid=True), ForeignKey("topics.id"), nullable=False, index=True)
    section_id = Column(UUID(as_uuid=True), ForeignKey("sections.id"), nullable=True, index=True)

    question_type = Column(Enum(QuestionType), nullable=False)
    content = Column(Text, nullable=False)
    options = Column(JSON, default=list)  # click: choices, drag: draggable tokens
    correct_answer = Column(Text, nullable=True)  # string, or comma-joined tokens for drag
    explanation = Column(Text)
    images = Column(JSON, default=list)  # image URLs
    explanation_image = Column(String(500))

    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    topic = relationship("Topic", back_populates="questions")
    section = relationship("Section", back_populates="questions")

    def __repr__(self):
        return f"<Question {self.id} ({self.question_type.value})>"
