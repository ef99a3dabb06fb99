# ============================================================================
# School Quote Request Model
# ============================================================================
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
import uuid
import enum
from ebedmas.core.database import Base

class SchoolType(str, enum.Enum):
    PRIVATE = "Private"
    GOVERNMENT = "Government Public School"

class QuoteStatus(str, enum.Enum):
    PENDING = "pending"
    CONTACTED = "contacted"
    APPROVED = "approved"
    REJECTED = "rejected"

class SchoolQuoteRequest(Base):
    __tablename__ = "school_quote_requests"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Contact
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    phone_number = Column(String(30), nullable=False)
    position = Column(String(100))

    # School
    school_name = Column(String(255), nullable=False)
    address = Column(Text)
    town_city = Column(String(100))
    lga = Column(String(100))
    country = Column(String(100))
    school_type = Column(String(50), nullable=False)

    # Implementation
    subjects = Column(JSON, default=list)
    student_year_levels = Column(String(200))
    number_of_students = Column(Integer, default=0)
    number_of_teachers = Column(Integer, default=0)
    implementation_plan = Column(Text, default="")
    marketing_consent = Column(Boolean, default=False)

    status = Column(String(20), default=QuoteStatus.PENDING.value)
    notes = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    def __repr__(self):
        return f"<SchoolQuoteRequest {self.school_name} ({self.status})>"
