# ============================================================================
# User Model
# ============================================================================
from sqlalchemy import Column, String, Boolean, DateTime, Enum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
import enum
from ebedmas.core.database import Base

class UserRole(str, enum.Enum):
    USER = "user"
    TRIAL = "trial"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

ADMIN_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPER_ADMIN})

def is_admin(role) -> bool:
    """True for roles allowed into the admin surface"""
    try:
        return UserRole(role) in ADMIN_ROLES
    except ValueError:
        return False

class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=True)  # Trial users set one later
    role = Column(Enum(UserRole), nullable=False, default=UserRole.USER)
    is_active = Column(Boolean, default=True)
    has_subscription = Column(Boolean, default=False)
    last_login = Column(DateTime)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    subscriptions = relationship("Subscription", back_populates="user", order_by="Subscription.created_at")
    quiz_progress = relationship("QuizProgress", back_populates="user", cascade="all, delete-orphan")
    learners = relationship("Learner", back_populates="user", cascade="all, delete-orphan", order_by="Learner.created_at")

    @property
    def is_admin(self) -> bool:
        return is_admin(self.role)

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def __repr__(self):
        return f"<User {self.email} ({self.role.value})>"
