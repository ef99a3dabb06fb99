# ============================================================================
# Test Configuration & Fixtures
# ============================================================================
import os

# Point the app at SQLite before any ebedmas module reads settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("DEBUG", "false")

import pytest
from typing import AsyncGenerator
from decimal import Decimal
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from ebedmas.main import app
from ebedmas.core.database import Base, get_db
from ebedmas.core.security import create_user_token, get_password_hash
from ebedmas.models.curriculum import Grade, Question, QuestionType, Section, Subject, Topic
from ebedmas.models.user import User, UserRole
from ebedmas.services.payments.pricing import pricing_store

# Test database URL (in-memory SQLite shared across the session's connections)
TEST_DATABASE_URL = "sqlite+aiosqlite://"

PRICING_RECORDS = [
    {
        "id": 1,
        "type": "all_access",
        "title": "All Access",
        "subjects": ["Maths", "English", "Science"],
        "monthlyPrice": 15,
        "yearlyPrice": 144,
        "yearlyDiscountPercentage": 20,
        "monthlyAdditionalChildDiscountAmount": 3,
        "yearlyAdditionalChildDiscountAmount": 30,
    },
    {
        "id": 2,
        "type": "combo",
        "title": "Maths + English",
        "subjects": ["Maths", "English"],
        "monthlyPrice": 11,
        "yearlyPrice": 105.6,
        "yearlyDiscountPercentage": 20,
        "monthlyAdditionalChildDiscountAmount": 3,
        "yearlyAdditionalChildDiscountAmount": 25,
    },
    {
        "id": 3,
        "type": "single",
        "title": "Single Subject",
        "subjects": ["Maths", "English", "Science"],
        "monthlyPrice": 7,
        "yearlyPrice": 67.2,
        "yearlyDiscountPercentage": 20,
        "monthlyAdditionalChildDiscountAmount": 2,
        "yearlyAdditionalChildDiscountAmount": 15,
    },
]

@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database for each test"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    pricing_store.clear()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()

@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with overridden database"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()

@pytest.fixture
async def pricing(db_session: AsyncSession):
    """Default pricing stored and loaded into the process-wide snapshot"""
    return await pricing_store.update(db_session, PRICING_RECORDS)

# ============================================================================
# Users
# ============================================================================
async def make_user(db: AsyncSession, email: str, role: UserRole = UserRole.USER, password: str = "password123") -> User:
    user = User(
        email=email,
        username=email.split("@")[0],
        password_hash=get_password_hash(password),
        role=role,
        is_active=True
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user

@pytest.fixture
async def learner(db_session: AsyncSession) -> User:
    return await make_user(db_session, "learner@example.com")

@pytest.fixture
async def admin(db_session: AsyncSession) -> User:
    return await make_user(db_session, "admin@example.com", role=UserRole.ADMIN)

@pytest.fixture
async def super_admin(db_session: AsyncSession) -> User:
    return await make_user(db_session, "root@example.com", role=UserRole.SUPER_ADMIN)

def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}

# ============================================================================
# Content
# ============================================================================
@pytest.fixture
async def topic(db_session: AsyncSession) -> Topic:
    grade = Grade(name="Year 3", order_index=3)
    db_session.add(grade)
    await db_session.flush()

    subject = Subject(grade_id=grade.id, name="Maths")
    db_session.add(subject)
    await db_session.flush()

    topic = Topic(subject_id=subject.id, name="Animals and Numbers")
    db_session.add(topic)
    await db_session.commit()
    await db_session.refresh(topic)
    return topic

@pytest.fixture
async def section(db_session: AsyncSession, topic: Topic) -> Section:
    section = Section(topic_id=topic.id, name="Warm up")
    db_session.add(section)
    await db_session.commit()
    await db_session.refresh(section)
    return section

@pytest.fixture
async def questions(db_session: AsyncSession, topic: Topic) -> dict:
    """One question of each type, keyed by type"""
    items = {
        QuestionType.TEXT: Question(
            topic_id=topic.id, question_type=QuestionType.TEXT,
            content="What is 2 + 2?", correct_answer="Four", explanation="2 + 2 = 4"
        ),
        QuestionType.CLICK: Question(
            topic_id=topic.id, question_type=QuestionType.CLICK,
            content="Pick the mammal", options=["Shark", "Dog", "Eagle"], correct_answer="Dog"
        ),
        QuestionType.DRAG: Question(
            topic_id=topic.id, question_type=QuestionType.DRAG,
            content="Drag the pets", options=["cat", "dog", "lion"], correct_answer="cat,dog"
        ),
        QuestionType.DRAW: Question(
            topic_id=topic.id, question_type=QuestionType.DRAW,
            content="Draw a triangle", correct_answer="triangle"
        ),
    }
    db_session.add_all(items.values())
    await db_session.commit()
    for question in items.values():
        await db_session.refresh(question)
    return items

def money(value) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"))
