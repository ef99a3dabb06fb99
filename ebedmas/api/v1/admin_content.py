# ============================================================================
# Admin API Endpoints - Content Hierarchy
# ============================================================================
"""
Grade -> Subject -> Topic -> Section -> Question management.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from uuid import UUID

from ebedmas.api.deps import require_admin
from ebedmas.core.database import get_db
from ebedmas.models.curriculum import QuestionType
from ebedmas.models.user import User
from ebedmas.schemas.curriculum import (
    GradeCreate,
    GradeUpdate,
    QuestionCreate,
    QuestionUpdate,
    SectionCreate,
    SectionUpdate,
    SubjectCreate,
    SubjectUpdate,
    TopicCreate,
    TopicUpdate,
)
from ebedmas.services.content.content_service import ContentManagementService, serialize

router = APIRouter(prefix="/admin", tags=["admin-content"])


# ============================================================================
# Grades
# ============================================================================
@router.get("/grades")
async def list_grades(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await ContentManagementService(db).list_items("grade")


@router.post("/grades", status_code=status.HTTP_201_CREATED)
async def create_grade(
    request: GradeCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await ContentManagementService(db).create_item("grade", request.model_dump(), admin=admin)


@router.put("/grades/{grade_id}")
async def update_grade(
    grade_id: UUID,
    request: GradeUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await ContentManagementService(db).update_item("grade", grade_id, request.model_dump(exclude_unset=True))


@router.delete("/grades/{grade_id}")
async def delete_grade(
    grade_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    await ContentManagementService(db).delete_item("grade", grade_id)
    return {"success": True}


# ============================================================================
# Subjects
# ============================================================================
@router.get("/subjects")
async def list_subjects(
    grade_id: Optional[UUID] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await ContentManagementService(db).list_items("subject", parent_id=grade_id)


@router.post("/subjects", status_code=status.HTTP_201_CREATED)
async def create_subject(
    request: SubjectCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await ContentManagementService(db).create_item("subject", request.model_dump(), admin=admin)


@router.put("/subjects/{subject_id}")
async def update_subject(
    subject_id: UUID,
    request: SubjectUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await ContentManagementService(db).update_item("subject", subject_id, request.model_dump(exclude_unset=True))


@router.delete("/subjects/{subject_id}")
async def delete_subject(
    subject_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    await ContentManagementService(db).delete_item("subject", subject_id)
    return {"success": True}


# ============================================================================
# Topics
# ============================================================================
@router.get("/topics")
async def list_topics(
    subject_id: Optional[UUID] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await ContentManagementService(db).list_items("topic", parent_id=subject_id)


@router.post("/topics", status_code=status.HTTP_201_CREATED)
async def create_topic(
    request: TopicCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await ContentManagementService(db).create_item("topic", request.model_dump(), admin=admin)


@router.put("/topics/{topic_id}")
async def update_topic(
    topic_id: UUID,
    request: TopicUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await ContentManagementService(db).update_item("topic", topic_id, request.model_dump(exclude_unset=True))


@router.delete("/topics/{topic_id}")
async def delete_topic(
    topic_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    await ContentManagementService(db).delete_item("topic", topic_id)
    return {"success": True}


# ============================================================================
# Sections
# ============================================================================
@router.get("/sections")
async def list_sections(
    topic_id: Optional[UUID] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await ContentManagementService(db).list_items("section", parent_id=topic_id)


@router.post("/sections", status_code=status.HTTP_201_CREATED)
async def create_section(
    request: SectionCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await ContentManagementService(db).create_item("section", request.model_dump(), admin=admin)


@router.put("/sections/{section_id}")
async def update_section(
    section_id: UUID,
    request: SectionUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await ContentManagementService(db).update_item("section", section_id, request.model_dump(exclude_unset=True))


@router.delete("/sections/{section_id}")
async def delete_section(
    section_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    await ContentManagementService(db).delete_item("section", section_id)
    return {"success": True}


# ============================================================================
# Questions
# ============================================================================
@router.get("/questions")
async def list_questions(
    topic_id: Optional[UUID] = None,
    section_id: Optional[UUID] = None,
    question_type: Optional[QuestionType] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    service = ContentManagementService(db)
    return await service.list_questions(topic_id=topic_id, section_id=section_id, question_type=question_type)


@router.get("/questions/{question_id}")
async def get_question(
    question_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return serialize(await ContentManagementService(db).get_question(question_id))


@router.post("/questions", status_code=status.HTTP_201_CREATED)
async def create_question(
    request: QuestionCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await ContentManagementService(db).create_question(request.model_dump(), admin=admin)


@router.put("/questions/{question_id}")
async def update_question(
    question_id: UUID,
    request: QuestionUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    service = ContentManagementService(db)
    return await service.update_question(question_id, request.model_dump(exclude_unset=True))


@router.delete("/questions/{question_id}")
async def delete_question(
    question_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    await ContentManagementService(db).delete_question(question_id)
    return {"success": True}
