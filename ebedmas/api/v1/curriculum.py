# ============================================================================
# Curriculum Browsing Endpoints
# ============================================================================
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from ebedmas.core.database import get_db
from ebedmas.services.content.content_service import ContentManagementService

router = APIRouter(tags=["curriculum"])


@router.get("/grades")
async def list_grades(db: AsyncSession = Depends(get_db)):
    return await ContentManagementService(db).list_items("grade")


@router.get("/grades/{grade_id}/subjects")
async def list_grade_subjects(grade_id: UUID, db: AsyncSession = Depends(get_db)):
    service = ContentManagementService(db)
    await service.get_item("grade", grade_id)
    subjects = await service.list_items("subject", parent_id=grade_id)
    return [subject for subject in subjects if subject.get("is_active", True)]


@router.get("/subjects/{subject_id}/topics")
async def list_subject_topics(subject_id: UUID, db: AsyncSession = Depends(get_db)):
    service = ContentManagementService(db)
    await service.get_item("subject", subject_id)
    return await service.list_items("topic", parent_id=subject_id)


@router.get("/topics/{topic_id}/sections")
async def list_topic_sections(topic_id: UUID, db: AsyncSession = Depends(get_db)):
    service = ContentManagementService(db)
    await service.get_item("topic", topic_id)
    return await service.list_items("section", parent_id=topic_id)
