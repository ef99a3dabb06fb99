# ============================================================================
# School Quote Request Endpoints
# ============================================================================
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from uuid import UUID

from ebedmas.api.deps import require_admin
from ebedmas.core.database import get_db
from ebedmas.models.quote import QuoteStatus
from ebedmas.models.user import User
from ebedmas.schemas.quote import QuoteRequestCreate, QuoteStatusUpdate
from ebedmas.services.schools.quote_service import QuoteRequestService

router = APIRouter(tags=["schools"])


@router.post("/quote-requests", status_code=status.HTTP_201_CREATED)
async def submit_quote_request(
    request: QuoteRequestCreate,
    db: AsyncSession = Depends(get_db)
):
    """Public form for schools asking for a quote"""
    created = await QuoteRequestService(db).create(request.to_record())
    return {"success": True, "message": "Quote request submitted successfully", "request": created}


@router.get("/admin/quote-requests")
async def list_quote_requests(
    status: Optional[QuoteStatus] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    requests = await QuoteRequestService(db).list_requests(status=status)
    return {"requests": requests, "total": len(requests)}


@router.put("/admin/quote-requests/{request_id}")
async def update_quote_status(
    request_id: UUID,
    request: QuoteStatusUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await QuoteRequestService(db).update_status(request_id, request.status, notes=request.notes)
