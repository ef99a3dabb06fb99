# ============================================================================
# School Quote Requests
# ============================================================================
from typing import Optional, Dict, List, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from uuid import UUID
import logging

from ebedmas.core.exceptions import ContentNotFound
from ebedmas.models.quote import QuoteStatus, SchoolQuoteRequest
from ebedmas.services.content.content_service import serialize

logger = logging.getLogger(__name__)

class QuoteRequestService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        request = SchoolQuoteRequest(**data, status=QuoteStatus.PENDING.value)
        self.db.add(request)
        await self.db.commit()
        await self.db.refresh(request)
        logger.info(f"Quote request {request.id} from {request.school_name}")
        return serialize(request)

    async def list_requests(self, status: Optional[QuoteStatus] = None) -> List[Dict[str, Any]]:
        query = select(SchoolQuoteRequest).order_by(SchoolQuoteRequest.created_at.desc())
        if status is not None:
            query = query.where(SchoolQuoteRequest.status == status.value)
        result = await self.db.execute(query)
        return [serialize(request) for request in result.scalars().all()]

    async def update_status(self, request_id: UUID, status: QuoteStatus, notes: Optional[str] = None) -> Dict[str, Any]:
        request = await self.db.get(SchoolQuoteRequest, request_id)
        if not request:
            raise ContentNotFound("quote request", request_id)
        request.status = status.value
        if notes is not None:
            request.notes = notes
        await self.db.commit()
        await self.db.refresh(request)
        return serialize(request)
