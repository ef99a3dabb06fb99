# ============================================================================
# Paystack Integration
# ============================================================================
import httpx
from typing import Any, Dict, Optional
from dataclasses import dataclass, field
from decimal import Decimal
import json
import logging

from ebedmas.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

@dataclass
class PaystackVerification:
    """Standardized result of a transaction verification"""
    success: bool
    status: str
    reference: str
    amount: Decimal = Decimal("0")  # In major currency units
    currency: Optional[str] = None
    card_last_four: Optional[str] = None
    authorization_code: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

class PaystackClient:
    """Client for the Paystack transaction API"""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.transport = transport
        self.base_url = (base_url or settings.PAYSTACK_BASE_URL).rstrip("/")
        self.headers = {
            "Authorization": f"Bearer {secret_key or settings.PAYSTACK_SECRET_KEY}",
            "Content-Type": "application/json"
        }

    async def verify_transaction(self, reference: str) -> PaystackVerification:
        """Verify a transaction reference returned by the checkout popup"""
        url = f"{self.base_url}/transaction/verify/{reference}"
        try:
            async with httpx.AsyncClient(
                timeout=settings.PAYSTACK_TIMEOUT_SECONDS,
                transport=self.transport
            ) as client:
                response = await client.get(url, headers=self.headers)
                body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Paystack verification error for {reference}: {e}")
            return PaystackVerification(success=False, status="error", reference=reference, error=str(e))

        data = body.get("data") or {}
        if response.status_code != 200 or not body.get("status"):
            return PaystackVerification(
                success=False,
                status=data.get("status", "failed"),
                reference=reference,
                error=body.get("message", "Verification failed")
            )

        authorization = data.get("authorization") or {}
        metadata = data.get("metadata") or {}
        if isinstance(metadata, str):
            try:
                metadata = json.loads(metadata)
            except ValueError:
                metadata = {}
        return PaystackVerification(
            success=data.get("status") == "success",
            status=data.get("status", "unknown"),
            reference=data.get("reference", reference),
            # Paystack reports amounts in the minor unit (kobo)
            amount=Decimal(str(data.get("amount", 0))) / 100,
            currency=data.get("currency"),
            card_last_four=authorization.get("last4"),
            authorization_code=authorization.get("authorization_code"),
            metadata=metadata,
        )
