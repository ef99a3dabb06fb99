# ============================================================================
# Paystack Client Tests
# ============================================================================
import httpx
import json
import pytest
from decimal import Decimal

from ebedmas.services.payments.paystack_client import PaystackClient

def client_for(handler) -> PaystackClient:
    return PaystackClient(
        secret_key="sk_test_123",
        base_url="https://paystack.test/",
        transport=httpx.MockTransport(handler)
    )

class TestVerifyTransaction:
    """Tests for Paystack transaction verification"""

    @pytest.mark.asyncio
    async def test_successful_charge(self):
        """Test successful charge"""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(200, json={
                "status": True,
                "message": "Verification successful",
                "data": {
                    "status": "success",
                    "reference": "ref_1",
                    "amount": 2700,
                    "currency": "NGN",
                    "authorization": {"last4": "4081", "authorization_code": "AUTH_x"},
                    "metadata": json.dumps({"selectedPackage": "combo", "billingCycle": "monthly"}),
                },
            })

        result = await client_for(handler).verify_transaction("ref_1")

        assert seen["url"] == "https://paystack.test/transaction/verify/ref_1"
        assert seen["auth"] == "Bearer sk_test_123"
        assert result.success is True
        assert result.amount == Decimal("27")
        assert result.card_last_four == "4081"
        assert result.authorization_code == "AUTH_x"
        assert result.metadata["selectedPackage"] == "combo"

    @pytest.mark.asyncio
    async def test_abandoned_transaction(self):
        """Test abandoned transaction"""
        def handler(request):
            return httpx.Response(200, json={
                "status": True,
                "data": {"status": "abandoned", "reference": "ref_2", "amount": 0},
            })

        result = await client_for(handler).verify_transaction("ref_2")
        assert result.success is False
        assert result.status == "abandoned"

    @pytest.mark.asyncio
    async def test_unknown_reference(self):
        """Test unknown reference"""
        def handler(request):
            return httpx.Response(400, json={"status": False, "message": "Transaction reference not found"})

        result = await client_for(handler).verify_transaction("missing")
        assert result.success is False
        assert result.error == "Transaction reference not found"

    @pytest.mark.asyncio
    async def test_network_error(self):
        """Test network error"""
        def handler(request):
            raise httpx.ConnectError("boom", request=request)

        result = await client_for(handler).verify_transaction("ref_3")
        assert result.success is False
        assert result.status == "error"
