"""
Tests for the HTTP payment gateway client
"""

import json

import httpx
import pytest

from clinic_booking.services.payment_gateway import HttpPaymentGateway


def gateway_with(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpPaymentGateway("https://payments.example.com/", api_key="secret", client=client)


class TestHttpPaymentGateway:

    @pytest.mark.asyncio
    async def test_successful_charge(self, contact):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "paymentReference": "PAY-001"})

        result = await gateway_with(handler).charge(1800, "PHP", contact, "Consultation")

        assert result.success is True
        assert result.payment_reference == "PAY-001"
        assert seen["url"] == "https://payments.example.com/charges"
        assert seen["auth"] == "Bearer secret"
        assert seen["body"]["amount"] == 1800
        assert seen["body"]["currency"] == "PHP"
        assert seen["body"]["customer"]["email"] == "juan@example.com"

    @pytest.mark.asyncio
    async def test_declined_charge_carries_reason(self, contact):
        def handler(request):
            return httpx.Response(402, json={"success": False, "error": "Insufficient funds"})

        result = await gateway_with(handler).charge(1800, "PHP", contact)

        assert result.success is False
        assert result.failure_reason == "Insufficient funds"

    @pytest.mark.asyncio
    async def test_non_json_error_response(self, contact):
        def handler(request):
            return httpx.Response(500, text="Internal Server Error")

        result = await gateway_with(handler).charge(1800, "PHP", contact)

        assert result.success is False
        assert "500" in result.failure_reason

    @pytest.mark.asyncio
    async def test_network_error_is_a_failure_not_an_exception(self, contact):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = await gateway_with(handler).charge(1800, "PHP", contact)

        assert result.success is False
        assert "unavailable" in result.failure_reason

    @pytest.mark.asyncio
    async def test_timeout(self, contact):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        result = await gateway_with(handler).charge(1800, "PHP", contact)

        assert result.success is False
        assert "timed out" in result.failure_reason

    @pytest.mark.asyncio
    async def test_non_object_json_body_is_a_failure(self, contact):
        def handler(request):
            return httpx.Response(200, json=["PAY-001"])

        result = await gateway_with(handler).charge(1800, "PHP", contact)

        assert result.success is False
        assert "200" in result.failure_reason
