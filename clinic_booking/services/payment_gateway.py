"""
Payment Gateway Client
Interface to the external payment collaborator.

The engine never implements charge logic: it hands over amount, currency and
customer identity, and gets back either an opaque payment reference or a
failure reason.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from clinic_booking.models.booking import ContactInfo

logger = logging.getLogger(__name__)

# Payment calls need to be reliable rather than fast
PAYMENT_TIMEOUT = httpx.Timeout(30.0, connect=10.0)


@dataclass
class PaymentResult:
    success: bool
    payment_reference: Optional[str] = None
    failure_reason: Optional[str] = None

    @classmethod
    def succeeded(cls, payment_reference: str) -> "PaymentResult":
        return cls(success=True, payment_reference=payment_reference)

    @classmethod
    def failed(cls, reason: str) -> "PaymentResult":
        return cls(success=False, failure_reason=reason)


class PaymentGateway(ABC):
    """Charges a customer; implementations never raise for a declined charge."""

    @abstractmethod
    async def charge(
        self,
        amount: float,
        currency: str,
        customer: ContactInfo,
        description: str = "",
    ) -> PaymentResult:
        ...


class HttpPaymentGateway(PaymentGateway):
    """
    Payment gateway reached over HTTP.

    POST {base_url}/charges with {amount, currency, customer, description};
    the response body is {"success": true, "paymentReference": "..."} or
    {"success": false, "error": "..."}.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._client = client

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _post(self, url: str, payload: Dict[str, Any]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(url, headers=self._headers(), json=payload)
        async with httpx.AsyncClient(timeout=PAYMENT_TIMEOUT) as client:
            return await client.post(url, headers=self._headers(), json=payload)

    async def charge(
        self,
        amount: float,
        currency: str,
        customer: ContactInfo,
        description: str = "",
    ) -> PaymentResult:
        payload = {
            "amount": amount,
            "currency": currency,
            "customer": {
                "name": customer.full_name,
                "email": customer.email,
                "phone": customer.phone,
            },
            "description": description,
        }
        url = f"{self.base_url}/charges"

        try:
            logger.info(f"Charging {amount} {currency} for {customer.email}")
            response = await self._post(url, payload)
        except httpx.TimeoutException:
            logger.error(f"Payment request timed out after {PAYMENT_TIMEOUT.read}s")
            return PaymentResult.failed("Payment service timed out. Please try again.")
        except httpx.HTTPError as e:
            logger.error(f"Payment request failed: {e}")
            return PaymentResult.failed("Payment service is unavailable. Please try again.")

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            logger.warning(f"Unexpected payment response body: {type(data).__name__}")
            data = {}

        if response.status_code < 400 and data.get("success") and data.get("paymentReference"):
            logger.info(f"Payment succeeded: {data['paymentReference']}")
            return PaymentResult.succeeded(data["paymentReference"])

        reason = data.get("error") or f"Payment declined (HTTP {response.status_code})"
        logger.warning(f"Payment failed: {reason}")
        return PaymentResult.failed(reason)
