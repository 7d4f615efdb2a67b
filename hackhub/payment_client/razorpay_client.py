# hackhub/payment_client/razorpay_client.py
"""
Payment gateway client (Razorpay orders API).

Providers (PAYMENT_PROVIDER):
- mock     -> no network, random order ids
- razorpay -> POST {RAZORPAY_BASE_URL}/orders with basic auth

Signature verification lives here too: HMAC-SHA256 over "orderId|paymentId"
keyed with the gateway secret, compared in constant time.
"""

import hashlib
import hmac
import logging
import uuid
from typing import Optional

import httpx

from hackhub import config
from hackhub.errors import ExternalServiceError
from hackhub.metrics import GATEWAY_LATENCY, GATEWAY_REQUESTS
from hackhub.models import GatewayOrder
from hackhub.transport import UpstreamGuard

logger = logging.getLogger("hackhub.payment_client")

CURRENCY = "INR"

guard = UpstreamGuard("payment_gateway", "Payment gateway", GATEWAY_REQUESTS, GATEWAY_LATENCY)


def generate_receipt_id() -> str:
    return f"rcpt_{uuid.uuid4().hex[:10]}"


def compute_signature(secret: str, order_id: str, payment_id: str) -> str:
    return hmac.new(
        secret.encode("utf-8"),
        f"{order_id}|{payment_id}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify_signature(secret: str, order_id: str, payment_id: str, signature: str) -> bool:
    expected = compute_signature(secret, order_id, payment_id)
    return hmac.compare_digest(expected.encode("utf-8"), (signature or "").encode("utf-8"))


class RazorpayClient:
    """
    Orders client. Credentials are checked by the caller per operation
    (config.validate_payment_config), so a process without them still starts.
    """

    def __init__(
        self,
        provider: Optional[str] = None,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.provider = provider or config.PAYMENT_PROVIDER
        self.key_id = key_id if key_id is not None else config.gateway_key_id()
        self.key_secret = key_secret if key_secret is not None else config.gateway_secret()
        self.base_url = (base_url or config.RAZORPAY_BASE_URL).rstrip("/")
        self.timeout = httpx.Timeout(float(timeout_seconds or config.PAYMENT_TIMEOUT_SECONDS))
        self.transport = transport

    async def create_order(self, amount_minor: int, receipt: str) -> GatewayOrder:
        """
        Reserve `amount_minor` paise with the gateway.
        The returned order keeps the amount in paise.
        """
        if self.provider == "mock":
            guard.record_mock()
            return GatewayOrder(id=f"order_{uuid.uuid4().hex[:14]}", amount=amount_minor, currency=CURRENCY)

        payload = {
            "amount": amount_minor,
            "currency": CURRENCY,
            "receipt": receipt,
            "payment_capture": 1,
        }
        logger.debug(f"Gateway → POST {self.base_url}/orders | receipt={receipt} amount={amount_minor}")

        async with httpx.AsyncClient(
            base_url=self.base_url,
            auth=(self.key_id, self.key_secret),
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            timeout=self.timeout,
            transport=self.transport,
        ) as client:
            data = await guard.post_json(client, "/orders", payload)

        try:
            return GatewayOrder(id=data["id"], amount=int(data["amount"]), currency=data.get("currency", CURRENCY))
        except (KeyError, TypeError, ValueError) as exc:
            logger.error(f"Malformed gateway response: {exc} – raw={data!r:.500}")
            raise ExternalServiceError("payment_gateway", "Payment gateway returned malformed response.")
