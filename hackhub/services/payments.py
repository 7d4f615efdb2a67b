"""
Payment orchestrator.

Payment state machine: pending -> completed | failed (both terminal).

verify() is a two-step saga:
1. commit the Payment transition (pending -> completed)
2. mark the participant paid on the hackathon aggregate

Step 1 is never rolled back. Step 2 only depends on the committed Payment, so
it is retried on storage unavailability, and a caller may re-send the same
verification to re-run it.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from hackhub import config
from hackhub.errors import (
    InvalidPaymentState,
    InvalidSignature,
    NotFound,
    PaymentNotRequired,
    ServiceNotConfigured,
    StorageUnavailable,
    ValidationError,
)
from hackhub.metrics import PAYMENT_TRANSITIONS
from hackhub.models import (
    CreateOrderResult,
    Hackathon,
    OrderSummary,
    Payment,
    PaymentRecordStatus,
    PaymentStatus,
    VerifyResult,
)
from hackhub.payment_client import RazorpayClient, generate_receipt_id, verify_signature
from hackhub.store.controller import StorageController

logger = logging.getLogger("hackhub.payments")

# paise per rupee
MINOR_UNITS = 100


def parse_amount(raw: Any) -> int:
    """
    Amount in whole rupees. Accepts ints, integral floats and numeric strings.
    """
    if raw is None or isinstance(raw, bool):
        raise ValidationError("Invalid payment amount", {"amount": raw})
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Invalid payment amount", {"amount": raw})
    if not value.is_finite() or value <= 0:
        raise ValidationError("Invalid payment amount", {"amount": raw})
    if value != value.to_integral_value():
        raise ValidationError("Payment amount must be a whole number of rupees", {"amount": raw})
    return int(value)


class PaymentOrchestrator:
    def __init__(
        self,
        storage: StorageController,
        gateway: RazorpayClient,
        secret: Optional[str] = None,
        key_id: Optional[str] = None,
        settle_attempts: int = 3,
    ) -> None:
        self.storage = storage
        self.gateway = gateway
        self.secret = secret if secret is not None else config.gateway_secret()
        self.key_id = key_id if key_id is not None else config.gateway_key_id()
        self.settle_attempts = settle_attempts

    def _ensure_configured(self) -> None:
        config.validate_payment_config()
        if not self.secret:
            raise ServiceNotConfigured("payment_gateway", "Payment gateway secret is not configured.")

    # ------------------------------------------------------------------
    # Order creation
    # ------------------------------------------------------------------
    async def create_order(self, hackathon_id: str, participant_id: str, amount: Any) -> CreateOrderResult:
        rupees = parse_amount(amount)
        self._ensure_configured()

        hackathon = await self.storage.read(hackathon_id)
        if hackathon.find_participant(participant_id) is None:
            raise NotFound("participant", participant_id)
        if not hackathon.payment_required:
            raise PaymentNotRequired(hackathon_id)

        receipt_id = generate_receipt_id()
        order = await self.gateway.create_order(rupees * MINOR_UNITS, receipt_id)

        payment = await self.storage.insert_payment(
            Payment(
                hackathon_id=hackathon_id,
                participant_id=participant_id,
                amount=rupees,
                order_id=order.id,
                receipt_id=receipt_id,
            )
        )
        PAYMENT_TRANSITIONS.labels(status=PaymentRecordStatus.PENDING.value).inc()
        logger.info("Created order %s for participant %s (%d INR)", order.id, participant_id, rupees)

        return CreateOrderResult(
            order=OrderSummary(id=order.id, amount=order.amount / MINOR_UNITS, currency=order.currency),
            payment=payment,
            upi_id=hackathon.upi_id or "",
            key_id=self.key_id,
        )

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------
    async def verify(self, payment_id: str, order_id: str, signature: str) -> VerifyResult:
        self._ensure_configured()
        if not verify_signature(self.secret, order_id, payment_id, signature):
            logger.warning("Rejected payment callback with invalid signature for order %s", order_id)
            raise InvalidSignature()

        transitioned = False

        def complete(payment: Payment) -> None:
            nonlocal transitioned
            transitioned = False
            if payment.status is PaymentRecordStatus.PENDING:
                payment.status = PaymentRecordStatus.COMPLETED
                payment.payment_id = payment_id
                transitioned = True
            elif payment.status is PaymentRecordStatus.COMPLETED and payment.payment_id == payment_id:
                # Re-verification: step 1 already committed.
                return
            else:
                raise InvalidPaymentState(
                    f"Payment is already {payment.status.value}",
                    {"orderId": order_id, "status": payment.status.value},
                )

        payment = await self.storage.update_payment(order_id, complete)
        if transitioned:
            PAYMENT_TRANSITIONS.labels(status=PaymentRecordStatus.COMPLETED.value).inc()

        await self._settle_participant(payment)
        logger.info("Verified payment %s for order %s", payment_id, order_id)
        return VerifyResult(payment=payment)

    async def _settle_participant(self, payment: Payment) -> Hackathon:
        def mark_paid(hackathon: Hackathon) -> None:
            participant = hackathon.find_participant(payment.participant_id)
            if participant is None:
                raise NotFound("participant", payment.participant_id)
            participant.payment_status = PaymentStatus.COMPLETED
            participant.payment_id = payment.payment_id

        async for attempt in AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self.settle_attempts),
            wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
            retry=retry_if_exception_type(StorageUnavailable),
        ):
            with attempt:
                return await self.storage.update(payment.hackathon_id, mark_paid)

    # ------------------------------------------------------------------
    # Failure
    # ------------------------------------------------------------------
    async def mark_failed(self, order_id: str, reason: Optional[str] = None) -> Payment:
        """pending -> failed. The participant keeps paymentStatus=pending and may retry."""

        def fail(payment: Payment) -> None:
            if payment.status is not PaymentRecordStatus.PENDING:
                raise InvalidPaymentState(
                    f"Payment is already {payment.status.value}",
                    {"orderId": order_id, "status": payment.status.value},
                )
            payment.status = PaymentRecordStatus.FAILED
            payment.failure_reason = reason

        payment = await self.storage.update_payment(order_id, fail)
        PAYMENT_TRANSITIONS.labels(status=PaymentRecordStatus.FAILED.value).inc()
        logger.info("Payment for order %s marked failed: %s", order_id, reason or "no reason given")
        return payment
