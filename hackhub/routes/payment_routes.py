# hackhub/routes/payment_routes.py
from fastapi import APIRouter, Depends

from hackhub.deps import get_payment_orchestrator, get_storage
from hackhub.models import (
    CreateOrderRequest,
    CreateOrderResult,
    FailPaymentRequest,
    Payment,
    VerifyPaymentRequest,
    VerifyResult,
)
from hackhub.services.payments import PaymentOrchestrator
from hackhub.store.controller import StorageController

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post("/create/{hackathon_id}/{participant_id}", status_code=201, response_model=CreateOrderResult)
async def create_payment_order(
    hackathon_id: str,
    participant_id: str,
    req: CreateOrderRequest,
    orchestrator: PaymentOrchestrator = Depends(get_payment_orchestrator),
):
    """
    Create a gateway order for a pending registration.
    The amount is in rupees; the gateway is charged in paise.
    """
    return await orchestrator.create_order(hackathon_id, participant_id, req.amount)


@router.post("/verify", response_model=VerifyResult)
async def verify_payment(
    req: VerifyPaymentRequest,
    orchestrator: PaymentOrchestrator = Depends(get_payment_orchestrator),
):
    """
    Gateway callback: signature check, then Payment and participant updates.
    """
    return await orchestrator.verify(req.payment_id, req.order_id, req.signature)


@router.post("/fail", response_model=Payment)
async def fail_payment(
    req: FailPaymentRequest,
    orchestrator: PaymentOrchestrator = Depends(get_payment_orchestrator),
):
    return await orchestrator.mark_failed(req.order_id, req.reason)


@router.get("/{order_id}", response_model=Payment)
async def get_payment(order_id: str, storage: StorageController = Depends(get_storage)):
    return await storage.read_payment(order_id)
