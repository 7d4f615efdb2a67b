# hackhub/routes/participant_routes.py
from fastapi import APIRouter, Depends

from hackhub.deps import get_registration_manager, get_storage
from hackhub.models import (
    Hackathon,
    PaymentDetailsRequest,
    RegistrationRequest,
    RegistrationResult,
)
from hackhub.services.registration import RegistrationManager
from hackhub.store.controller import StorageController

router = APIRouter(prefix="/api/hackathons", tags=["participants"])


@router.get("/{hackathon_id}", response_model=Hackathon)
async def get_hackathon(hackathon_id: str, storage: StorageController = Depends(get_storage)):
    """
    Read one hackathon aggregate (hackathon + participants).
    """
    return await storage.read(hackathon_id)


@router.post("/{hackathon_id}/participants", status_code=201, response_model=RegistrationResult)
async def register_participant(
    hackathon_id: str,
    req: RegistrationRequest,
    manager: RegistrationManager = Depends(get_registration_manager),
):
    """
    Register a participant. The response tells the client whether to continue
    to payment (hackathonPaymentRequired) and which UPI id to offer.
    """
    return await manager.register(hackathon_id, req)


@router.delete("/{hackathon_id}/participants/{participant_id}")
async def withdraw_participant(
    hackathon_id: str,
    participant_id: str,
    manager: RegistrationManager = Depends(get_registration_manager),
):
    participant = await manager.withdraw(hackathon_id, participant_id)
    return {"message": "Participant withdrawn successfully", "participantId": participant.id}


@router.put("/{hackathon_id}/payment-details", response_model=Hackathon)
async def update_payment_details(
    hackathon_id: str,
    req: PaymentDetailsRequest,
    manager: RegistrationManager = Depends(get_registration_manager),
):
    return await manager.update_payment_details(hackathon_id, req.upi_id, req.payment_required)
