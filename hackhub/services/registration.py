"""Registration manager: one registration per user per hackathon."""

from __future__ import annotations

import logging
from typing import Optional

from hackhub.errors import DuplicateRegistration, NotFound
from hackhub.metrics import REGISTRATIONS
from hackhub.models import (
    Hackathon,
    Participant,
    PaymentStatus,
    RegistrationRequest,
    RegistrationResult,
)
from hackhub.store.controller import StorageController
from hackhub.utils import new_id

logger = logging.getLogger("hackhub.registration")


class RegistrationManager:
    def __init__(self, storage: StorageController) -> None:
        self.storage = storage

    async def register(self, hackathon_id: str, request: RegistrationRequest) -> RegistrationResult:
        """
        Append a participant to the hackathon.

        The duplicate scan and the append happen in one mutator, under the
        controller's lock for this hackathon.
        """
        fields = request.model_dump(exclude={"id"})
        if fields["submission_date"] is None:
            del fields["submission_date"]
        participant = Participant(**fields, id=request.id or new_id())

        def add(hackathon: Hackathon) -> None:
            if hackathon.find_participant_by_user(participant.user_id) is not None:
                raise DuplicateRegistration(hackathon.id, participant.user_id)
            participant.payment_status = (
                PaymentStatus.PENDING if hackathon.payment_required else PaymentStatus.NOT_REQUIRED
            )
            hackathon.participants.append(participant.model_copy(deep=True))

        try:
            hackathon = await self.storage.update(hackathon_id, add)
        except DuplicateRegistration:
            REGISTRATIONS.labels(outcome="duplicate").inc()
            raise

        REGISTRATIONS.labels(outcome="registered").inc()
        logger.info(
            "Registered user %s in hackathon %s (payment %s)",
            participant.user_id,
            hackathon.id,
            participant.payment_status.value,
        )
        return RegistrationResult(
            **participant.model_dump(),
            hackathon_payment_required=hackathon.payment_required,
            upi_id=hackathon.upi_id or "",
        )

    async def withdraw(self, hackathon_id: str, participant_id: str) -> Participant:
        """
        Remove a participant. Payments are left untouched: a completed payment
        is only reported in the log for manual reconciliation.
        """
        removed: list = []

        def remove(hackathon: Hackathon) -> None:
            participant = hackathon.find_participant(participant_id)
            if participant is None:
                raise NotFound("participant", participant_id)
            hackathon.participants.remove(participant)
            removed.append(participant)

        await self.storage.update(hackathon_id, remove)
        participant = removed[-1]

        if participant.payment_status is PaymentStatus.COMPLETED:
            logger.warning(
                "Participant %s withdrew from hackathon %s after paying (payment %s); no refund issued",
                participant.id,
                hackathon_id,
                participant.payment_id,
            )
        else:
            logger.info("Participant %s withdrew from hackathon %s", participant.id, hackathon_id)
        return participant

    async def update_payment_details(
        self,
        hackathon_id: str,
        upi_id: Optional[str] = None,
        payment_required: Optional[bool] = None,
    ) -> Hackathon:
        def apply(hackathon: Hackathon) -> None:
            if upi_id is not None:
                hackathon.upi_id = upi_id
            if payment_required is not None:
                hackathon.payment_required = payment_required

        return await self.storage.update(hackathon_id, apply)
