# hackhub/errors.py
"""Error taxonomy of the participation lifecycle.

Every error carries a stable machine-readable ``code`` and the HTTP status the
API layer renders it with, so the frontend can show a specific message.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class HackhubError(Exception):
    """Base class for every error surfaced to API callers."""

    code = "error"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        content: Dict[str, Any] = {"error": self.code, "detail": self.message}
        if self.details:
            content["details"] = self.details
        return content


class NotFound(HackhubError):
    """Hackathon, participant, payment or submission missing."""

    code = "not_found"
    status_code = 404

    def __init__(self, resource: str, identifier: Optional[str] = None) -> None:
        message = f"{resource.capitalize()} not found"
        super().__init__(message, {"resource": resource, "id": identifier} if identifier else {"resource": resource})
        self.resource = resource
        self.identifier = identifier


class DuplicateRegistration(HackhubError):
    code = "duplicate_registration"
    status_code = 409

    def __init__(self, hackathon_id: str, user_id: str) -> None:
        super().__init__(
            "You have already registered for this hackathon",
            {"hackathonId": hackathon_id, "userId": user_id},
        )


class PaymentNotRequired(HackhubError):
    code = "payment_not_required"
    status_code = 400

    def __init__(self, hackathon_id: str) -> None:
        super().__init__("Payment not required for this hackathon", {"hackathonId": hackathon_id})


class InvalidSignature(HackhubError):
    code = "invalid_signature"
    status_code = 400

    def __init__(self) -> None:
        super().__init__("Invalid payment signature")


class ValidationError(HackhubError):
    """Bad amount or malformed request that got past the schema layer."""

    code = "validation_error"
    status_code = 400


class InvalidPaymentState(ValidationError):
    """A Payment transition outside pending -> {completed, failed}."""

    code = "invalid_payment_state"
    status_code = 409


class NoSubmissions(HackhubError):
    code = "no_submissions"
    status_code = 400

    def __init__(self, hackathon_id: str) -> None:
        super().__init__("No projects submitted for ranking", {"hackathonId": hackathon_id})


class StorageUnavailable(HackhubError):
    """Connectivity-class storage failure. Triggers the fallback mode switch."""

    code = "storage_unavailable"
    status_code = 503


class StorageDataError(HackhubError):
    """Storage rejected the data itself (too large, bad shape, duplicate key)."""

    code = "storage_data_error"
    status_code = 400


class ExternalServiceError(HackhubError):
    """Payment gateway or evaluation service failure. Not retried by the services."""

    code = "external_service_unavailable"
    status_code = 502

    def __init__(self, service: str, message: str) -> None:
        super().__init__(message, {"service": service})
        self.service = service


class ServiceNotConfigured(HackhubError):
    """Gateway or evaluation credentials are missing from the environment."""

    code = "service_not_configured"
    status_code = 503

    def __init__(self, service: str, message: str) -> None:
        super().__init__(message, {"service": service})
        self.service = service
