# hackhub/services/__init__.py
from .payments import PaymentOrchestrator
from .registration import RegistrationManager
from .submissions import SubmissionCoordinator

__all__ = ["PaymentOrchestrator", "RegistrationManager", "SubmissionCoordinator"]
