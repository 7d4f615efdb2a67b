# hackhub/deps.py
"""Process-wide singletons and FastAPI dependency providers.

Routers depend on the providers below; tests swap them through
``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends

from hackhub import config
from hackhub.llm_client.evaluator import EvaluationService, get_evaluation_service
from hackhub.payment_client import RazorpayClient
from hackhub.services.payments import PaymentOrchestrator
from hackhub.services.registration import RegistrationManager
from hackhub.services.submissions import SubmissionCoordinator
from hackhub.store.base import AggregateStore
from hackhub.store.controller import StorageController
from hackhub.store.json_store import JsonFileStore

_storage: Optional[StorageController] = None
_gateway: Optional[RazorpayClient] = None
_evaluator: Optional[EvaluationService] = None


def build_durable_store() -> AggregateStore:
    if config.STORAGE_BACKEND == "mongo":
        from hackhub.store.mongo_store import MongoStore

        return MongoStore(config.MONGODB_URI, config.MONGODB_DATABASE, config.STORAGE_TIMEOUT_SECONDS)
    return JsonFileStore(config.DATA_DIR)


def get_storage() -> StorageController:
    global _storage
    if _storage is None:
        _storage = StorageController(
            build_durable_store(),
            timeout_seconds=config.STORAGE_TIMEOUT_SECONDS,
            fallback_enabled=config.STORAGE_FALLBACK_ENABLED,
        )
    return _storage


def get_gateway() -> RazorpayClient:
    global _gateway
    if _gateway is None:
        _gateway = RazorpayClient()
    return _gateway


def get_evaluator() -> EvaluationService:
    global _evaluator
    if _evaluator is None:
        _evaluator = get_evaluation_service()
    return _evaluator


def get_registration_manager(storage: StorageController = Depends(get_storage)) -> RegistrationManager:
    return RegistrationManager(storage)


def get_payment_orchestrator(
    storage: StorageController = Depends(get_storage),
    gateway: RazorpayClient = Depends(get_gateway),
) -> PaymentOrchestrator:
    return PaymentOrchestrator(storage, gateway)


def get_submission_coordinator(
    storage: StorageController = Depends(get_storage),
    evaluator: EvaluationService = Depends(get_evaluator),
) -> SubmissionCoordinator:
    return SubmissionCoordinator(storage, evaluator)
