from .llm_client import LLMClient
from .evaluator import EvaluationService, LLMEvaluationService, MockEvaluationService, get_evaluation_service
from .models import RankingCandidate, RankingResult

__all__ = [
    "LLMClient",
    "EvaluationService",
    "LLMEvaluationService",
    "MockEvaluationService",
    "get_evaluation_service",
    "RankingCandidate",
    "RankingResult",
]
