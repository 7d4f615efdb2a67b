# hackhub/llm_client/evaluator.py
import abc
import hashlib
import json
import logging
from typing import Any, List, Optional

from pydantic import ValidationError as PydanticValidationError

from hackhub import config
from hackhub.errors import ExternalServiceError
from hackhub.models import Evaluation

from .llm_client import LLMClient
from .models import RankingCandidate, RankingResult

logger = logging.getLogger("hackhub.evaluator")

METRIC_NAMES = (
    "innovation",
    "technicalComplexity",
    "codeQuality",
    "userExperience",
    "documentation",
    "scalability",
    "maintainability",
)


# ---------------------------------------------------------------------
# Prompting
# ---------------------------------------------------------------------
EVALUATION_SYSTEM_PROMPT = """
You are an expert technical evaluator for hackathon projects.

IMPORTANT RULES:
- Output MUST be a single valid JSON object and nothing else.
- Every score is a number between 0 and 100.
- The JSON MUST match this schema:

{
  "score": number,
  "feedback": string,
  "metrics": {
    "innovation": number,
    "technicalComplexity": number,
    "codeQuality": number,
    "userExperience": number,
    "documentation": number,
    "scalability": number,
    "maintainability": number
  },
  "strengths": string[],
  "areasForImprovement": string[],
  "recommendations": string[]
}
""".strip()


RANKING_SYSTEM_PROMPT = """
You compare and rank hackathon projects.

IMPORTANT RULES:
- Output MUST be a single valid JSON object and nothing else.
- Return exactly one entry per project.
- "index" is the zero-based position of the project in the list you were given.
- Echo the project's participantId unchanged.
- The JSON MUST match this schema:

{
  "rankings": [
    {
      "index": number,
      "participantId": string,
      "score": number,
      "feedback": string
    }
  ]
}
""".strip()


def _build_evaluation_prompt(description: str, github_link: str) -> str:
    return f"""
PROJECT
-------
Description:
{description}

GitHub Link: {github_link}

Instructions:
- Give an overall score out of 100.
- Score each metric: innovation and creativity, technical complexity, code
  quality, user experience, documentation, scalability, maintainability.
- List key strengths, areas for improvement and specific recommendations.
- Explain the evaluation in the feedback field.
""".strip()


def _build_ranking_prompt(candidates: List[RankingCandidate]) -> str:
    blocks = "\n\n".join(
        f"Project index {i} (participantId: {c.participant_id}):\n"
        f"Description: {c.description}\n"
        f"GitHub: {c.github_link}"
        for i, c in enumerate(candidates)
    )
    return f"""
PROJECTS
--------
{blocks}

Rank these projects on overall technical merit, innovation and creativity,
implementation quality and potential impact. For each project give a score
out of 100 and a brief justification.
""".strip()


# ---------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------
def _extract_json(content: str) -> Any:
    """
    Parse the JSON payload of an LLM reply, tolerating ```json fences.
    """
    text = (content or "").strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        text = text.rsplit("```", 1)[0]
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error(f"LLM output is not valid JSON: {exc}")
        raise ExternalServiceError("evaluation", "Evaluation service returned invalid JSON.")


def _parse_evaluation(content: str) -> Evaluation:
    raw = _extract_json(content)
    if not isinstance(raw, dict):
        raise ExternalServiceError("evaluation", "Evaluation service returned an unexpected shape.")
    raw.pop("evaluatedBy", None)
    raw.pop("evaluatedAt", None)
    try:
        return Evaluation.model_validate(raw)
    except PydanticValidationError as exc:
        logger.error(f"Evaluation does not match schema: {exc}")
        raise ExternalServiceError("evaluation", "Evaluation service returned an invalid evaluation.")


def _parse_rankings(content: str) -> List[RankingResult]:
    raw = _extract_json(content)
    if isinstance(raw, dict):
        # Expected shape is {"rankings": [...]}; a bare array is accepted too.
        raw = raw.get("rankings", raw.get("results"))
    if not isinstance(raw, list):
        raise ExternalServiceError("evaluation", "Ranking service returned an unexpected shape.")
    try:
        return [RankingResult.model_validate(item) for item in raw]
    except PydanticValidationError as exc:
        logger.error(f"Ranking entry does not match schema: {exc}")
        raise ExternalServiceError("evaluation", "Ranking service returned an invalid entry.")


# ---------------------------------------------------------------------
# Service contract
# ---------------------------------------------------------------------
class EvaluationService(abc.ABC):
    """Opaque evaluation collaborator: (description, link) -> Evaluation."""

    @abc.abstractmethod
    async def evaluate(self, description: str, github_link: str) -> Evaluation: ...

    @abc.abstractmethod
    async def rank(self, candidates: List[RankingCandidate]) -> List[RankingResult]: ...


class LLMEvaluationService(EvaluationService):
    def __init__(self, llm: Optional[LLMClient] = None) -> None:
        self._llm = llm

    def _get_llm(self) -> LLMClient:
        # Built lazily so missing credentials only fail evaluation calls.
        if self._llm is None:
            self._llm = LLMClient()
        return self._llm

    async def evaluate(self, description: str, github_link: str) -> Evaluation:
        content = await self._get_llm().chat(
            [
                {"role": "system", "content": EVALUATION_SYSTEM_PROMPT},
                {"role": "user", "content": _build_evaluation_prompt(description, github_link)},
            ],
            json_mode=True,
        )
        return _parse_evaluation(content)

    async def rank(self, candidates: List[RankingCandidate]) -> List[RankingResult]:
        content = await self._get_llm().chat(
            [
                {"role": "system", "content": RANKING_SYSTEM_PROMPT},
                {"role": "user", "content": _build_ranking_prompt(candidates)},
            ],
            json_mode=True,
        )
        return _parse_rankings(content)


class MockEvaluationService(EvaluationService):
    """
    Deterministic, offline evaluator (LLM_PROVIDER=mock).
    Scores derive from a hash of the submission so reruns are stable.
    """

    @staticmethod
    def _score(*parts: str, salt: str = "") -> int:
        digest = hashlib.sha256(("|".join(parts) + salt).encode("utf-8")).digest()
        return 50 + digest[0] % 46

    async def evaluate(self, description: str, github_link: str) -> Evaluation:
        metrics = {name: self._score(description, github_link, salt=name) for name in METRIC_NAMES}
        return Evaluation.model_validate(
            {
                "score": round(sum(metrics.values()) / len(metrics)),
                "feedback": "Mock evaluation: scores are derived from the submission content.",
                "metrics": metrics,
                "strengths": ["Clear project description"] if len(description) > 80 else [],
                "areasForImprovement": ["Expand the README with setup instructions"],
                "recommendations": ["Add automated tests"],
            }
        )

    async def rank(self, candidates: List[RankingCandidate]) -> List[RankingResult]:
        results = [
            RankingResult(
                index=i,
                score=self._score(c.description, c.github_link),
                feedback="Mock ranking",
                participant_id=c.participant_id,
            )
            for i, c in enumerate(candidates)
        ]
        return sorted(results, key=lambda r: r.score, reverse=True)


def get_evaluation_service() -> EvaluationService:
    if config.LLM_PROVIDER == "mock":
        return MockEvaluationService()
    return LLMEvaluationService()
