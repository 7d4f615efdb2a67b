"""Project submission, AI evaluation, hackathon-wide ranking and analytics."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, List

from hackhub.errors import ExternalServiceError, NoSubmissions, NotFound
from hackhub.llm_client.evaluator import EvaluationService
from hackhub.llm_client.models import RankingCandidate, RankingResult
from hackhub.models import (
    Evaluation,
    Hackathon,
    HackathonAnalytics,
    Participant,
    ProjectSubmission,
    RankedProject,
    Ranking,
    RankingSummary,
    SubmissionStats,
)
from hackhub.store.controller import StorageController
from hackhub.utils import utc_now

logger = logging.getLogger("hackhub.submissions")


def _require_participant(hackathon: Hackathon, participant_id: str) -> Participant:
    participant = hackathon.find_participant(participant_id)
    if participant is None:
        raise NotFound("participant", participant_id)
    return participant


def _require_submission(hackathon: Hackathon, participant_id: str) -> ProjectSubmission:
    submission = _require_participant(hackathon, participant_id).project_submission
    if submission is None:
        raise NotFound("project submission", participant_id)
    return submission


class SubmissionCoordinator:
    def __init__(self, storage: StorageController, evaluator: EvaluationService) -> None:
        self.storage = storage
        self.evaluator = evaluator

    async def submit(
        self,
        hackathon_id: str,
        participant_id: str,
        github_link: str,
        description: str,
    ) -> ProjectSubmission:
        """Replace any previous submission; no history is kept."""
        submission = ProjectSubmission(github_link=github_link, project_description=description)

        def attach(hackathon: Hackathon) -> None:
            _require_participant(hackathon, participant_id).project_submission = submission.model_copy(deep=True)

        await self.storage.update(hackathon_id, attach)
        logger.info("Participant %s submitted %s to hackathon %s", participant_id, github_link, hackathon_id)
        return submission

    async def evaluate(self, hackathon_id: str, participant_id: str, evaluator_id: str) -> Evaluation:
        """
        Evaluate the participant's submission. A second call overwrites the
        previous evaluation.
        """
        hackathon = await self.storage.read(hackathon_id)
        submission = _require_submission(hackathon, participant_id)

        # The service call runs outside the aggregate lock.
        result = await self.evaluator.evaluate(submission.project_description, submission.github_link)
        evaluation = result.model_copy(update={"evaluated_by": evaluator_id, "evaluated_at": utc_now()})

        def store(h: Hackathon) -> None:
            _require_submission(h, participant_id).evaluation = evaluation.model_copy(deep=True)

        await self.storage.update(hackathon_id, store)
        logger.info(
            "Evaluated submission of participant %s in hackathon %s: score %.1f (by %s)",
            participant_id,
            hackathon_id,
            evaluation.score,
            evaluator_id,
        )
        return evaluation

    async def rank_all(self, hackathon_id: str) -> RankingSummary:
        hackathon = await self.storage.read(hackathon_id)
        candidates = [
            RankingCandidate(
                participant_id=p.id,
                description=p.project_submission.project_description,
                github_link=p.project_submission.github_link,
            )
            for p in hackathon.participants
            if p.project_submission is not None
        ]
        if not candidates:
            raise NoSubmissions(hackathon_id)

        results = await self.evaluator.rank(candidates)
        _check_ranking_indices(results, len(candidates))

        assignments = [(result, _resolve_participant(result, candidates)) for result in results]
        if len({pid for _, pid in assignments}) != len(assignments):
            raise ExternalServiceError("evaluation", "Ranking service returned the same project more than once.")
        ranked_at = utc_now()

        def store(h: Hackathon) -> None:
            for result, participant_id in assignments:
                participant = h.find_participant(participant_id)
                if participant is None or participant.project_submission is None:
                    # Withdrawn or unsubmitted while the ranking service was running.
                    logger.warning("Skipping ranking for participant %s: submission gone", participant_id)
                    continue
                participant.project_submission.ranking = Ranking(
                    rank=result.index + 1,
                    score=result.score,
                    feedback=result.feedback,
                    ranked_at=ranked_at,
                )

        await self.storage.update(hackathon_id, store)
        logger.info("Ranked %d projects in hackathon %s", len(candidates), hackathon_id)

        return RankingSummary(
            rankings=[
                RankedProject(
                    participant_id=participant_id,
                    index=result.index,
                    rank=result.index + 1,
                    score=result.score,
                    feedback=result.feedback,
                    github_link=candidates[result.index].github_link,
                    project_description=candidates[result.index].description,
                )
                for result, participant_id in assignments
            ]
        )

    async def analytics(self, hackathon_id: str) -> HackathonAnalytics:
        hackathon = await self.storage.read(hackathon_id)

        universities = Counter(p.university for p in hackathon.participants if p.university)
        submissions = [p.project_submission for p in hackathon.participants if p.project_submission is not None]
        scores = [s.evaluation.score for s in submissions if s.evaluation is not None]

        return HackathonAnalytics(
            total_participants=len(hackathon.participants),
            universities=dict(universities),
            submission_stats=SubmissionStats(
                total=len(submissions),
                evaluated=len(scores),
                average_score=sum(scores) / len(scores) if scores else 0,
            ),
        )


def _check_ranking_indices(results: List[RankingResult], expected: int) -> None:
    """Indices must cover 0..N-1 exactly once so ranks form 1..N."""
    indices = sorted(r.index for r in results)
    if indices != list(range(expected)):
        logger.error("Ranking service returned indices %s for %d projects", indices, expected)
        raise ExternalServiceError(
            "evaluation",
            f"Ranking service must return each of the {expected} projects exactly once.",
        )


def _resolve_participant(result: RankingResult, candidates: List[RankingCandidate]) -> str:
    """
    Map a ranking entry back to a participant.

    Echoed participant id first; otherwise the github link of the indexed
    input. A link shared by several submissions is ambiguous, in which case the
    participant placed at that index is used.
    """
    known: Dict[str, RankingCandidate] = {c.participant_id: c for c in candidates}
    if result.participant_id and result.participant_id in known:
        return result.participant_id

    indexed = candidates[result.index]
    same_link: List[str] = [c.participant_id for c in candidates if c.github_link == indexed.github_link]
    if len(same_link) > 1:
        logger.warning(
            "Ranking entry %d matches %d submissions sharing %s; using the indexed participant %s",
            result.index,
            len(same_link),
            indexed.github_link,
            indexed.participant_id,
        )
        return indexed.participant_id
    return same_link[0]
