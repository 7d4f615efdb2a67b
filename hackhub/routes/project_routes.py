# hackhub/routes/project_routes.py
"""Project submission, AI evaluation, ranking and analytics endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from hackhub.deps import get_submission_coordinator
from hackhub.models import (
    EvaluateProjectRequest,
    HackathonAnalytics,
    RankingSummary,
    SubmitProjectRequest,
)
from hackhub.services.submissions import SubmissionCoordinator

router = APIRouter(prefix="/api/hackathons", tags=["projects"])


@router.post("/{hackathon_id}/submit-project")
async def submit_project(
    hackathon_id: str,
    req: SubmitProjectRequest,
    coordinator: SubmissionCoordinator = Depends(get_submission_coordinator),
):
    submission = await coordinator.submit(
        hackathon_id, req.participant_id, req.github_link, req.project_description
    )
    return {"message": "Project submitted successfully", "projectSubmission": submission}


@router.post("/{hackathon_id}/evaluate-project")
async def evaluate_project(
    hackathon_id: str,
    req: EvaluateProjectRequest,
    coordinator: SubmissionCoordinator = Depends(get_submission_coordinator),
):
    evaluation = await coordinator.evaluate(hackathon_id, req.participant_id, req.user_id)
    return {"message": "Project evaluated successfully", "evaluation": evaluation}


@router.post("/{hackathon_id}/rank-projects", response_model=RankingSummary)
async def rank_projects(
    hackathon_id: str,
    coordinator: SubmissionCoordinator = Depends(get_submission_coordinator),
):
    return await coordinator.rank_all(hackathon_id)


@router.get("/{hackathon_id}/analytics", response_model=HackathonAnalytics)
async def participant_analytics(
    hackathon_id: str,
    coordinator: SubmissionCoordinator = Depends(get_submission_coordinator),
):
    return await coordinator.analytics(hackathon_id)
