from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional


# ─────────────────────────────────────────────────────────────
# Ranking contract (evaluation service)
# ─────────────────────────────────────────────────────────────

class RankingCandidate(BaseModel):
    """
    One submitted project sent to the ranking service.
    The participant id travels with the request so the service can echo it.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    participant_id: str
    description: str
    github_link: str


class RankingResult(BaseModel):
    """
    One entry of the ranking response.
    `index` is the position of the project in the request list.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    index: int = Field(..., ge=0)
    score: float
    feedback: str = ""

    # Optional echo of RankingCandidate.participant_id
    participant_id: Optional[str] = None
