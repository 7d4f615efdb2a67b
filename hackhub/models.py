from __future__ import annotations

import datetime as _dt
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from hackhub.utils import new_id, utc_iso_now, utc_now


class _Document(BaseModel):
    """Stored shape: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class _Request(BaseModel):
    """Request bodies reject unknown fields at the boundary."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# ─────────────────────────────────────────────────────────────
# Enumerations
# ─────────────────────────────────────────────────────────────

class ParticipantStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ENROLLED = "enrolled"


class PaymentStatus(str, Enum):
    """Participant-side view of the payment."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    NOT_REQUIRED = "not_required"


class PaymentRecordStatus(str, Enum):
    """Payment entity state machine: pending -> completed | failed."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


# ─────────────────────────────────────────────────────────────
# Submission / evaluation / ranking
# ─────────────────────────────────────────────────────────────

class EvaluationMetrics(_Document):
    innovation: float = Field(..., ge=0, le=100)
    technical_complexity: float = Field(..., ge=0, le=100)
    code_quality: float = Field(..., ge=0, le=100)
    user_experience: float = Field(..., ge=0, le=100)
    documentation: float = Field(..., ge=0, le=100)
    scalability: float = Field(..., ge=0, le=100)
    maintainability: float = Field(..., ge=0, le=100)


class Evaluation(_Document):
    score: float = Field(..., ge=0, le=100)
    feedback: str = ""
    metrics: EvaluationMetrics
    strengths: List[str] = Field(default_factory=list)
    areas_for_improvement: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    evaluated_by: Optional[str] = None
    evaluated_at: Optional[_dt.datetime] = None


class Ranking(_Document):
    rank: int = Field(..., ge=1)
    score: float
    feedback: str = ""
    ranked_at: _dt.datetime = Field(default_factory=utc_now)


class ProjectSubmission(_Document):
    github_link: str
    project_description: str
    submission_date: _dt.datetime = Field(default_factory=utc_now)
    evaluation: Optional[Evaluation] = None
    ranking: Optional[Ranking] = None


# ─────────────────────────────────────────────────────────────
# Aggregate
# ─────────────────────────────────────────────────────────────

class Participant(_Document):
    id: str = Field(default_factory=new_id)
    user_id: str
    name: str
    email: str
    phone: Optional[str] = None
    college: Optional[str] = None
    university: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    experience: Optional[str] = None
    team_name: Optional[str] = None
    teammates: List[str] = Field(default_factory=list)
    submission_date: str = Field(default_factory=utc_iso_now)
    status: ParticipantStatus = ParticipantStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.NOT_REQUIRED
    payment_id: Optional[str] = None
    project_submission: Optional[ProjectSubmission] = None


class Hackathon(_Document):
    """
    Hackathon aggregate: the hackathon plus its embedded participants.

    Descriptive fields owned by the external CRUD layer are carried through
    untouched (extra="allow").
    """

    id: str = Field(default_factory=new_id)
    title: str = ""
    description: str = ""
    start_date: str = ""
    end_date: str = ""
    creator_id: str = ""
    registration_fee: str = "Free"
    payment_required: bool = False
    upi_id: str = ""
    participants: List[Participant] = Field(default_factory=list)

    def find_participant(self, participant_id: str) -> Optional[Participant]:
        return next((p for p in self.participants if p.id == participant_id), None)

    def find_participant_by_user(self, user_id: str) -> Optional[Participant]:
        return next((p for p in self.participants if p.user_id == user_id), None)


class Payment(_Document):
    id: str = Field(default_factory=new_id)
    hackathon_id: str
    participant_id: str
    amount: int = Field(..., gt=0)
    currency: str = "INR"
    status: PaymentRecordStatus = PaymentRecordStatus.PENDING
    order_id: str
    payment_id: Optional[str] = None
    receipt_id: str
    created_at: str = Field(default_factory=utc_iso_now)
    failure_reason: Optional[str] = None


# ─────────────────────────────────────────────────────────────
# Requests
# ─────────────────────────────────────────────────────────────

class RegistrationRequest(_Request):
    """Body of POST /api/hackathons/{id}/participants."""

    id: Optional[str] = None
    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    phone: Optional[str] = None
    college: Optional[str] = None
    university: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    experience: Optional[str] = None
    team_name: Optional[str] = None
    teammates: List[str] = Field(default_factory=list)
    submission_date: Optional[str] = None
    status: ParticipantStatus = ParticipantStatus.PENDING


class PaymentDetailsRequest(_Request):
    upi_id: Optional[str] = None
    payment_required: Optional[bool] = None


class CreateOrderRequest(_Request):
    # Validated by the orchestrator so a bad amount maps to validation_error.
    amount: Any = None


class VerifyPaymentRequest(_Request):
    payment_id: str = Field(..., min_length=1)
    order_id: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)


class FailPaymentRequest(_Request):
    order_id: str = Field(..., min_length=1)
    reason: Optional[str] = None


class SubmitProjectRequest(_Request):
    participant_id: str = Field(..., min_length=1)
    github_link: str = Field(..., min_length=1)
    project_description: str = Field(..., min_length=1)


class EvaluateProjectRequest(_Request):
    participant_id: str = Field(..., min_length=1)
    # The evaluator's user id.
    user_id: str = Field(..., min_length=1)


# ─────────────────────────────────────────────────────────────
# Responses
# ─────────────────────────────────────────────────────────────

class RegistrationResult(Participant):
    hackathon_payment_required: bool
    upi_id: str = ""


class GatewayOrder(_Document):
    id: str
    amount: int
    currency: str = "INR"


class OrderSummary(_Document):
    id: str
    amount: float
    currency: str


class CreateOrderResult(_Document):
    success: bool = True
    order: OrderSummary
    payment: Payment
    upi_id: str = ""
    key_id: str = ""


class VerifyResult(_Document):
    success: bool = True
    message: str = "Payment verified successfully"
    payment: Payment


class RankedProject(_Document):
    participant_id: str
    index: int
    rank: int
    score: float
    feedback: str = ""
    github_link: str
    project_description: str


class RankingSummary(_Document):
    message: str = "Projects ranked successfully"
    rankings: List[RankedProject]


class SubmissionStats(_Document):
    total: int = 0
    evaluated: int = 0
    average_score: float = 0


class HackathonAnalytics(_Document):
    total_participants: int
    universities: Dict[str, int] = Field(default_factory=dict)
    submission_stats: SubmissionStats = Field(default_factory=SubmissionStats)
