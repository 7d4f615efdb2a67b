"""
Shared fixtures: a scriptable store for fallback scenarios, and fakes for the
payment gateway and the evaluation service.
"""
import asyncio
import itertools
from typing import Dict, List

import pytest

from hackhub.errors import StorageUnavailable
from hackhub.llm_client.evaluator import EvaluationService
from hackhub.llm_client.models import RankingCandidate, RankingResult
from hackhub.models import Evaluation, EvaluationMetrics, GatewayOrder, Hackathon
from hackhub.store.controller import StorageController
from hackhub.store.memory_store import MemoryStore
from hackhub.store.seed import seed_hackathons

TEST_SECRET = "test_secret"

PAID_HACKATHON_ID = "hack-paid"
FREE_HACKATHON_ID = "hack-free"


def paid_hackathon() -> Hackathon:
    return Hackathon(
        id=PAID_HACKATHON_ID,
        title="Paid Hackathon",
        registration_fee="499",
        payment_required=True,
        upi_id="x@bank",
    )


def free_hackathon() -> Hackathon:
    return Hackathon(id=FREE_HACKATHON_ID, title="Free Hackathon")


class FlakyStore(MemoryStore):
    """
    MemoryStore that can be taken down, made to fail N times per operation,
    or slowed down (every operation yields to the event loop first).
    """

    name = "flaky"
    durable = True

    def __init__(self, *args, delay: float = 0.0, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.down = False
        self.delay = delay
        self.failures: Dict[str, int] = {}
        self.calls: List[str] = []

    async def _gate(self, operation: str) -> None:
        self.calls.append(operation)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.down:
            raise StorageUnavailable(f"{operation}: connection refused")
        left = self.failures.get(operation, 0)
        if left:
            self.failures[operation] = left - 1
            raise StorageUnavailable(f"{operation}: connection reset")

    async def connect(self):
        await self._gate("connect")

    async def list_hackathons(self):
        await self._gate("list_hackathons")
        return await super().list_hackathons()

    async def get_hackathon(self, hackathon_id):
        await self._gate("get_hackathon")
        return await super().get_hackathon(hackathon_id)

    async def insert_hackathon(self, hackathon):
        await self._gate("insert_hackathon")
        return await super().insert_hackathon(hackathon)

    async def replace_hackathon(self, hackathon):
        await self._gate("replace_hackathon")
        return await super().replace_hackathon(hackathon)

    async def delete_hackathon(self, hackathon_id):
        await self._gate("delete_hackathon")
        return await super().delete_hackathon(hackathon_id)

    async def list_payments(self):
        await self._gate("list_payments")
        return await super().list_payments()

    async def get_payment_by_order(self, order_id):
        await self._gate("get_payment_by_order")
        return await super().get_payment_by_order(order_id)

    async def insert_payment(self, payment):
        await self._gate("insert_payment")
        return await super().insert_payment(payment)

    async def replace_payment(self, payment):
        await self._gate("replace_payment")
        return await super().replace_payment(payment)


class FakeGateway:
    """Stands in for RazorpayClient: deterministic order ids, amounts recorded."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.orders: List[GatewayOrder] = []

    async def create_order(self, amount_minor: int, receipt: str) -> GatewayOrder:
        order = GatewayOrder(id=f"order_test{next(self._ids)}", amount=amount_minor, currency="INR")
        self.orders.append(order)
        return order


def make_evaluation(score: float, feedback: str = "fake evaluation") -> Evaluation:
    metrics = EvaluationMetrics(
        innovation=score,
        technical_complexity=score,
        code_quality=score,
        user_experience=score,
        documentation=score,
        scalability=score,
        maintainability=score,
    )
    return Evaluation(score=score, feedback=feedback, metrics=metrics, strengths=["works"])


class FakeEvaluator(EvaluationService):
    """
    Scores are popped from `scores` (75 once exhausted). `rank` returns the
    candidates in reverse request order unless `rankings` is set, in which
    case it is called with the candidates.
    """

    def __init__(self, scores=None, rankings=None) -> None:
        self.scores = list(scores or [])
        self.rankings = rankings
        self.evaluated: List[str] = []
        self.ranked: List[List[RankingCandidate]] = []

    async def evaluate(self, description: str, github_link: str) -> Evaluation:
        self.evaluated.append(github_link)
        return make_evaluation(self.scores.pop(0) if self.scores else 75)

    async def rank(self, candidates: List[RankingCandidate]) -> List[RankingResult]:
        self.ranked.append(list(candidates))
        if self.rankings is not None:
            return self.rankings(candidates)
        n = len(candidates)
        return [
            RankingResult(index=i, score=90 - i, feedback=f"project {i}", participant_id=candidates[i].participant_id)
            for i in reversed(range(n))
        ]


@pytest.fixture
def store() -> FlakyStore:
    return FlakyStore([*seed_hackathons(), paid_hackathon(), free_hackathon()])


@pytest.fixture
def storage(store: FlakyStore) -> StorageController:
    return StorageController(store, timeout_seconds=1.0)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def evaluator() -> FakeEvaluator:
    return FakeEvaluator()
