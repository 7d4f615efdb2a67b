"""Fixed seed data set.

Inserted into an empty durable store at start-up, and used as the in-memory
data set when the durable store never connected.
"""

from __future__ import annotations

from typing import List

from hackhub.models import Hackathon

SEED_HACKATHONS = [
    {
        "id": "hack-ai-2025",
        "title": "AI Innovation Challenge",
        "description": "Build AI-powered tools that solve real campus problems.",
        "startDate": "2025-03-15",
        "endDate": "2025-03-17",
        "registrationDeadline": "2025-03-10",
        "organizerName": "Tech Club",
        "category": "AI/ML",
        "location": "Online",
        "creatorId": "seed",
        "featured": True,
        "registrationFee": "Free",
        "paymentRequired": False,
        "upiId": "",
        "participants": [],
    },
    {
        "id": "hack-web3-2025",
        "title": "Web3 Builders Weekend",
        "description": "Ship a decentralised application in 48 hours.",
        "startDate": "2025-04-05",
        "endDate": "2025-04-07",
        "registrationDeadline": "2025-03-30",
        "organizerName": "Blockchain Society",
        "category": "Blockchain",
        "location": "Bengaluru",
        "creatorId": "seed",
        "featured": False,
        "registrationFee": "499",
        "paymentRequired": True,
        "upiId": "web3builders@okbank",
        "participants": [],
    },
]


def seed_hackathons() -> List[Hackathon]:
    """Fresh model instances on every call."""
    return [Hackathon.model_validate(doc) for doc in SEED_HACKATHONS]
