# hackhub/routes/__init__.py
"""Router registry.

Single source of truth for FastAPI route inclusion.

Guidelines:
- Keep this list deterministic and explicit.
- Each router must be mounted exactly once (no duplicates).
- Group routers by functional domain to reduce cognitive load.
"""

from __future__ import annotations

from hackhub.routes.diag_routes import router as diag_router
from hackhub.routes.participant_routes import router as participant_router
from hackhub.routes.payment_routes import router as payment_router
from hackhub.routes.project_routes import router as project_router

# Deterministic inclusion order:
# 1) Diagnostics
# 2) Registration lifecycle (participants, payments)
# 3) Projects (submission, evaluation, ranking, analytics)
routers = [
    diag_router,
    # Keep these adjacent (shared prefix="/api/hackathons")
    participant_router,
    project_router,
    payment_router,
]

__all__ = ["routers"]
