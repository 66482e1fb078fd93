"""
Liveness of the auth service and its user store.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from taskauth.config import APP_VERSION
from taskauth.models import HealthResponse

router = APIRouter(prefix="/api", tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    operation_id="getHealth",
    summary="Service and user store status",
)
async def get_health(request: Request) -> HealthResponse:
    state = request.app.state
    users = getattr(state, "users", None)
    store_ok = users is not None and await users.ping()
    return HealthResponse(
        status="ok" if store_ok else "degraded",
        version=APP_VERSION,
        user_store=store_ok,
        rate_limit=state.rate_gate.quota if state.rate_gate.enabled else "disabled",
        timestamp=datetime.now(timezone.utc),
    )
