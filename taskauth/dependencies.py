import time
from typing import Annotated

from fastapi import Cookie, Depends, Request, Response
from slowapi.util import get_remote_address

from taskauth.errors import TooManyRequests, Unauthenticated
from taskauth.models import User
from taskauth.rate_limit import RateLimitGate
from taskauth.services.auth import AuthService
from taskauth.services.sessions import SessionIssuer


# ── Wiring ─────────────────────────────────────────────────────────────────


def get_auth_service(request: Request) -> AuthService:
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        raise RuntimeError("Auth service not initialised (lifespan not run?)")
    return service


def get_sessions(request: Request) -> SessionIssuer:
    return request.app.state.sessions


def get_rate_gate(request: Request) -> RateLimitGate:
    return request.app.state.rate_gate


# ── Rate limiting ──────────────────────────────────────────────────────────


def enforce_rate_limit(
    request: Request,
    response: Response,
    gate: Annotated[RateLimitGate, Depends(get_rate_gate)],
) -> None:
    """Reject the request with 429 before the handler body runs."""
    if not gate.enabled:
        return

    decision = gate.allow(get_remote_address(request))
    headers = decision.headers(time.time())
    if not decision.permitted:
        raise TooManyRequests(headers=headers)
    response.headers.update(headers)


RateLimited = Depends(enforce_rate_limit)


# ── Session ────────────────────────────────────────────────────────────────


async def get_optional_user(
    sessions: Annotated[SessionIssuer, Depends(get_sessions)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    token: Annotated[str | None, Cookie()] = None,
) -> User | None:
    """Resolve the session cookie to a user, or None."""
    user_id = sessions.decode(token)
    if user_id is None:
        return None
    return await auth_service.get_user(user_id)


async def get_current_user(
    user: Annotated[User | None, Depends(get_optional_user)],
) -> User:
    if user is None:
        raise Unauthenticated()
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
