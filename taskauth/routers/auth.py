"""
Authentication endpoints – password login, email OTP verification and
JWT session cookies.
"""

from fastapi import APIRouter, Depends, Response

from taskauth.dependencies import CurrentUser, RateLimited, get_auth_service, get_sessions
from taskauth.models import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    UserInfo,
    VerifyEmailRequest,
)
from taskauth.services.auth import AuthService
from taskauth.services.sessions import SessionIssuer

router = APIRouter(prefix="/api/auth", tags=["auth"])

UNDELIVERED_CODE_MESSAGE = (
    "Account created, but the verification email could not be sent. "
    "Request a new code from /api/auth/send-verify-otp."
)


@router.post(
    "/register",
    response_model=AuthResponse,
    operation_id="register",
    summary="Create an account and start a session",
    dependencies=[RateLimited],
)
async def register(
    body: RegisterRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    sessions: SessionIssuer = Depends(get_sessions),
) -> AuthResponse:
    result = await auth_service.register(body.name, body.email, body.password)
    sessions.attach(response, result.token)
    if not result.user.is_account_verified and not result.verification_sent:
        return AuthResponse(success=True, message=UNDELIVERED_CODE_MESSAGE)
    return AuthResponse(success=True, message="Check your email for verification code.")


@router.post(
    "/login",
    response_model=AuthResponse,
    response_model_exclude_none=True,
    operation_id="login",
    summary="Verify email and password and start a session",
    dependencies=[RateLimited],
)
async def login(
    body: LoginRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    sessions: SessionIssuer = Depends(get_sessions),
) -> AuthResponse:
    result = await auth_service.login(body.email, body.password)
    sessions.attach(response, result.token)
    return AuthResponse(success=True)


@router.post(
    "/logout",
    response_model=AuthResponse,
    operation_id="logout",
    summary="Clear the session cookie",
)
async def logout(
    response: Response,
    sessions: SessionIssuer = Depends(get_sessions),
) -> AuthResponse:
    sessions.clear(response)
    return AuthResponse(success=True, message="Logged out")


@router.post(
    "/verify-email",
    response_model=AuthResponse,
    operation_id="verifyEmail",
    summary="Confirm email ownership with the emailed code",
    dependencies=[RateLimited],
)
async def verify_email(
    body: VerifyEmailRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    sessions: SessionIssuer = Depends(get_sessions),
) -> AuthResponse:
    result = await auth_service.verify_email(body.email, body.otp)
    sessions.attach(response, result.token, same_site=sessions.verify_email_same_site())
    return AuthResponse(success=True, message="Email verification complete.")


@router.post(
    "/send-verify-otp",
    response_model=AuthResponse,
    operation_id="sendVerifyOtp",
    summary="Email a fresh verification code to the current user",
    dependencies=[RateLimited],
)
async def send_verify_otp(
    current_user: CurrentUser,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    await auth_service.send_verify_otp(current_user)
    return AuthResponse(success=True, message="Verification OTP sent on email")


@router.get(
    "/me",
    response_model=MeResponse,
    operation_id="getMe",
    summary="Get current authenticated user info",
)
async def get_me(current_user: CurrentUser) -> MeResponse:
    return MeResponse(user=UserInfo.from_user(current_user))
