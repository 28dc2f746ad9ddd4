"""Registration, login, token refresh, email verification and password reset endpoints."""
import logging

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from api.dependencies import (
    get_auth_service,
    get_current_user,
    get_profile_service,
    get_settings,
    rate_limit,
)
from api.helpers import clear_auth_cookies, set_auth_cookies
from core.auth import INVALID_TOKEN_DETAIL, REFRESH_TOKEN_COOKIE
from core.config import Settings
from core.rate_limit_config import RateLimitedEndpoint
from core.tokens import TokenVerificationError
from schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResendVerificationRequest,
    ResetPasswordRequest,
    ResetTokenRequest,
    VerifyEmailRequest,
)
from schemas.cached_user import CachedUser
from schemas.user import UserProfile
from services.auth_service import AuthService
from services.profile_service import ProfileService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=201,
    dependencies=[Depends(rate_limit(RateLimitedEndpoint.REGISTER))],
)
async def register(
    data: RegisterRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> AuthResponse:
    """
    Create an account and sign in.

    Both tokens are returned as httpOnly cookies, never in the body. A
    verification email is sent in the background.
    """
    result = await service.register(data)
    set_auth_cookies(response, result.tokens, settings)
    return AuthResponse(user=result.user)


@router.post(
    "/login",
    response_model=AuthResponse,
    dependencies=[Depends(rate_limit(RateLimitedEndpoint.LOGIN))],
)
async def login(
    data: LoginRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> AuthResponse:
    """Sign in with email and password."""
    result = await service.login(data.email, data.password)
    set_auth_cookies(response, result.tokens, settings)
    return AuthResponse(user=result.user)


@router.post(
    "/refresh",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limit(RateLimitedEndpoint.REFRESH))],
)
async def refresh(
    request: Request,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> MessageResponse | JSONResponse:
    """
    Rotate both tokens.

    The refresh token is only read from its cookie. On failure both cookies
    are cleared so the client falls back to a fresh login.
    """
    refresh_token = request.cookies.get(REFRESH_TOKEN_COOKIE)
    if not refresh_token:
        return _refresh_rejected(settings, "Not authenticated")
    try:
        tokens = service.refresh(refresh_token)
    except TokenVerificationError as e:
        logger.info("refresh_token_rejected reason=%s", e.code)
        return _refresh_rejected(settings, INVALID_TOKEN_DETAIL)
    set_auth_cookies(response, tokens, settings)
    return MessageResponse(message="Tokens refreshed")


def _refresh_rejected(settings: Settings, detail: str) -> JSONResponse:
    rejected = JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": detail, "code": "invalid_token"},
        headers={"WWW-Authenticate": "Bearer"},
    )
    clear_auth_cookies(rejected, settings)
    return rejected


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    """
    Clear the auth cookies.

    Tokens are stateless, so already-issued tokens stay valid until they expire.
    """
    clear_auth_cookies(response, settings)
    return MessageResponse(message="Logged out")


@router.post(
    "/verify-email",
    response_model=UserProfile,
    dependencies=[Depends(rate_limit(RateLimitedEndpoint.VERIFY_EMAIL))],
)
async def verify_email(
    data: VerifyEmailRequest,
    service: AuthService = Depends(get_auth_service),
) -> UserProfile:
    """Consume the token from the verification email."""
    return await service.verify_email(data.token)


@router.post(
    "/resend-verification",
    response_model=MessageResponse,
    status_code=202,
    dependencies=[Depends(rate_limit(RateLimitedEndpoint.RESEND_VERIFICATION))],
)
async def resend_verification(
    data: ResendVerificationRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Send another verification email if the address has an unverified account."""
    await service.resend_verification(data.email)
    return MessageResponse(
        message="If an unverified account exists for this email, a new link has been sent",
    )


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    status_code=202,
    dependencies=[Depends(rate_limit(RateLimitedEndpoint.FORGOT_PASSWORD))],
)
async def forgot_password(
    data: ForgotPasswordRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Mail a reset link. The response is the same whether or not the email is registered."""
    await service.forgot_password(data.email)
    return MessageResponse(message="If the email exists, a password reset link has been sent")


@router.post(
    "/validate-reset-token",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limit(RateLimitedEndpoint.VALIDATE_RESET_TOKEN))],
)
async def validate_reset_token(
    data: ResetTokenRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Let the frontend check a reset link before showing the new-password form."""
    await service.validate_reset_token(data.token)
    return MessageResponse(message="Reset token is valid")


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limit(RateLimitedEndpoint.RESET_PASSWORD))],
)
async def reset_password(
    data: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """
    Set a new password with a reset token.

    Tokens already issued stay valid until they expire; the user signs in
    again with the new password.
    """
    await service.reset_password(data.token, data.password)
    return MessageResponse(message="Password has been reset")


@router.get("/me", response_model=UserProfile)
async def me(
    current_user: CachedUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
) -> UserProfile:
    """The signed-in user's profile."""
    return await service.get_profile(current_user.id)
