"""Registration, login, token refresh, email verification and password reset."""
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.cache import CacheLayer, CacheNamespace
from core.passwords import PasswordHasher
from core.tokens import TokenClaims, TokenCodec, TokenPair
from models.password_reset_token import PasswordResetToken
from models.user import User
from repositories.password_reset_token_repository import PasswordResetTokenRepository
from repositories.user_repository import UserRepository
from repositories.verification_token_repository import VerificationTokenRepository
from schemas.auth import RegisterRequest
from schemas.user import UserProfile
from services.email_service import EmailDispatcher
from services.email_templates import (
    password_reset_confirmation_email,
    password_reset_email,
    password_reset_link,
    resend_verification_email,
    verification_link,
    welcome_email,
)
from services.exceptions import (
    AccountInactiveError,
    DuplicateUserError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    InvalidResetTokenError,
    InvalidVerificationTokenError,
    ResetTokenExpiredError,
    ResetTokenUsedError,
    UsernameTakenError,
)

logger = logging.getLogger(__name__)

VERIFICATION_TOKEN_TTL = timedelta(hours=1)
PASSWORD_RESET_TOKEN_TTL = timedelta(hours=1)


@dataclass(frozen=True)
class AuthResult:
    """A signed-in user and their fresh token pair."""

    user: UserProfile
    tokens: TokenPair


def _utcnow() -> datetime:
    return datetime.now(UTC)


def claims_for(user: User) -> TokenClaims:
    """Identity claims embedded in both tokens for `user`."""
    return TokenClaims(user_id=str(user.id), email=user.email)


class AuthService:
    """
    Account lifecycle on top of the token codec and password hasher.

    Every failure is a ServiceError subclass; a caller never receives a token
    unless the whole operation succeeded.
    """

    def __init__(
        self,
        users: UserRepository,
        verification_tokens: VerificationTokenRepository,
        reset_tokens: PasswordResetTokenRepository,
        codec: TokenCodec,
        hasher: PasswordHasher,
        cache: CacheLayer,
        emails: EmailDispatcher,
        frontend_url: str,
        require_email_verification: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._users = users
        self._verification_tokens = verification_tokens
        self._reset_tokens = reset_tokens
        self._codec = codec
        self._hasher = hasher
        self._cache = cache
        self._emails = emails
        self._frontend_url = frontend_url
        self._require_email_verification = require_email_verification
        self._clock = clock

    async def register(self, data: RegisterRequest) -> AuthResult:
        """
        Create an account and sign the new user in.

        Raises:
            DuplicateUserError: The email already has an account.
            UsernameTakenError: The username is already used.
        """
        email = data.email.lower()
        username = data.username.lower()
        if await self._users.exists_by_email(email):
            raise DuplicateUserError()
        if await self._users.exists_by_username(username):
            raise UsernameTakenError(username)

        password_hash = await self._hasher.hash(data.password)
        try:
            user = await self._users.create(
                email=email,
                username=username,
                password_hash=password_hash,
                first_name=data.first_name,
                last_name=data.last_name,
                bio=data.bio,
                avatar_url=data.avatar_url,
            )
        except IntegrityError as e:
            # Lost a race with a concurrent registration for the same email/username
            logger.info("register_conflict email=%s username=%s", email, username)
            raise DuplicateUserError() from e
        token = await self._create_verification_token(user)

        # Issue before committing so a signer failure leaves no half-created account
        tokens = self._codec.issue_token_pair(claims_for(user))
        await self._users.commit()

        await self._cache.set_session(user)
        self._emails.dispatch(
            welcome_email(
                to=user.email,
                name=user.first_name,
                link=verification_link(self._frontend_url, token),
            ),
        )
        logger.info("user_registered", extra={"user_id": str(user.id)})
        return AuthResult(user=UserProfile.model_validate(user), tokens=tokens)

    async def login(self, email: str, password: str) -> AuthResult:
        """
        Authenticate with email and password.

        Unknown email and wrong password raise the same InvalidCredentialsError
        after the same amount of hashing work, so neither the response nor its
        timing reveals whether an account exists.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password.
            AccountInactiveError: Credentials are right but the account is disabled.
            EmailNotVerifiedError: Verification is required and still pending.
        """
        user = await self._users.get_by_email(email)
        if user is None:
            await self._hasher.verify_dummy(password)
            raise InvalidCredentialsError()
        if not await self._hasher.verify(password, user.password_hash):
            raise InvalidCredentialsError()
        if not user.is_active:
            raise AccountInactiveError()
        if self._require_email_verification and not user.email_verified:
            raise EmailNotVerifiedError()

        tokens = self._codec.issue_token_pair(claims_for(user))
        await self._cache.set_session(user)
        profile = UserProfile.model_validate(user)

        now = self._clock()
        try:
            await self._users.touch_last_login(user.id, now)
            await self._users.commit()
            profile = profile.model_copy(update={"last_login_at": now})
        except SQLAlchemyError as e:
            logger.warning("last_login_update_failed user_id=%s error=%s", profile.id, e)
            await self._users.rollback()
        else:
            # the cached profile still carries the previous last_login_at
            await self._cache.invalidate(CacheNamespace.USER_PROFILE, user.id)

        logger.info("user_logged_in", extra={"user_id": str(profile.id)})
        return AuthResult(user=profile, tokens=tokens)

    def refresh(self, refresh_token: str) -> TokenPair:
        """
        Exchange a valid refresh token for a new pair.

        The old refresh token stays valid until it expires; there is no
        server-side revocation.

        Raises:
            TokenVerificationError: (or a subclass) if the refresh token is not valid.
        """
        claims = self._codec.verify_refresh_token(refresh_token)
        return self._codec.issue_token_pair(claims)

    async def verify_email(self, token: str) -> UserProfile:
        """
        Consume a verification token and mark the address verified.

        Raises:
            InvalidVerificationTokenError: Unknown or expired token.
        """
        record = await self._verification_tokens.get_valid(token, self._clock())
        if record is None:
            raise InvalidVerificationTokenError()
        user = await self._users.get_by_id(record.user_id)
        if user is None:
            raise InvalidVerificationTokenError()

        user = await self._users.update(user, email_verified=True)
        await self._verification_tokens.delete_for_user(user.id)
        await self._users.commit()

        await self._cache.invalidate_profile(user.id, user.username)
        await self._cache.invalidate(CacheNamespace.SESSION, user.id)
        logger.info("email_verified", extra={"user_id": str(user.id)})
        return UserProfile.model_validate(user)

    async def resend_verification(self, email: str) -> None:
        """
        Send a fresh verification link if the account exists and is unverified.

        Returns nothing either way so the endpoint never reveals which emails are
        registered.
        """
        user = await self._users.get_by_email(email)
        if user is None or user.email_verified:
            return
        await self._verification_tokens.delete_for_user(user.id)
        token = await self._create_verification_token(user)
        await self._users.commit()
        self._emails.dispatch(
            resend_verification_email(
                to=user.email,
                name=user.first_name,
                link=verification_link(self._frontend_url, token),
            ),
        )


    async def forgot_password(self, email: str) -> None:
        """
        Mail a password reset link if an active account uses `email`.

        Earlier links for the account stop working. Returns nothing either
        way, like resend_verification.
        """
        user = await self._users.get_by_email(email)
        if user is None or not user.is_active:
            logger.info("password_reset_requested_unknown_email")
            return
        await self._reset_tokens.delete_for_user(user.id)
        token = secrets.token_hex(32)
        await self._reset_tokens.create(
            user_id=user.id,
            token=token,
            expires_at=self._clock() + PASSWORD_RESET_TOKEN_TTL,
        )
        await self._users.commit()
        self._emails.dispatch(
            password_reset_email(
                to=user.email,
                name=user.first_name,
                link=password_reset_link(self._frontend_url, token),
            ),
        )
        logger.info("password_reset_requested", extra={"user_id": str(user.id)})

    async def validate_reset_token(self, token: str) -> PasswordResetToken:
        """
        Check a reset token without consuming it.

        Raises:
            InvalidResetTokenError: No such token.
            ResetTokenUsedError: The token already reset a password.
            ResetTokenExpiredError: The token is past its expiry.
        """
        record = await self._reset_tokens.get_by_token(token)
        if record is None:
            raise InvalidResetTokenError()
        if record.used_at is not None:
            raise ResetTokenUsedError()
        if record.expires_at <= self._clock():
            raise ResetTokenExpiredError()
        return record

    async def reset_password(self, token: str, password: str) -> None:
        """
        Store a new password hash and consume the token.

        The token is kept as used and every other reset token of the user is
        deleted, all in one commit. A confirmation email follows.

        Raises:
            InvalidResetTokenError: No such token, or its user is gone.
            ResetTokenUsedError: The token already reset a password.
            ResetTokenExpiredError: The token is past its expiry.
        """
        record = await self.validate_reset_token(token)
        user = await self._users.get_by_id(record.user_id)
        if user is None:
            raise InvalidResetTokenError()

        password_hash = await self._hasher.hash(password)
        user = await self._users.update(user, password_hash=password_hash)
        await self._reset_tokens.mark_used(record.id, self._clock())
        await self._reset_tokens.delete_for_user(user.id, keep_id=record.id)
        await self._users.commit()

        self._emails.dispatch(
            password_reset_confirmation_email(to=user.email, name=user.first_name),
        )
        logger.info("password_reset_completed", extra={"user_id": str(user.id)})

    async def _create_verification_token(self, user: User) -> str:
        token = secrets.token_hex(32)
        await self._verification_tokens.create(
            user_id=user.id,
            token=token,
            expires_at=self._clock() + VERIFICATION_TOKEN_TTL,
        )
        return token
