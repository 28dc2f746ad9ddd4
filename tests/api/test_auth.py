"""Tests for the auth endpoints: cookies, status codes and error bodies."""
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta

from httpx import AsyncClient, Response

from core.auth import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE
from core.tokens import TokenClaims, TokenCodec
from models.user import User
from services.email_service import EmailDispatcher
from tests.conftest import (
    ACCESS_SECRET,
    REFRESH_SECRET,
    TEST_PASSWORD,
    FakePasswordResetTokenRepository,
    FakeUserRepository,
    FakeVerificationTokenRepository,
    RecordingEmailSender,
)

REGISTER_BODY = {
    "email": "Ada@Example.com",
    "password": TEST_PASSWORD,
    "username": "Ada",
    "first_name": "Ada",
    "last_name": "Lovelace",
}


def set_cookie_headers(response: Response) -> list[str]:
    return response.headers.get_list("set-cookie")


class TestRegister:
    """POST /auth/register."""

    async def test__register__201_with_cookies_and_no_tokens_in_body(
        self, client: AsyncClient,
    ) -> None:
        """Tokens travel only in httpOnly cookies."""
        response = await client.post("/auth/register", json=REGISTER_BODY)

        assert response.status_code == 201
        body = response.json()
        assert body["user"]["email"] == "ada@example.com"
        assert body["user"]["username"] == "ada"
        assert "password" not in str(body)
        assert "access_token" not in body
        cookies = set_cookie_headers(response)
        assert any(c.startswith(f"{ACCESS_TOKEN_COOKIE}=") and "HttpOnly" in c for c in cookies)
        assert any(c.startswith(f"{REFRESH_TOKEN_COOKIE}=") and "HttpOnly" in c for c in cookies)

    async def test__register__cookie_max_age_matches_token_lifetime(
        self, client: AsyncClient,
    ) -> None:
        """Access cookie lives 15 minutes, refresh cookie seven days."""
        response = await client.post("/auth/register", json=REGISTER_BODY)

        cookies = {c.split("=", 1)[0]: c for c in set_cookie_headers(response)}
        assert "Max-Age=900" in cookies[ACCESS_TOKEN_COOKIE]
        assert f"Max-Age={7 * 86400}" in cookies[REFRESH_TOKEN_COOKIE]
        assert "Path=/" in cookies[ACCESS_TOKEN_COOKIE]
        assert "SameSite=lax" in cookies[ACCESS_TOKEN_COOKIE]

    async def test__register__sends_verification_email(
        self,
        client: AsyncClient,
        emails: EmailDispatcher,
        email_sender: RecordingEmailSender,
    ) -> None:
        """A welcome email goes out in the background."""
        await client.post("/auth/register", json=REGISTER_BODY)
        await emails.drain()

        assert [m.to for m in email_sender.sent] == ["ada@example.com"]

    async def test__register__duplicate_email_409(
        self, client: AsyncClient, user: User,
    ) -> None:
        """Registering an existing email conflicts."""
        response = await client.post(
            "/auth/register", json={**REGISTER_BODY, "username": "someone"},
        )

        assert response.status_code == 409
        assert response.json() == {"detail": "User already exists", "code": "duplicate_user"}

    async def test__register__duplicate_username_409(
        self, client: AsyncClient, user: User,
    ) -> None:
        """Registering an existing username conflicts."""
        response = await client.post(
            "/auth/register", json={**REGISTER_BODY, "email": "other@example.com"},
        )

        assert response.status_code == 409
        assert response.json()["code"] == "username_taken"

    async def test__register__invalid_body_422(self, client: AsyncClient) -> None:
        """Schema violations are rejected before the service runs."""
        response = await client.post(
            "/auth/register", json={**REGISTER_BODY, "password": "short"},
        )

        assert response.status_code == 422

    async def test__register__rate_limited(self, client: AsyncClient) -> None:
        """The sixth registration from one client within the hour is refused."""
        for i in range(5):
            await client.post(
                "/auth/register",
                json={**REGISTER_BODY, "email": f"u{i}@example.com", "username": f"user{i}"},
            )

        response = await client.post(
            "/auth/register",
            json={**REGISTER_BODY, "email": "u6@example.com", "username": "user6"},
        )

        assert response.status_code == 429
        assert response.json()["code"] == "rate_limit_exceeded"
        assert int(response.headers["Retry-After"]) > 0
        assert response.headers["X-RateLimit-Remaining"] == "0"


class TestLogin:
    """POST /auth/login."""

    async def test__login__sets_cookies(self, client: AsyncClient, user: User) -> None:
        """Valid credentials return the profile and both cookies."""
        response = await client.post(
            "/auth/login", json={"email": "ada@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == str(user.id)
        assert ACCESS_TOKEN_COOKIE in response.cookies
        assert REFRESH_TOKEN_COOKIE in response.cookies

    async def test__login__rate_limit_headers_on_success(
        self, client: AsyncClient, user: User,
    ) -> None:
        """Rate limited endpoints report the remaining budget."""
        response = await client.post(
            "/auth/login", json={"email": "ada@example.com", "password": TEST_PASSWORD},
        )

        assert response.headers["X-RateLimit-Limit"] == "10"
        assert response.headers["X-RateLimit-Remaining"] == "9"

    async def test__login__unknown_email_and_wrong_password_identical(
        self, client: AsyncClient, user: User,
    ) -> None:
        """Neither the status nor the body reveals whether the email exists."""
        unknown = await client.post(
            "/auth/login", json={"email": "nobody@example.com", "password": TEST_PASSWORD},
        )
        wrong = await client.post(
            "/auth/login", json={"email": "ada@example.com", "password": "wrong-password"},
        )

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json() == {
            "detail": "Invalid credentials",
            "code": "invalid_credentials",
        }

    async def test__login__unverified_403(
        self, client: AsyncClient, make_user: Callable[..., Awaitable[User]],
    ) -> None:
        """Pending verification is reported distinctly after a correct password."""
        await make_user(email_verified=False)

        response = await client.post(
            "/auth/login", json={"email": "ada@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 403
        assert response.json()["code"] == "email_not_verified"

    async def test__login__inactive_403(
        self, client: AsyncClient, make_user: Callable[..., Awaitable[User]],
    ) -> None:
        """Deactivated accounts are refused."""
        await make_user(is_active=False)

        response = await client.post(
            "/auth/login", json={"email": "ada@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 403
        assert response.json()["code"] == "account_inactive"

    async def test__login__last_login_write_failure_still_200(
        self, client: AsyncClient, user: User, user_repo: FakeUserRepository,
    ) -> None:
        """A failed last-login update does not fail the login."""
        user_repo.fail_touch_last_login = True

        response = await client.post(
            "/auth/login", json={"email": "ada@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 200


class TestRefreshAndLogout:
    """POST /auth/refresh and /auth/logout."""

    async def test__refresh__rotates_cookies(
        self, client: AsyncClient, user: User, codec: TokenCodec,
    ) -> None:
        """A valid refresh cookie yields a new pair."""
        refresh_token = codec.issue_refresh_token(
            TokenClaims(user_id=str(user.id), email=user.email),
        )
        client.cookies.set(REFRESH_TOKEN_COOKIE, refresh_token)

        response = await client.post("/auth/refresh")

        assert response.status_code == 200
        new_access = response.cookies[ACCESS_TOKEN_COOKIE]
        assert codec.verify_access_token(new_access).user_id == str(user.id)
        assert response.cookies[REFRESH_TOKEN_COOKIE] != refresh_token

    async def test__refresh__missing_cookie_401(self, client: AsyncClient) -> None:
        """No refresh cookie means no new tokens."""
        response = await client.post("/auth/refresh")

        assert response.status_code == 401

    async def test__refresh__bearer_header_not_accepted(
        self, client: AsyncClient, user: User, codec: TokenCodec,
    ) -> None:
        """The refresh token is only read from its cookie."""
        refresh_token = codec.issue_refresh_token(
            TokenClaims(user_id=str(user.id), email=user.email),
        )

        response = await client.post(
            "/auth/refresh", headers={"Authorization": f"Bearer {refresh_token}"},
        )

        assert response.status_code == 401

    async def test__refresh__access_token_in_refresh_cookie_401_and_clears(
        self, client: AsyncClient, user: User, codec: TokenCodec,
    ) -> None:
        """Cross-class tokens are rejected and both cookies are cleared."""
        access_token = codec.issue_access_token(
            TokenClaims(user_id=str(user.id), email=user.email),
        )
        client.cookies.set(REFRESH_TOKEN_COOKIE, access_token)

        response = await client.post("/auth/refresh")

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"
        cleared = set_cookie_headers(response)
        assert any(c.startswith(f"{ACCESS_TOKEN_COOKIE}=") and "Max-Age=0" in c for c in cleared)
        assert any(c.startswith(f"{REFRESH_TOKEN_COOKIE}=") and "Max-Age=0" in c for c in cleared)

    async def test__refresh__expired_401(self, client: AsyncClient, user: User) -> None:
        """Expired refresh tokens are rejected."""
        stale = TokenCodec(
            ACCESS_SECRET, REFRESH_SECRET,
            clock=lambda: datetime.now(UTC) - timedelta(days=8),
        ).issue_refresh_token(TokenClaims(user_id=str(user.id), email=user.email))
        client.cookies.set(REFRESH_TOKEN_COOKIE, stale)

        response = await client.post("/auth/refresh")

        assert response.status_code == 401

    async def test__logout__clears_cookies(self, client: AsyncClient) -> None:
        """Logout expires both cookies."""
        response = await client.post("/auth/logout")

        assert response.status_code == 200
        cleared = set_cookie_headers(response)
        assert len(cleared) == 2
        assert all("Max-Age=0" in c for c in cleared)


class TestVerification:
    """POST /auth/verify-email and /auth/resend-verification."""

    async def test__verify_email__then_login(
        self,
        client: AsyncClient,
        token_repo: FakeVerificationTokenRepository,
    ) -> None:
        """Register, verify, then sign in."""
        registered = await client.post("/auth/register", json=REGISTER_BODY)
        user_id = registered.json()["user"]["id"]
        blocked = await client.post(
            "/auth/login", json={"email": "ada@example.com", "password": TEST_PASSWORD},
        )
        assert blocked.status_code == 403

        token = next(iter(token_repo.tokens)).token
        verified = await client.post("/auth/verify-email", json={"token": token})
        assert verified.status_code == 200
        assert verified.json()["id"] == user_id
        assert verified.json()["email_verified"] is True

        response = await client.post(
            "/auth/login", json={"email": "ada@example.com", "password": TEST_PASSWORD},
        )
        assert response.status_code == 200

    async def test__verify_email__bad_token_400(self, client: AsyncClient) -> None:
        """Unknown tokens are a client error."""
        response = await client.post("/auth/verify-email", json={"token": "nope"})

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_verification_token"

    async def test__resend__always_202(
        self,
        client: AsyncClient,
        emails: EmailDispatcher,
        email_sender: RecordingEmailSender,
    ) -> None:
        """Unknown addresses get the same answer and no email."""
        response = await client.post(
            "/auth/resend-verification", json={"email": "nobody@example.com"},
        )
        await emails.drain()

        assert response.status_code == 202
        assert email_sender.sent == []


class TestPasswordReset:
    """POST /auth/forgot-password, /auth/validate-reset-token and /auth/reset-password."""

    async def test__forgot_password__same_answer_for_unknown_email(
        self,
        client: AsyncClient,
        user: User,
        emails: EmailDispatcher,
        email_sender: RecordingEmailSender,
    ) -> None:
        """Registered and unknown addresses get identical 202 bodies; only one gets mail."""
        known = await client.post("/auth/forgot-password", json={"email": "ada@example.com"})
        unknown = await client.post(
            "/auth/forgot-password", json={"email": "nobody@example.com"},
        )
        await emails.drain()

        assert known.status_code == unknown.status_code == 202
        assert known.json() == unknown.json() == {
            "message": "If the email exists, a password reset link has been sent",
        }
        assert [m.to for m in email_sender.sent] == ["ada@example.com"]

    async def test__reset_flow__forgot_validate_reset_login(
        self,
        client: AsyncClient,
        user: User,
        reset_token_repo: FakePasswordResetTokenRepository,
    ) -> None:
        """A mailed token validates, resets the password, and the new password signs in."""
        await client.post("/auth/forgot-password", json={"email": "ada@example.com"})
        [record] = reset_token_repo.for_user(user.id)

        validated = await client.post(
            "/auth/validate-reset-token", json={"token": record.token},
        )
        assert validated.status_code == 200

        reset = await client.post(
            "/auth/reset-password",
            json={"token": record.token, "password": "a-brand-new-password"},
        )
        assert reset.status_code == 200
        assert reset.json() == {"message": "Password has been reset"}

        old = await client.post(
            "/auth/login", json={"email": "ada@example.com", "password": TEST_PASSWORD},
        )
        new = await client.post(
            "/auth/login", json={"email": "ada@example.com", "password": "a-brand-new-password"},
        )
        assert old.status_code == 401
        assert new.status_code == 200

    async def test__reset_password__reused_token_400(
        self,
        client: AsyncClient,
        user: User,
        reset_token_repo: FakePasswordResetTokenRepository,
    ) -> None:
        """A second use reports the token as used."""
        await client.post("/auth/forgot-password", json={"email": "ada@example.com"})
        [record] = reset_token_repo.for_user(user.id)
        body = {"token": record.token, "password": "a-brand-new-password"}
        await client.post("/auth/reset-password", json=body)

        response = await client.post("/auth/reset-password", json=body)

        assert response.status_code == 400
        assert response.json() == {
            "detail": "This reset link has already been used",
            "code": "reset_token_used",
        }

    async def test__validate_reset_token__expired_400(
        self,
        client: AsyncClient,
        user: User,
        reset_token_repo: FakePasswordResetTokenRepository,
    ) -> None:
        """Expired and unknown tokens carry different codes."""
        await reset_token_repo.create(
            user_id=user.id, token="old", expires_at=datetime.now(UTC) - timedelta(minutes=1),
        )

        expired = await client.post("/auth/validate-reset-token", json={"token": "old"})
        unknown = await client.post("/auth/validate-reset-token", json={"token": "nope"})

        assert expired.status_code == unknown.status_code == 400
        assert expired.json()["code"] == "reset_token_expired"
        assert unknown.json()["code"] == "invalid_reset_token"

    async def test__reset_password__short_password_422(
        self, client: AsyncClient,
    ) -> None:
        """The new password follows the registration rules."""
        response = await client.post(
            "/auth/reset-password", json={"token": "abc", "password": "short"},
        )

        assert response.status_code == 422

    async def test__forgot_password__rate_limited(self, client: AsyncClient) -> None:
        """The fourth request from one client within the hour is refused."""
        for _ in range(3):
            allowed = await client.post(
                "/auth/forgot-password", json={"email": "nobody@example.com"},
            )
            assert allowed.status_code == 202

        response = await client.post(
            "/auth/forgot-password", json={"email": "nobody@example.com"},
        )

        assert response.status_code == 429
        assert response.json()["code"] == "rate_limit_exceeded"


class TestMe:
    """GET /auth/me and the auth gate over HTTP."""

    async def test__me__with_bearer(
        self, client: AsyncClient, user: User, auth_headers: dict[str, str],
    ) -> None:
        """A bearer token identifies the caller."""
        response = await client.get("/auth/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["username"] == "ada"

    async def test__me__with_cookie(
        self, client: AsyncClient, user: User, codec: TokenCodec,
    ) -> None:
        """The access cookie identifies the caller."""
        client.cookies.set(
            ACCESS_TOKEN_COOKIE,
            codec.issue_access_token(TokenClaims(user_id=str(user.id), email=user.email)),
        )

        response = await client.get("/auth/me")

        assert response.status_code == 200

    async def test__me__without_token_401(self, client: AsyncClient) -> None:
        """Anonymous callers are rejected."""
        response = await client.get("/auth/me")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test__me__refresh_token_as_access_401(
        self, client: AsyncClient, user: User, codec: TokenCodec,
    ) -> None:
        """Refresh tokens cannot authorize requests."""
        token = codec.issue_refresh_token(TokenClaims(user_id=str(user.id), email=user.email))

        response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    async def test__me__deleted_user_401(
        self,
        client: AsyncClient,
        user: User,
        auth_headers: dict[str, str],
        user_repo: FakeUserRepository,
    ) -> None:
        """Tokens of deleted accounts stop working once the session entry is gone."""
        user_repo.users.clear()

        response = await client.get("/auth/me", headers=auth_headers)

        assert response.status_code == 401

    async def test__security_headers__present(self, client: AsyncClient) -> None:
        """Every response carries the security headers."""
        response = await client.post("/auth/logout")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
