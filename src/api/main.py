"""FastAPI application entry point."""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from api.routers import auth, health, links, platforms, profile, public
from core.cache import CacheLayer
from core.config import Settings, get_settings
from core.passwords import PasswordHasher
from core.rate_limit_config import RateLimitResult
from core.redis import RedisClient
from core.tokens import TokenCodec
from db.session import create_engine, create_session_factory
from services.email_service import EmailDispatcher, LoggingEmailSender, SmtpEmailSender
from services.exceptions import ServiceError

logger = logging.getLogger(__name__)


def build_email_dispatcher(settings: Settings) -> EmailDispatcher:
    """SMTP when a host is configured, otherwise log-only."""
    if settings.smtp_host:
        return EmailDispatcher(
            SmtpEmailSender(
                host=settings.smtp_host,
                port=settings.smtp_port,
                from_email=settings.email_from,
                username=settings.smtp_username,
                password=settings.smtp_password,
                use_tls=settings.smtp_use_tls,
            ),
        )
    logger.info("SMTP not configured; emails will be logged instead of sent")
    return EmailDispatcher(LoggingEmailSender())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Create the shared clients on app.state and release them on shutdown."""
    app_settings = get_settings()

    engine = create_engine(app_settings)
    app.state.session_factory = create_session_factory(engine)

    redis_client = RedisClient(
        url=app_settings.redis_url,
        enabled=app_settings.redis_enabled,
        pool_size=app_settings.redis_pool_size,
    )
    await redis_client.connect()
    app.state.redis_client = redis_client
    app.state.cache = CacheLayer(redis_client)

    app.state.token_codec = TokenCodec.from_settings(app_settings)
    app.state.password_hasher = PasswordHasher(rounds=app_settings.bcrypt_rounds)
    app.state.email_dispatcher = build_email_dispatcher(app_settings)

    yield

    # queued emails finish before the pools go away
    await app.state.email_dispatcher.drain()
    await redis_client.close()
    await engine.dispose()


# Sent on every response. The API is never framed and only served over HTTPS.
SECURITY_HEADERS = {
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
}


class ResponseHeadersMiddleware(BaseHTTPMiddleware):
    """Stamp security headers, and rate limit headers where a limit applied."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)

        # 429 responses already carry theirs from the exception handler
        result: RateLimitResult | None = getattr(request.state, "rate_limit", None)
        if result is not None and result.allowed:
            response.headers.update(result.headers())
        return response


async def service_exception_handler(_request: Request, exc: ServiceError) -> JSONResponse:
    """Translate business errors (rate limiting included) into their HTTP status."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=exc.headers,
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Unexpected database failure: log the traceback, return a generic 500."""
    logger.error(
        "database_error method=%s path=%s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application; tests pass their own settings and override dependencies."""
    app_settings = settings or get_settings()

    logging.basicConfig(
        level=app_settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    application = FastAPI(
        title="Link-in-bio API",
        description="Accounts, profiles and curated links to external platforms.",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_exception_handler(ServiceError, service_exception_handler)
    application.add_exception_handler(SQLAlchemyError, database_exception_handler)

    application.add_middleware(ResponseHeadersMiddleware)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(health.router)
    application.include_router(auth.router)
    application.include_router(profile.router)
    application.include_router(links.router)
    application.include_router(platforms.router)
    application.include_router(public.router)
    return application


app = create_app()
