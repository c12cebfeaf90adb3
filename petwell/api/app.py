"""
FastAPI application factory and configuration.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from ..auth.api import router as auth_router
from ..auth.authenticator import RequestAuthenticator
from ..auth.jwt_handler import JWTHandler
from ..auth.middleware import (
    AuthenticationMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from ..auth.repository import (
    InMemoryPrincipalRepository,
    PostgresPrincipalRepository,
    PrincipalRepository,
)
from ..auth.revocation import RevocationCache
from ..auth.service import AuthService
from ..core.cache import CacheBackend, MemoryCacheBackend, RedisCacheBackend
from ..core.config import Settings, get_settings
from ..core.database import close_db_pool, init_db_pool
from ..core.logging import get_logger, setup_logging
from ..core.rate_limiter import RateLimitConfig, RateLimiter
from ..directory.api import employees_router, users_router
from ..directory.service import DirectoryService
from .errors import register_exception_handlers
from .responses import envelope

logger = get_logger(__name__)


def build_revocation_backend(settings: Settings) -> CacheBackend:
    """Redis when configured, else the in-process cache"""
    if settings.revocation_backend == "redis":
        return RedisCacheBackend(str(settings.redis_url))
    return MemoryCacheBackend(
        max_size=settings.revocation_max_entries,
        default_ttl=settings.effective_revocation_ttl,
        evict_live=False,
    )


def build_repository(settings: Settings) -> PrincipalRepository:
    if settings.principal_store == "postgres":
        # Uses the pool opened by the lifespan handler
        return PostgresPrincipalRepository()
    return InMemoryPrincipalRepository()


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[PrincipalRepository] = None,
    revocation_backend: Optional[CacheBackend] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Settings to use, defaults to the cached environment settings
        repository: Credential store, defaults to the configured one
        revocation_backend: Cache behind the revocation cache

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)

    if repository is None:
        repository = build_repository(settings)
    if revocation_backend is None:
        revocation_backend = build_revocation_backend(settings)

    jwt_handler = JWTHandler(
        secret_key=settings.secret_key,
        algorithm=settings.jwt_algorithm,
        access_token_expire_minutes=settings.access_token_expire_minutes,
    )
    revocation_cache = RevocationCache(revocation_backend, settings.effective_revocation_ttl)
    authenticator = RequestAuthenticator(jwt_handler, repository, revocation_cache)
    auth_service = AuthService(repository, jwt_handler, revocation_cache)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        """
        Application lifespan manager.

        Opens the database pool when PostgreSQL backs the credential store
        and closes external connections on shutdown.
        """
        logger.info("Starting PetWell staff directory", environment=settings.environment)

        if settings.principal_store == "postgres":
            await init_db_pool(str(settings.database_url), max_size=settings.database_pool_size)

        logger.info("API startup complete")

        yield

        logger.info("Shutting down API")
        await revocation_backend.close()
        await repository.close()
        if settings.principal_store == "postgres":
            await close_db_pool()
        logger.info("API shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Staff directory and authentication service for veterinary clinics",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.repository = repository
    app.state.jwt_handler = jwt_handler
    app.state.revocation_cache = revocation_cache
    app.state.authenticator = authenticator
    app.state.auth_service = auth_service
    app.state.directory_service = DirectoryService(repository, auth_service)

    # Last added runs first: CORS -> logging -> security headers -> authentication -> rate limit
    if settings.rate_limit_enabled:
        app.state.rate_limiter = RateLimiter(
            "api",
            RateLimitConfig(
                capacity=settings.rate_limit_capacity,
                refill_amount=settings.rate_limit_refill_per_minute,
                refill_period=60.0,
            ),
        )
        app.add_middleware(RateLimitMiddleware, limiter=app.state.rate_limiter)

    app.add_middleware(
        AuthenticationMiddleware,
        authenticator=authenticator,
        protected_prefixes=settings.protected_paths,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(auth_router, prefix=f"{settings.api_prefix}/auth")
    app.include_router(employees_router, prefix=f"{settings.api_prefix}/employees")
    app.include_router(users_router, prefix=f"{settings.api_prefix}/users")

    @app.get("/health", tags=["health"])
    async def health(request: Request):
        return envelope(
            request,
            status.HTTP_200_OK,
            "Service is healthy",
            data={"status": "healthy", "version": settings.app_version},
        )

    # Mount Prometheus metrics endpoint
    if settings.enable_metrics:
        app.mount("/metrics", make_asgi_app())

    register_exception_handlers(app)

    return app
