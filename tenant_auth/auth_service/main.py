"""
Tenant Auth Service - registration, login and session tokens per tenant
"""
from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .auth import TokenIssuer
from .config import Settings, get_settings
from .db import TenantRegistry
from .errors import AuthServiceError
from .routes import auth, dev_monitor, health
from .service import AuthService
from .utils.event_logger import configure_logging

logger = logging.getLogger(__name__)


def create_app(settings: Settings = None) -> FastAPI:
    settings = settings or get_settings()

    registry = TenantRegistry(settings.TENANT_DATABASE_URL_TEMPLATE)
    tokens = TokenIssuer.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Tenant stores open lazily; close them all once requests have drained"""
        configure_logging(settings)
        logger.info("Auth service starting (environment=%s)", settings.ENVIRONMENT)
        yield
        await app.state.tenants.close()
        logger.info("Auth service stopped")

    app = FastAPI(
        title="Tenant Auth Service",
        description="Multi-tenant user registration, login and session tokens",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.tenants = registry
    app.state.auth_service = AuthService(registry, tokens, settings.ADMIN_KEY)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration = (time.perf_counter() - start) * 1000
        logger.info(
            "method=%s url=%s status=%s duration=%.1fms",
            request.method, request.url.path, response.status_code, duration
        )
        return response

    @app.exception_handler(AuthServiceError)
    async def auth_error_handler(request: Request, exc: AuthServiceError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.info("Rejected request body on %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": "Invalid request body."}
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal Server Error"}
        )

    # Include routers
    app.include_router(dev_monitor.router)
    if settings.DEFAULT_TENANT:
        app.include_router(auth.single_tenant_router)
    app.include_router(auth.router)
    app.include_router(health.router)

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint"""
        return {
            "service": "Tenant Auth Service",
            "version": "1.0.0",
            "status": "running"
        }

    return app


app = create_app()
