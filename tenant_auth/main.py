import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tenant_auth import __version__
from tenant_auth.auth import AuthGateway
from tenant_auth.config import DEFAULT_SECRET_KEY, Settings, get_settings
from tenant_auth.database import Database
from tenant_auth.dependencies import clear_session_cookie
from tenant_auth.errors import AuthError, Unauthorized
from tenant_auth.routers import account_router, auth_router
from tenant_auth.sessions import SessionStore
from tenant_auth.users import CredentialStore

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_gateway(database: Database, settings: Settings) -> AuthGateway:
    return AuthGateway(
        users=CredentialStore(database),
        sessions=SessionStore(database, ttl=settings.session_ttl),
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        response = JSONResponse(status_code=exc.status_code, content={"message": exc.message})
        # Cookie cleanup must survive error propagation, so it happens here
        if isinstance(exc, Unauthorized) and exc.clear_cookie:
            clear_session_cookie(response, request.app.state.settings)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": "Invalid request body"},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal server error"},
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    The database handle and the gateway are created here, once, and
    attached to app.state. Nothing is looked up from module globals.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    if settings.is_production and settings.secret_key == DEFAULT_SECRET_KEY:
        logger.warning("SECRET_KEY is still the development default")

    database = Database(settings.database_url, echo=settings.debug)
    gateway = build_gateway(database, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan handler.
        Runs on startup and shutdown.
        """
        database.create_all()
        yield
        database.dispose()

    app = FastAPI(
        title="Tenant Auth",
        description="Session-cookie authentication for a multi-tenant SaaS",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.gateway = gateway

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    _register_exception_handlers(app)

    app.include_router(auth_router.router, prefix="/api")
    app.include_router(account_router.router, prefix="/api")

    @app.get("/")
    def root():
        """
        Health check endpoint.
        """
        return {
            "status": "running",
            "version": __version__,
        }

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "tenant_auth.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
