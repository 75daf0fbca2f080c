"""
Application entry point.

Run locally:
    uvicorn identity_api.main:app --reload --port 8000

API docs available at:
    http://localhost:8000/docs   (Swagger UI)
    http://localhost:8000/redoc  (ReDoc)
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from identity_api.config import settings
from identity_api.routers import auth, mail, profile, uploads
from identity_api.services.email_service import get_mailer

logger = logging.getLogger(__name__)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Bad request bodies are a 400 with the first readable message, like policy errors."""
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        message = str(first.get("msg", message)).removeprefix("Value error, ")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": message})


async def unhandled_exception_handler(request: Request, exc: Exception):
    # Full detail stays in the server log; the client gets a generic message
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error"},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    yield
    # Shutdown: the cached mailer's HTTP client belongs to this event loop
    if get_mailer.cache_info().currsize:
        await get_mailer().close()
        get_mailer.cache_clear()


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if settings.uses_fallback_secret:
        logger.warning("SECRET_KEY is not set; using the fallback secret. Never do this in production.")

    app = FastAPI(
        title="Identity API",
        description=(
            "User accounts for the web app: OTP-verified signup, sign-in with "
            "signed sessions, password reset by emailed code, and profile/address completion."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ── CORS ──────────────────────────────────────────────────────────────────
    # allow_credentials so the session cookie travels with cross-origin requests
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routers ───────────────────────────────────────────────────────────────
    app.include_router(auth.router, prefix="/auth", tags=["Auth"])
    app.include_router(profile.router, prefix="/profile", tags=["Profile"])
    app.include_router(uploads.router, prefix="/uploads", tags=["Uploads"])
    app.include_router(mail.router, prefix="/mail", tags=["Mail"])

    # ── Health Check ──────────────────────────────────────────────────────────
    @app.get("/health", tags=["Health"])
    def health_check():
        """Returns 200 if the application is running."""
        return {"status": "ok", "version": "1.0.0"}

    return app


app = create_app()
