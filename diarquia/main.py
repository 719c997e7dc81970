import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from diarquia.core.config import AppConfig, load_config
from diarquia.core.errors import BookingError
from diarquia.observability.logger import init_sentry, log_error
from diarquia.routes.bookings import booking_error_response, router as bookings_router
from diarquia.routes.health import API_VERSION, router as health_router
from diarquia.routes.responses import envelope_response, internal_error_response

logger = logging.getLogger("diarquia")
logging.basicConfig(level=logging.INFO)


def _log_banner(config: AppConfig) -> None:
    logger.info("=" * 60)
    logger.info(" LA DIARQUÍA - BOOKING BACKEND")
    logger.info("=" * 60)
    logger.info(f"Listening on port {config.port}")
    logger.info(f"Started at {datetime.now().isoformat(timespec='seconds')}")
    logger.info(f"Environment: {config.environment}")
    logger.info(f"CORS enabled for: {config.allowed_origins}")
    logger.info("Endpoints: GET /, GET /health, POST /api/bookings")
    logger.info("=" * 60)


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Build the application around a config assembled once at startup."""
    config = config or load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_sentry(config)
        _log_banner(config)
        yield
        logger.info("Shutting down booking backend")

    app = FastAPI(title="La Diarquía - Booking API", version=API_VERSION, lifespan=lifespan)
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return envelope_response(404, message="Route not found", path=request.url.path)
        return envelope_response(exc.status_code, message=str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid request body for {request.url.path}: {exc.errors()}")
        return envelope_response(400, message="Invalid request body")

    # Class-specific handlers run inside CORSMiddleware; the bare Exception
    # handler only runs in the outermost error middleware.
    @app.exception_handler(BookingError)
    async def booking_exception_handler(request: Request, exc: BookingError):
        log_error(exc, {"path": request.url.path, "stage": "dependencies"})
        return booking_error_response(exc, request.app.state.config)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        log_error(exc, {"path": request.url.path, "stage": "unhandled"})
        return internal_error_response(exc, request.app.state.config)

    # Routes
    app.include_router(health_router, tags=["health"])
    app.include_router(bookings_router, prefix="/api/bookings", tags=["bookings"])

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("diarquia.main:app", host="0.0.0.0", port=app.state.config.port)


if __name__ == "__main__":
    run()
