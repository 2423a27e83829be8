"""FastAPI application entrypoint.

Configures logging, Sentry and CORS, builds the process-wide QAService
(with its gateway, when configured), includes the chat router and exposes
a healthcheck endpoint.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import schemas
from .deps import Settings, get_settings
from .nlp.gateway import GatewayClient, build_gateway_config
from .routers import chat as chat_router
from .services.qa_service import QAService
from .telemetry.sentry import capture_exception, init_sentry

logger = logging.getLogger(__name__)


def build_qa_service(settings: Settings) -> QAService:
    """One QAService per process; the gateway config is resolved exactly once here."""
    config = build_gateway_config(settings)
    if config is None:
        logger.info("[STARTUP] No gateway key configured, answers will be rule-based only")
        return QAService(gateway=None)

    logger.info(f"[STARTUP] Gateway enabled: {config.kind} ({config.model}) at {config.base_url}")
    return QAService(gateway=GatewayClient(config))


def validation_error_details(exc: RequestValidationError) -> list:
    """One entry per offending field: location, message, error type."""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    init_sentry(settings.SENTRY_DSN, settings.ENVIRONMENT)

    app = FastAPI(
        title="adinsight API",
        description="""
        Conversational analytics over imported ad campaign data.

        - **POST /chat**: ask a question (with the recent conversation) and get
          an answer from the language-model gateway or the rule-based engine
        - **GET /health**: liveness check
        """,
        version="1.0.0",
    )

    logger.info(f"[CORS] Allowed origins: {settings.cors_origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.qa_service = build_qa_service(settings)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        payload = schemas.ErrorResponse(error="Validation error", details=validation_error_details(exc))
        return JSONResponse(status_code=400, content=payload.model_dump(exclude_none=True))

    @app.exception_handler(Exception)
    async def internal_exception_handler(request: Request, exc: Exception):
        logger.exception(f"[CHAT] Unhandled error on {request.url.path}: {exc}")
        capture_exception(exc, extra={"path": request.url.path})
        payload = schemas.ErrorResponse(error="Internal server error", message=str(exc))
        return JSONResponse(status_code=500, content=payload.model_dump(exclude_none=True))

    app.include_router(chat_router.router)

    @app.get(
        "/health",
        response_model=schemas.HealthResponse,
        tags=["Health"],
        summary="Health check",
    )
    def health():
        return schemas.HealthResponse(status="ok")

    return app


app = create_app()
