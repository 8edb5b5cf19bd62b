from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.chat_service import ChatService
from app.config import APP_TITLE, APP_VERSION, Settings, get_settings, validate_settings
from app.errors import REPLIES, ChatError, ErrorKind
from app.logging import configure_logging, json_logger_middleware
from app.rate_limit import SlidingWindowLimiter, rate_limit_middleware
from api.models import ChatErrorResponse, ChatRequest, ChatResponse, DebugStatus

logger = logging.getLogger(__name__)


def _error_body(reply: str, details: Optional[dict] = None) -> dict:
    return ChatErrorResponse(reply=reply, error_details=details).model_dump(
        by_alias=True, exclude_none=True
    )


def get_service(request: Request) -> ChatService:
    return request.app.state.service


def create_app(
    settings: Optional[Settings] = None, service: Optional[ChatService] = None
) -> FastAPI:
    """Build the API; refuses to start without a usable configuration."""
    settings = validate_settings(settings or get_settings())
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title=APP_TITLE, version=APP_VERSION)
    app.state.settings = settings
    app.state.service = service or ChatService(settings)

    # Middleware added last runs first: access log wraps the limiter
    app.middleware("http")(
        rate_limit_middleware(SlidingWindowLimiter(settings.RATE_LIMIT_PER_MIN))
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=not settings.is_production or bool(settings.cors_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    app.middleware("http")(json_logger_middleware())

    # ------------ Routes ------------

    @app.get("/", response_class=PlainTextResponse)
    def root() -> str:
        return "Maizic Chatbot API is running."

    @app.get("/health")
    def health() -> dict:
        return {"ok": True, "service": APP_TITLE, "version": APP_VERSION}

    if settings.debug_enabled:

        @app.get("/debug")
        def debug(check: bool = False, svc: ChatService = Depends(get_service)) -> dict:
            status = DebugStatus(
                environment=settings.ENV,
                port=settings.PORT,
                has_api_key=settings.has_credentials,
                model=settings.LLM_MODEL,
                fallback_models=settings.fallback_models,
                intents_enabled=settings.ENABLE_INTENTS,
                credentials=svc.check_credentials() if check else None,
            )
            return status.model_dump(by_alias=True, exclude_none=True)

    @app.post("/chat", response_model=ChatResponse)
    def chat(
        payload: ChatRequest, request: Request, svc: ChatService = Depends(get_service)
    ) -> ChatResponse:
        result = svc.answer(payload.message)
        if result.intent:
            request.state.selected_intent = result.intent
        if result.model:
            request.state.model_used = result.model
        return ChatResponse(reply=result.reply)

    # ------------ Exception Handlers ------------

    @app.exception_handler(ChatError)
    async def chat_error_handler(request: Request, exc: ChatError):
        request.state.error_kind = exc.kind.value
        return JSONResponse(
            status_code=exc.status_code, content=_error_body(exc.reply, exc.details())
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        # Missing or malformed bodies are reported like any other invalid message
        request.state.error_kind = ErrorKind.INVALID_INPUT.value
        return JSONResponse(
            status_code=400,
            content=_error_body(
                REPLIES[ErrorKind.INVALID_INPUT], {"kind": ErrorKind.INVALID_INPUT.value}
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail or "HTTP error")),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=500, content=_error_body(REPLIES[ErrorKind.UNKNOWN])
        )

    return app


app = create_app()
