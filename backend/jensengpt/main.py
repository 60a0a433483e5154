"""
JensenGPT - Main FastAPI Application
Chat backend with branching conversations, relaying to an OpenAI-compatible
completion provider.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .database import init_db, close_db
from .exceptions import LLMServiceError, NotFoundError
from .routers import (
    bookmarks_router,
    branches_router,
    chat_router,
    conversations_router,
    ideas_router,
    messages_router,
    thoughts_router
)
from .services.cache_service import ResponseCache
from .services.llm_service import LLMService
from .utils.locks import KeyedLocks


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    await init_db()
    logger.info("%s %s started (database: %s)", settings.APP_NAME, settings.APP_VERSION, settings.DATABASE_URL)

    yield

    # Shutdown
    await close_db()


def _validation_detail(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = [str(p) for p in error.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc) or "request"
        parts.append(f"{field}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": _validation_detail(exc)}
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(LLMServiceError)
    async def llm_error_handler(request: Request, exc: LLMServiceError):
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"}
        )


def create_app() -> FastAPI:
    """Build the application with its own cache, locks and LLM client."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Chat backend with branching conversations, powered by an OpenAI-compatible API",
        lifespan=lifespan
    )

    app.state.cache = ResponseCache(
        message_ttl=settings.MESSAGE_CACHE_TTL,
        listing_ttl=settings.LISTING_CACHE_TTL
    )
    app.state.locks = KeyedLocks()
    app.state.llm_service = LLMService()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(chat_router)
    app.include_router(conversations_router)
    app.include_router(branches_router)
    app.include_router(bookmarks_router)
    app.include_router(messages_router)
    app.include_router(thoughts_router)
    app.include_router(ideas_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION
        }

    @app.get("/api")
    async def api_info():
        """API information endpoint."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "endpoints": {
                "chat": "/api/chat",
                "conversations": "/api/conversations",
                "branches": "/api/branches",
                "bookmarks": "/api/bookmarks",
                "messages": "/api/messages",
                "thoughts": "/api/thoughts",
                "ideas": "/api/ideas"
            }
        }

    return app


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)

app = create_app()
