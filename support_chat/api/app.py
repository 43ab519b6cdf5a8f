"""
Main FastAPI application for the Apex support chat backend

This module creates and configures the FastAPI application with:
- CORS middleware for the chat widget
- Request logging middleware
- API routes (chat message + history)
- JSON error handlers
- Health check endpoint
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from support_chat import __version__
from support_chat.api.errors import register_exception_handlers
from support_chat.api.routes import chat
from support_chat.api.schemas import HealthResponse
from support_chat.config.settings import settings
from support_chat.infra.database import close_database
from support_chat.infra.rate_limiter import get_rate_limiter
from support_chat.llm.client import describe_provider
from support_chat.utils.logger import setup_logger


SERVICE_NAME = "apex-support-chat"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan events

    - Startup: configure logging, start the rate-limit sweeper
    - Shutdown: stop the sweeper, close the database engine
    """
    setup_logger()
    logger.info("🚀 Support chat API starting...")
    logger.info(f"🤖 LLM provider: {describe_provider()}")
    logger.info("📚 API docs available at http://localhost:8000/docs")

    limiter = get_rate_limiter()
    limiter.start_sweeper(settings.rate_limit_sweep_interval_seconds)

    yield

    logger.info("🛑 Support chat API shutting down...")
    await limiter.stop_sweeper()
    await close_database()
    logger.info("✅ Shutdown complete")


app = FastAPI(
    title="Apex Support Chat API",
    description="""
    Customer-support chat backend.

    * `POST /api/chat/message` sends a message and returns the assistant's reply
    * `GET /api/chat/history/{sessionId}` returns the stored conversation

    ```bash
    curl -X POST http://localhost:8000/api/chat/message \\
         -H "Content-Type: application/json" \\
         -d '{"message": "Hi", "sessionId": "3f1c2a9e-6a43-4d7b-9b1e-2f0c8e5d7a11"}'
    ```
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"{request.method} {request.url.path}")
    return await call_next(request)


register_exception_handlers(app)

app.include_router(chat.router)


@app.get("/", tags=["root"])
async def root():
    """
    Root endpoint - API information
    """
    return {
        "service": "Apex Support Chat API",
        "version": __version__,
        "status": "running",
        "docs": "/docs",
        "endpoints": {
            "health": "/health",
            "message": "/api/chat/message",
            "history": "/api/chat/history/{sessionId}"
        }
    }


@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """
    Health check endpoint

    Returns:
        HealthResponse with service status and server time
    """
    return HealthResponse(
        status="ok",
        service=SERVICE_NAME,
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat()
    )
