import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response, Request, Depends, Path, status

from messages_api.config import settings
from messages_api.errors import register_exception_handlers
from messages_api.storage import init_db, check_db_health
from messages_api.logging_utils import setup_logging, RequestLoggingMiddleware, log_request_data
from messages_api.metrics import get_metrics, get_metrics_content_type
from messages_api.models import MAX_MESSAGE_ID, MIN_MESSAGE_ID
from messages_api.service import MessageService, get_message_service
from messages_api.schemas import (
    CreateMessageRequest,
    HealthResponse,
    MessageResponse,
    ProblemDetail,
    ValidationProblemDetail,
)


# Setup structured JSON logging
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    - Startup: Initialize database and create tables
    """
    init_db()
    yield


app = FastAPI(
    title="Messages API",
    description="Create and list messages, with a cache-aside cache in front of the database",
    version="1.0.0",
    lifespan=lifespan,
    responses={500: {"model": ProblemDetail, "description": "Unexpected error"}},
)

app.add_middleware(RequestLoggingMiddleware)
register_exception_handlers(app)


# =============================================================================
# Health Check Routes
# =============================================================================

@app.get("/health/live", response_model=HealthResponse)
async def health_live() -> HealthResponse:
    """
    Liveness probe - always returns 200 once the app is running.
    """
    return HealthResponse(status="ok")


@app.get("/health/ready", response_model=HealthResponse)
def health_ready(response: Response) -> HealthResponse:
    """
    Readiness probe - returns 200 only if the DB is reachable and the
    messages table exists, otherwise 503.
    """
    if not check_db_health():
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(
            status="not_ready",
            reason="Database not reachable or schema not applied"
        )

    return HealthResponse(status="ready")


# =============================================================================
# Messages Routes
# =============================================================================
# Handlers are plain `def` so blocking database calls run in the threadpool.

@app.get("/messages", response_model=list[MessageResponse])
def list_messages(
    service: MessageService = Depends(get_message_service),
) -> list[MessageResponse]:
    """
    List all stored messages in insertion order.
    Served from cache until the next message is created.
    """
    messages = service.list_messages()
    logger.debug(f"GET /messages: returned {len(messages)} messages")
    return messages


@app.get(
    "/messages/{message_id}",
    response_model=MessageResponse,
    responses={
        404: {"description": "Message not found"},
        400: {"model": ValidationProblemDetail, "description": "Invalid message id"},
    },
)
def get_message(
    request: Request,
    message_id: int = Path(..., ge=MIN_MESSAGE_ID, le=MAX_MESSAGE_ID),
    service: MessageService = Depends(get_message_service),
):
    """
    Fetch one message by id. Returns 404 with an empty body if it does not exist.
    """
    log_request_data(request, message_id=message_id)

    message = service.get_message(message_id)
    if message is None:
        logger.info(f"Message not found: {message_id}")
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    return message


@app.post(
    "/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ValidationProblemDetail, "description": "Blank or missing content"},
    },
)
def create_message(
    command: CreateMessageRequest,
    request: Request,
    service: MessageService = Depends(get_message_service),
) -> MessageResponse:
    """
    Store a new message. id and createdAt are assigned by the server.

    Body:
        - content: non-blank message text
    """
    message = service.create_message(command)
    log_request_data(request, message_id=message.id, result="created")
    return message


# =============================================================================
# Metrics Route
# =============================================================================

@app.get("/metrics")
async def metrics() -> Response:
    """
    Expose Prometheus-style metrics.

    Includes:
    - http_requests_total: Total HTTP requests by method, path, status
    - request_latency_seconds: Request latency histogram
    - cache_requests_total: Cache hits and misses by namespace
    - cache_evictions_total: Namespace evictions
    """
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type()
    )
