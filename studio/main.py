# studio/main.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from studio.api import router as api_router
from studio.core.config import settings
from studio.core.exceptions import ExecutionError, LabelConflictException, NodeNotFoundException
from studio.core.limiter import limiter
from studio.services.execution_client import ExecutionClient
from studio.services.execution_service import ExecutionService

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def build_execution_client() -> ExecutionClient:
    return ExecutionClient.from_settings(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # A fresh client per startup, so a restarted app never inherits a closed one.
    client = build_execution_client()
    app.state.execution_service = ExecutionService(client, api_router.compiler)
    logger.info("Execution runtime configured at %s", client.base_url)
    if not settings.RUNTIME_AUTH_TOKEN:
        logger.warning("RUNTIME_AUTH_TOKEN is not set; the runtime will reject run requests.")
    try:
        yield
    finally:
        del app.state.execution_service
        await client.aclose()
        logger.info("Closed execution runtime client.")


app = FastAPI(
    title="Agora Studio API",
    description="Visual agent graph editing and blueprint compilation.",
    version="1.0.0",
    lifespan=lifespan
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
# Preflight requests carry no workspace header and must never be throttled
app.state.limiter.exempt_methods = ["OPTIONS"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-User-ID"],
)

@app.exception_handler(NodeNotFoundException)
async def node_not_found_exception_handler(request: Request, exc: NodeNotFoundException):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"message": exc.message},
    )

@app.exception_handler(LabelConflictException)
async def label_conflict_exception_handler(request: Request, exc: LabelConflictException):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"message": exc.message},
    )

@app.exception_handler(ExecutionError)
async def execution_error_handler(request: Request, exc: ExecutionError):
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"message": exc.message, "runtime_status": exc.status_code},
    )

app.include_router(api_router.router)

@app.get("/")
async def root():
    return {"message": "Welcome to the Agora Studio API"}

@app.get("/healthz", tags=["Health"], status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    """Reports how many workspaces are live and whether the runtime client is usable."""
    execution_service = getattr(request.app.state, "execution_service", None)
    runtime_ready = execution_service is not None and not execution_service.client.is_closed
    return {
        "status": "ok" if runtime_ready else "degraded",
        "workspaces": len(api_router.workspace_repository),
        "runtime_url": settings.RUNTIME_URL,
        "runtime_ready": runtime_ready,
    }
