"""FastAPI application for the guest face service."""
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from guestface.api import router as api_v1_router
from guestface.core.config import settings
from guestface.core.container import container
from guestface.core.exceptions import ServiceNotInitializedError
from guestface.core.logging import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[Any, None]:
    """Create the face store and services on startup, dispose them on shutdown."""
    logger.info(
        "Starting guest face service",
        version=settings.VERSION,
        environment=settings.ENVIRONMENT,
    )
    await container.initialize()

    yield

    await container.cleanup()
    logger.info("Guest face service stopped")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router, prefix=settings.API_V1_STR)


@app.exception_handler(ServiceNotInitializedError)
async def service_unavailable_handler(request: Request, exc: ServiceNotInitializedError) -> JSONResponse:
    """Report a face store that could not be reached as temporarily unavailable."""
    logger.error("Service unavailable", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=503, content={"detail": "Face store unavailable"})


@app.get("/health")
async def health_check() -> dict:
    """Liveness probe."""
    return {"status": "healthy"}


def run() -> None:
    """Run the service with uvicorn."""
    import uvicorn

    uvicorn.run(
        "guestface.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )
