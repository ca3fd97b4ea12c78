"""
Tripflow: FastAPI application entry point.

Run:
    uvicorn tripflow.main:app --reload

Or:
    python -m tripflow.main
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tripflow.api.v1.endpoints.conversation import router as conversation_router
from tripflow.core.config import settings
from tripflow.core.monitoring import configure_logging
from tripflow.models.schemas import HealthResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle.

    Startup: logging configuration
    """
    configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    logger.info(f"🚀 Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"📍 Server: http://{settings.HOST}:{settings.PORT}")
    logger.info(f"💾 State store: {settings.STATE_STORE_BACKEND}")

    yield

    logger.info("👋 Shutting down...")


app = FastAPI(
    title=settings.APP_NAME,
    description="""
## Trip-planning dialogue service

### Collects, one slot at a time:
- 📍 **Destination**: city, region, multi-city list or a whole-country tour
- ✈️ **Origin**
- 📅 **Dates**: fuzzy phrases ("March 15-22", "10 days starting June 3"), echoed back before locking
- 👥 **Travelers** and 💰 **Budget**

### Rules:
- Confirmed slots are locked and never re-asked
- A locked slot changes only on an explicit change request
- Ambiguous answers get a clarifying question, never a guess
    """,
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["root"])
async def root():
    """Service information."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health", tags=["health"], response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(status="healthy", service=settings.APP_NAME, version=settings.APP_VERSION)


app.include_router(conversation_router, prefix="/api/v1", tags=["conversation"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tripflow.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
