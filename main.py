# main.py
"""
Application entrypoint. Includes routers and starts the weekly matching worker.
"""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.routers import matching_routers
from app.config.settings import settings
from app.infrastructure.db.session import AsyncSessionLocal, create_tables
from app.services.scheduler import weekly_matching_worker

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting matching backend")
    await create_tables()

    worker_task = None
    if settings.MATCHING_SCHEDULER_ENABLED:
        worker_task = asyncio.create_task(
            weekly_matching_worker(AsyncSessionLocal, poll_interval=settings.SCHEDULER_POLL_SECONDS)
        )
        logger.info("Weekly matching worker started in background")

    try:
        yield
    finally:
        if worker_task:
            worker_task.cancel()
            try:
                await worker_task
            except asyncio.CancelledError:
                pass
        logger.info("Shutdown complete")


app = FastAPI(title="Weekly Matching Backend", lifespan=lifespan)

# Basic CORS (adjust origins in production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# include routers
app.include_router(matching_routers.router, prefix="/api/v1/matching", tags=["matching"])


@app.get("/")
async def index():
    """Health / basic info endpoint."""
    return {"status": "ok", "service": "matching-backend", "env": settings.ENV}
