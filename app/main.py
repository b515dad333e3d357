"""Incident Response Simulator - FastAPI app entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.db.base import Base
from app.db.session import engine, AsyncSessionLocal
from app.routers import api
from app.services.errors import ProgressionError, UpstreamAnalysisError
from app.services.seeding import seed_scenarios

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if settings.seed_on_startup:
        async with AsyncSessionLocal() as db:
            await seed_scenarios(db)

    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Branching incident scenarios with scoring, auto-fail and a narrative post-mortem",
    lifespan=lifespan,
)


@app.exception_handler(ProgressionError)
async def progression_error_handler(request: Request, exc: ProgressionError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    content = {"success": False, "error": exc.kind, "message": exc.message}
    if isinstance(exc, UpstreamAnalysisError) and exc.summary is not None:
        content["summary"] = exc.summary.model_dump(mode="json")
    return JSONResponse(status_code=exc.status_code, content=content)


app.include_router(api.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
