"""FastAPI app: lifespan, CORS, error mapping, router registration."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
from .api.insights import router as insights_router
from .core.database import get_database
from .core.errors import InsightsError
from .core.settings import settings
from .services.ai_provider import get_ai_gateway
from .services.insight_cache import get_insight_cache

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# Used by: FastAPI lifespan (DB + cache on startup, torn down on shutdown)
@asynccontextmanager
async def lifespan(app: FastAPI):
    db = get_database()
    await db.connect(settings.DATABASE_URL, settings.DB_SCHEMA)
    cache = get_insight_cache()
    await cache.backend.connect()
    logger.info(f"Insights ready (cache={cache.backend_name}, ai={get_ai_gateway().provider_name})")

    yield

    await cache.backend.disconnect()
    await db.disconnect()


app = FastAPI(
    title="Cradle Insights API",
    version="1.0.0",
    description="Cradle - baby-care tracking insights and analytics",
    lifespan=lifespan
)

cors_origins = settings.CORS_ORIGINS.copy()
if settings.CORS_EXTRA_ORIGINS:
    cors_origins.extend([o.strip() for o in settings.CORS_EXTRA_ORIGINS.split(",") if o.strip()])

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InsightsError)
async def insights_error_handler(request: Request, exc: InsightsError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/health")
async def health():
    database_ok = await get_database().ping()
    return {
        "status": "ok" if database_ok else "degraded",
        "database": database_ok,
        "cache": get_insight_cache().backend_name,
        "ai_provider": get_ai_gateway().provider_name,
    }


app.include_router(insights_router)
