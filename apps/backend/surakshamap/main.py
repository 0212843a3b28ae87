"""
SurakshaMap API — Application entry point.

Bootstraps FastAPI, wires up middleware, registers route groups, builds
the process Runtime (connectivity monitor, offline cache, renderers,
assistant) and manages the MongoDB connection lifecycle.

Run locally:
    cd apps/backend
    uvicorn surakshamap.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from surakshamap.core.config import settings
from surakshamap.core.rate_limit import limiter
from surakshamap.core.runtime import build_runtime
from surakshamap.routes.analytics import router as analytics_router
from surakshamap.routes.assistant import router as assistant_router
from surakshamap.routes.charts import router as charts_router
from surakshamap.routes.connectivity import router as connectivity_router
from surakshamap.routes.geocode import router as geocode_router
from surakshamap.routes.health import router as health_router
from surakshamap.routes.map import router as map_router
from surakshamap.routes.render import router as render_router
from surakshamap.routes.reports import router as reports_router

# ─── Logging ───────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ─── Lifespan ──────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect MongoDB on startup; on shutdown close it and detach the selectors."""
    logger.info("Starting SurakshaMap API (env: %s)", settings.environment)
    runtime = app.state.runtime
    await runtime.database.connect()
    yield
    logger.info("Shutting down SurakshaMap API")
    runtime.close()
    await runtime.database.close()


# ─── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="SurakshaMap API",
    description=(
        "Civic issue reporting for Kerala: reports, map, analytics and an "
        "assistant that keep working when the network or a CDN library does not."
    ),
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url="/redoc" if settings.environment != "production" else None,
)

# Built here rather than in the lifespan so test clients that skip
# startup still find it.
app.state.runtime = build_runtime(settings)


# ─── Rate limiting ─────────────────────────────────────────────────────────────
# Routes opt-in with @limiter.limit("N/minute") + request: Request parameter.
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# ─── Middleware ─────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─── Routes ────────────────────────────────────────────────────────────────────
app.include_router(health_router, prefix="/health", tags=["health"])

app.include_router(reports_router)
app.include_router(geocode_router)

app.include_router(map_router)
app.include_router(charts_router)
app.include_router(analytics_router)
app.include_router(render_router)

app.include_router(assistant_router)
app.include_router(connectivity_router)


@app.get("/", tags=["root"])
async def root():
    """API root — basic metadata."""
    return {
        "name": "SurakshaMap API",
        "version": "0.1.0",
        "status": "running",
        "environment": settings.environment,
        "online": app.state.runtime.monitor.online,
        "docs": "/docs",
    }
