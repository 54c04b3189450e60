import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from telofy.core.config import Base, engine, settings
from telofy.core.exceptions import register_exception_handlers
from telofy.api.routers import (
    auth,
    deviations,
    metrics,
    objectives,
    pillars,
    rituals,
    tasks,
    waitlist,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("telofy")


# =====================================================================
# DATABASE INITIALIZATION
# =====================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready (%s)", engine.dialect.name)
    yield


# =====================================================================
# CREATE APP
# =====================================================================

app = FastAPI(
    title=settings.APP_NAME,
    debug=settings.DEBUG,
    description="Objectives, pillars, rituals and the deviations between plan and reality",
    version="1.0.0",
    lifespan=lifespan,
)

# =====================================================================
# CORS MIDDLEWARE - MUST BE FIRST!
# =====================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)
logger.info("CORS allowed origins: %s", settings.CORS_ORIGINS)

register_exception_handlers(app)

# =====================================================================
# HEALTH CHECK (before routers)
# =====================================================================


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


# =====================================================================
# ROUTES
# =====================================================================

app.include_router(auth.router)
app.include_router(waitlist.router)
app.include_router(objectives.router)
app.include_router(pillars.router)
app.include_router(metrics.router)
app.include_router(rituals.router)
app.include_router(tasks.router)
app.include_router(deviations.router)

# =====================================================================
# ROOT ENDPOINT
# =====================================================================


@app.get("/")
def root():
    """API root endpoint."""
    return {
        "message": "Welcome to Telofy API",
        "version": "1.0.0",
        "docs": "/docs",
        "endpoints": {
            "auth": "/auth",
            "waitlist": "/waitlist",
            "objectives": "/objectives",
            "tasks": "/tasks",
            "deviations": "/deviations",
        },
    }
