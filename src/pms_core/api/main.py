"""PMS Core FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import get_settings
from ..database import init_db
from .routers import (
    client_requirements,
    epics,
    functional_requirements,
    projects,
    sprints,
    tasks,
)

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("pms-core")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name}")
    init_db()
    yield


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Project management core: hierarchy ids, requirement/task status sync, epic progress",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include all business logic routers with /api/v1 prefix
app.include_router(projects.router, prefix="/api/v1/projects")
app.include_router(client_requirements.router, prefix="/api/v1/client-requirements")
app.include_router(epics.router, prefix="/api/v1/epics")
app.include_router(functional_requirements.router, prefix="/api/v1/functional-requirements")
app.include_router(sprints.router, prefix="/api/v1/sprints")
app.include_router(tasks.router, prefix="/api/v1/tasks")


@app.get("/")
def root():
    """Root endpoint with server info."""
    return {
        "name": settings.app_name,
        "version": "1.0.0",
        "docs": "/docs",
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
