"""Main FastAPI application for the knowledge-check engine."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kcheck.config import LOG_LEVEL
from kcheck.database import init_db
from kcheck.logging_setup import setup_console_logging
from kcheck.routes import admin, catalog, results, runs, tests

setup_console_logging(LOG_LEVEL)

app = FastAPI(title="Knowledge Check API")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Startup events
@app.on_event("startup")
def startup_events() -> None:
    """Create missing tables on startup."""
    init_db()


# Include routers
app.include_router(catalog.router)
app.include_router(tests.router)
app.include_router(runs.router)
app.include_router(results.router)
app.include_router(admin.router)
