"""LogiTrack - Fleet & Courier Operations API"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from logitrack.core.config import get_settings
from logitrack.core.logging import configure_logging, logger
from logitrack.routers import (
    alerts,
    audit,
    clients,
    dispatch,
    documents,
    evaluations,
    fuel,
    gamification,
    media,
    messengers,
    reports,
    storage,
    vehicles,
)
from logitrack.services.storage import get_collection_store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.log_json)
    logger.info(
        "LogiTrack API starting",
        version="0.1.0",
        storage_backend=settings.normalized_storage_backend(),
        auth_enabled=settings.auth_enabled,
    )
    yield
    logger.info("LogiTrack API shutting down")


app = FastAPI(
    title="LogiTrack API",
    description="Fleet & courier operations - dispatch board, route scoring, resources and reports",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(clients.router)
app.include_router(messengers.router)
app.include_router(vehicles.router)
app.include_router(fuel.router)
app.include_router(media.router)
app.include_router(dispatch.router)
app.include_router(gamification.router)
app.include_router(evaluations.router)
app.include_router(documents.router)
app.include_router(alerts.router)
app.include_router(reports.router)
app.include_router(audit.router)
app.include_router(storage.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "LogiTrack API",
        "version": "0.1.0",
        "endpoints": {
            "clients": "/clients",
            "messengers": "/messengers",
            "vehicles": "/vehicles",
            "fuel": "/fuel",
            "media": "/media",
            "dispatch": "/dispatch",
            "gamification": "/gamification",
            "evaluations": "/evaluations",
            "documents": "/documents",
            "alerts": "/alerts",
            "reports": "/reports",
            "audit": "/audit",
            "storage": "/api/storage",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "storage_backend": get_collection_store().backend}
