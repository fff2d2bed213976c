from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import Settings, get_settings
from .database import MongoDatabase
from .dependencies import Services, build_services
from .errors import register_exception_handlers
from .log import AccessLogMiddleware, setup_logging
from .routers import api_router

logger = structlog.get_logger(__name__)


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_json)
    services = services or build_services(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("service_started", version=__version__, pinning_configured=services.pinning.configured)
        yield
        services.db.close()

    app = FastAPI(title="Baxela Election Integrity API", version=__version__, lifespan=lifespan)
    app.state.services = services

    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")

    @app.get("/")
    def root():
        return {"message": "Baxela API running"}

    @app.get("/health")
    def health(request: Request):
        state: Services = request.app.state.services
        return {
            "success": True,
            "status": "healthy",
            "version": __version__,
            "database": "mongodb" if isinstance(state.db, MongoDatabase) else "memory",
            "pinning": "configured" if state.pinning.configured else "not configured",
            "admins": len(state.admins),
        }

    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run("baxela.main:create_app", factory=True, host=settings.host, port=settings.port)
