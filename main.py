import logging

import uvicorn
from fastapi import FastAPI

from cms_multilingual.config import settings
from cms_multilingual.database import Base, engine
from cms_multilingual.exception_handlers import register_exception_handlers
from cms_multilingual.routes import diagnostics, monitoring, multilingual
from cms_multilingual.scheduler import scheduler
from cms_multilingual.utils.diagnostics_schedule import install_diagnostics_job
from cms_multilingual.utils.metrics import set_app_info
from cms_multilingual.utils.query_monitor import install_query_monitor

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Multilingual content engine: translation groups, taxonomy sync, localized routing, diagnostics",
        debug=settings.debug,
        version=settings.app_version,
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(multilingual.router, prefix="/api/v1/multilingual")
    app.include_router(diagnostics.router, prefix="/api/v1/diagnostics")
    app.include_router(monitoring.router)

    @app.on_event("startup")
    async def startup_event():
        """Tasks to run at application startup."""
        logger.info("Starting up the application...")
        set_app_info(version=settings.app_version, environment=settings.environment)
        install_query_monitor(engine, slow_threshold_ms=settings.slow_query_threshold_ms)
        if settings.debug:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables created (if not existing).")

        if install_diagnostics_job(scheduler, settings.diagnostics_interval_hours):
            scheduler.start()

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Shutting down the application...")
        if scheduler.running:
            scheduler.shutdown(wait=False)

    @app.get("/", tags=["Root"])
    async def root():
        return {"message": f"Welcome to the {settings.app_name} API"}

    if settings.debug:
        logger.info("Running in %s mode", settings.environment)
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.debug)
